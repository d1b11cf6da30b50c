"""
Report filters using django-filter.

Provides the reporting window for time-tracking reports:
- start_date: entries starting on or after this day
- end_date: entries ending on or before this day

Both bounds are inclusive and compared against the UTC calendar day,
the same day the report buckets entries under, whatever TIME_ZONE is.
"""

from datetime import timezone as dt_timezone

import django_filters
from django import forms
from django.db.models.functions import TruncDate

from apps.tasks.models import TimeEntry


class TimeEntryWindowFilter(django_filters.FilterSet):
    """
    Date window filter for time entries.

    Usage in selectors:
        filterset = TimeEntryWindowFilter(
            {'start_date': start, 'end_date': end}, queryset=queryset
        )
        entries = filterset.qs
    """

    start_date = django_filters.DateFilter(
        field_name='start_time',
        method='filter_from_day',
        label='From Date',
        widget=forms.DateInput(attrs={'type': 'date'}),
    )

    end_date = django_filters.DateFilter(
        field_name='end_time',
        method='filter_to_day',
        label='To Date',
        widget=forms.DateInput(attrs={'type': 'date'}),
    )

    class Meta:
        model = TimeEntry
        fields = []

    def is_valid(self):
        """Validate both bounds and their order."""
        if not super().is_valid():
            return False

        start = self.form.cleaned_data.get('start_date')
        end = self.form.cleaned_data.get('end_date')
        if start and end and start > end:
            self.form.add_error('end_date', 'End date cannot be before the start date.')
            return False
        return True

    @staticmethod
    def _with_utc_day(queryset, name):
        alias = f'{name}_utc_day'
        return queryset.annotate(**{alias: TruncDate(name, tzinfo=dt_timezone.utc)}), alias

    def filter_from_day(self, queryset, name, value):
        queryset, alias = self._with_utc_day(queryset, name)
        return queryset.filter(**{f'{alias}__gte': value})

    def filter_to_day(self, queryset, name, value):
        queryset, alias = self._with_utc_day(queryset, name)
        return queryset.filter(**{f'{alias}__lte': value})
