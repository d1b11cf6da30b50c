"""
Project model.

A project owns a collection of tasks. Archived projects (and archived tasks)
are hidden from reports.
"""

from django.db import models
from django.utils import timezone


class Project(models.Model):
    """
    A client or internal project.

    Status workflow:
    - Not Started → In Progress → Completed
    - In Progress ↔ On Hold
    """

    class Status(models.TextChoices):
        NOT_STARTED = 'Not Started', 'Not Started'
        IN_PROGRESS = 'In Progress', 'In Progress'
        ON_HOLD = 'On Hold', 'On Hold'
        COMPLETED = 'Completed', 'Completed'

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.NOT_STARTED,
        db_index=True,
    )

    start_date = models.DateTimeField(default=timezone.now)
    end_date = models.DateTimeField(
        null=True,
        blank=True,
        help_text='Planned end date (optional)'
    )
    is_archived = models.BooleanField(default=False, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'project'
        verbose_name_plural = 'projects'
        ordering = ['name']

    def __str__(self):
        return self.name

    def clean(self):
        """Validate that the end date does not precede the start date."""
        from django.core.exceptions import ValidationError

        if self.end_date and self.start_date and self.end_date < self.start_date:
            raise ValidationError({
                'end_date': 'End date cannot be before the start date.'
            })
