"""
Tests for the data models, the project picker and report dispatch.
"""

from datetime import timedelta

import pytest
from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.projects.models import Project
from apps.reports.selectors import list_report_projects
from apps.reports.services import generate_report, is_task_overdue
from apps.reports.types import (
    ProgressReport, ProjectChoice, ReportType, StatusReport,
    TimeTrackingReport, WorkloadReport,
)
from apps.tasks.models import Task, TimeEntry, is_past_due
from tests.factories import NOW, at


pytestmark = pytest.mark.django_db


# =============================================================================
# User
# =============================================================================

def test_full_name_falls_back_to_email(employee_factory, django_user_model):
    ann = employee_factory('Ann', 'Lee')
    nameless = django_user_model.objects.create_user(email='ghost@example.com')

    assert ann.get_full_name() == 'Ann Lee'
    assert nameless.get_full_name() == 'ghost@example.com'


def test_create_user_requires_email(django_user_model):
    with pytest.raises(ValueError):
        django_user_model.objects.create_user(email='')


def test_superuser_is_admin(django_user_model):
    admin = django_user_model.objects.create_superuser(email='root@example.com', password='x')

    assert admin.is_staff and admin.is_superuser
    assert admin.role == django_user_model.Role.ADMIN


def test_new_users_are_employees(employee_factory, django_user_model):
    assert employee_factory('Bob').role == django_user_model.Role.EMPLOYEE


# =============================================================================
# Project / Task / TimeEntry
# =============================================================================

def test_project_end_before_start_is_invalid():
    project = Project(name='Backwards', start_date=at(2025, 6, 10), end_date=at(2025, 6, 1))

    with pytest.raises(ValidationError):
        project.clean()


def test_task_is_overdue(task_factory):
    late = task_factory('Late')
    late.due_date = timezone.now() - timedelta(days=1)
    done = task_factory('Done', status=Task.Status.COMPLETED)
    done.due_date = timezone.now() - timedelta(days=1)
    upcoming = task_factory('Upcoming')
    upcoming.due_date = timezone.now() + timedelta(days=1)

    assert late.is_overdue
    assert not done.is_overdue
    assert not upcoming.is_overdue


@pytest.mark.parametrize('status, due_in_days, expected', [
    ('Not Started', -1, True),
    ('For Review', -1, True),
    ('Completed', -1, False),
    ('In Progress', 1, False),
    ('In Progress', 0, False),
])
def test_task_and_reports_share_overdue_rule(task_factory, status, due_in_days, expected):
    task = task_factory('Build', status=status, due_in_days=due_in_days)

    assert is_past_due(task.status, task.due_date, NOW) is expected
    assert is_task_overdue(task, NOW) is expected


def test_time_entry_rejects_end_before_start(task_factory, employee_factory):
    entry = TimeEntry(
        task=task_factory('Build'),
        employee=employee_factory('Ann', 'Lee'),
        start_time=at(2025, 6, 9, 12),
        end_time=at(2025, 6, 9, 11),
    )

    with pytest.raises(ValidationError) as excinfo:
        entry.clean()
    assert 'end_time' in excinfo.value.message_dict


def test_time_entry_duration(task_factory, employee_factory, log_time):
    entry = log_time(
        task_factory('Build'), employee_factory('Ann', 'Lee'),
        at(2025, 6, 9, 9), at(2025, 6, 9, 11, 30),
    )

    entry.clean()
    assert entry.duration == timedelta(hours=2, minutes=30)
    assert TimeEntry(start_time=at(2025, 6, 9)).duration == timedelta(0)


def test_each_employee_assigned_once_per_task(task_factory, employee_factory, assign_task):
    task = task_factory('Build')
    ann = employee_factory('Ann', 'Lee')
    assign_task(task, ann)

    with pytest.raises(IntegrityError), transaction.atomic():
        assign_task(task, ann)


# =============================================================================
# Project picker
# =============================================================================

def test_list_report_projects_skips_archived():
    Project.objects.create(name='Beta')
    alpha = Project.objects.create(name='Alpha')
    Project.objects.create(name='Zeta', is_archived=True)

    choices = list_report_projects()

    assert [c.name for c in choices] == ['Alpha', 'Beta']
    assert choices[0] == ProjectChoice(id=alpha.id, name='Alpha')


def test_list_report_projects_empty():
    assert list_report_projects() == []


# =============================================================================
# Dispatch
# =============================================================================

@pytest.mark.parametrize('report_type, report_class', [
    ('status', StatusReport),
    ('time_tracking', TimeTrackingReport),
    (ReportType.WORKLOAD, WorkloadReport),
    (ReportType.PROGRESS, ProgressReport),
])
def test_generate_report_dispatches_by_type(project, report_type, report_class):
    report = generate_report(report_type, project.id, now=NOW)

    assert isinstance(report, report_class)
    assert report.project_name == 'Website Redesign'
    assert report.generated_at == NOW


def test_generate_report_passes_date_window(project):
    report = generate_report('time_tracking', project.id, start_date='2025-06-01', end_date='2025-06-30', now=NOW)

    assert report.start_date.isoformat() == '2025-06-01'
    assert report.end_date.isoformat() == '2025-06-30'


def test_generate_report_rejects_unknown_type(project):
    with pytest.raises(ValidationError):
        generate_report('budget', project.id)


def test_generate_report_rejects_bad_date(project):
    with pytest.raises(ValidationError):
        generate_report('time_tracking', project.id, start_date='not-a-date')


# =============================================================================
# Migrations
# =============================================================================

def test_migrations_match_models(settings):
    # the suite runs with --nomigrations; point the loader back at the real files
    settings.MIGRATION_MODULES = {}

    call_command('makemigrations', '--check', '--dry-run', verbosity=0)
