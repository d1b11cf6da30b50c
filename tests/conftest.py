"""
Pytest configuration and shared fixtures.
"""

import pytest

from apps.projects.models import Project
from apps.tasks.models import Task, TaskAssignment, TimeEntry
from tests.factories import NOW, days_from_now


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def employee_factory(django_user_model):
    """Create employees with unique emails."""
    counter = {'n': 0}

    def make(first_name, last_name='', **extra):
        counter['n'] += 1
        return django_user_model.objects.create_user(
            email=f"{first_name.lower()}{counter['n']}@example.com",
            first_name=first_name,
            last_name=last_name,
            **extra,
        )

    return make


@pytest.fixture
def project(db):
    return Project.objects.create(
        name='Website Redesign',
        status=Project.Status.IN_PROGRESS,
        start_date=days_from_now(-60),
        end_date=days_from_now(30),
    )


@pytest.fixture
def task_factory(project):
    """Create tasks on the default project."""

    def make(title, status=Task.Status.NOT_STARTED, due_in_days=7, **extra):
        extra.setdefault('project', project)
        return Task.objects.create(
            title=title,
            status=status,
            due_date=days_from_now(due_in_days),
            **extra,
        )

    return make


@pytest.fixture
def assign_task():
    def make(task, employee):
        return TaskAssignment.objects.create(task=task, employee=employee)

    return make


@pytest.fixture
def log_time():
    def make(task, employee, start_time, end_time):
        return TimeEntry.objects.create(
            task=task,
            employee=employee,
            start_time=start_time,
            end_time=end_time,
        )

    return make
