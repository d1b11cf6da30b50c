"""
Read-only data access for reports.

Selectors load the raw records a report is computed from:
- load_project_with_tasks: project plus its non-archived tasks
- load_time_entries: time entries for a set of tasks, optionally windowed
- load_task_assignments_with_employees: assignments with employee resolved
- list_report_projects: non-archived projects for a report picker

Database errors propagate to the caller unchanged.
"""

from django.core.exceptions import ValidationError
from django.db.models import Prefetch

from apps.projects.models import Project
from apps.tasks.models import Task, TaskAssignment, TimeEntry
from .filters import TimeEntryWindowFilter
from .types import ProjectChoice


def load_project_with_tasks(project_id):
    """
    Load a project with its non-archived tasks.

    Tasks are attached as ``project.report_tasks`` ordered by id.

    Returns:
        Project instance, or None if no project has this id
    """
    tasks = Task.objects.filter(is_archived=False).order_by('id')

    return (
        Project.objects
        .filter(pk=project_id)
        .prefetch_related(Prefetch('tasks', queryset=tasks, to_attr='report_tasks'))
        .first()
    )


def load_time_entries(task_ids, start_date=None, end_date=None):
    """
    Load time entries logged against the given tasks.

    Args:
        task_ids: Iterable of task ids
        start_date: Keep entries starting on or after this day (optional)
        end_date: Keep entries ending on or before this day (optional)

    Returns:
        list of TimeEntry with task and employee loaded, ordered by start time

    Raises:
        ValidationError: If a bound is not a date or the window is inverted
    """
    task_ids = list(task_ids)
    if not task_ids:
        return []

    queryset = (
        TimeEntry.objects
        .filter(task_id__in=task_ids)
        .select_related('task', 'employee')
        .order_by('start_time', 'id')
    )

    filterset = TimeEntryWindowFilter(
        {'start_date': start_date, 'end_date': end_date},
        queryset=queryset,
    )
    if not filterset.is_valid():
        raise ValidationError(filterset.errors)

    return list(filterset.qs)


def load_task_assignments_with_employees(task_ids):
    """
    Load assignments for the given tasks with the employee resolved.

    Returns:
        list of TaskAssignment ordered by task, then assignment time
    """
    task_ids = list(task_ids)
    if not task_ids:
        return []

    return list(
        TaskAssignment.objects
        .filter(task_id__in=task_ids)
        .select_related('employee')
        .order_by('task_id', 'assigned_at', 'id')
    )


def list_report_projects():
    """Return id/name pairs of all non-archived projects, by name."""
    rows = (
        Project.objects
        .filter(is_archived=False)
        .order_by('name', 'id')
        .values_list('id', 'name')
    )
    return [ProjectChoice(id=pk, name=name) for pk, name in rows]
