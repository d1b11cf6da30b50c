"""
Lightweight stand-ins for model instances.

The report builders only read attributes, so these plain objects let the
aggregation be tested without a database.
"""

from datetime import datetime, timedelta, timezone as dt_timezone


# Monday
NOW = datetime(2025, 6, 16, 12, 0, tzinfo=dt_timezone.utc)


def at(year, month, day, hour=0, minute=0, second=0):
    """Build an aware UTC datetime."""
    return datetime(year, month, day, hour, minute, second, tzinfo=dt_timezone.utc)


def days_from_now(days):
    return NOW + timedelta(days=days)


class MockEmployee:
    def __init__(self, id, first_name, last_name=''):
        self.id = id
        self.first_name = first_name
        self.last_name = last_name

    def get_full_name(self):
        return f"{self.first_name} {self.last_name}".strip()


class MockProject:
    def __init__(self, id=1, name='Website Redesign', status='In Progress',
                 start_date=None, end_date=None):
        self.id = id
        self.name = name
        self.status = status
        self.start_date = start_date or days_from_now(-60)
        self.end_date = end_date


class MockTask:
    def __init__(self, id, title=None, status='Not Started', due_date=None,
                 priority='Medium', completed_at=None):
        self.id = id
        self.title = title or f'Task {id}'
        self.status = status
        self.due_date = due_date or days_from_now(7)
        self.priority = priority
        self.completed_at = completed_at


class MockAssignment:
    def __init__(self, task, employee):
        self.task_id = task.id
        self.employee_id = employee.id
        self.employee = employee


class MockTimeEntry:
    def __init__(self, task, employee, start_time, hours=None, end_time=None):
        self.task_id = task.id
        self.employee_id = employee.id
        self.employee = employee
        self.start_time = start_time
        self.end_time = end_time or start_time + timedelta(hours=hours)


def assign(tasks, employee):
    """Assign every task in ``tasks`` to ``employee``."""
    return [MockAssignment(task, employee) for task in tasks]
