"""
Tests for the workload report and overallocation alerts.
"""

from decimal import Decimal

import pytest

from apps.reports.services import build_workload_report, generate_workload_report
from apps.tasks.models import Task
from tests.factories import (
    NOW, MockEmployee, MockProject, MockTask, assign, days_from_now,
)


ANN = MockEmployee(10, 'Ann', 'Lee')
BOB = MockEmployee(11, 'Bob', 'Ray')
CARA = MockEmployee(12, 'Cara', 'Diaz')


def build(tasks, assignments):
    return build_workload_report(MockProject(), tasks, assignments, NOW)


def overdue_task(id):
    return MockTask(id, status='In Progress', due_date=days_from_now(-2))


def future_task(id, status='Not Started'):
    return MockTask(id, status=status, due_date=days_from_now(5))


# =============================================================================
# Counters
# =============================================================================

def test_heavily_overdue_employee_gets_high_alert():
    tasks = [overdue_task(i) for i in range(1, 5)] + [future_task(i) for i in range(5, 11)]

    report = build(tasks, assign(tasks, ANN))

    (workload,) = report.employee_workloads
    assert workload.assigned_task_count == 10
    assert workload.overdue_task_count == 4
    assert workload.in_progress_task_count == 4
    assert workload.workload_percentage == Decimal('100')

    (alert,) = report.overallocation_alerts
    assert alert.employee_name == 'Ann Lee'
    assert alert.severity_level == 'High'
    assert alert.task_count == 10
    assert alert.overdue_task_count == 4
    assert alert.recommendation == 'Address 4 overdue tasks urgently'


def test_counters_and_task_details():
    done = MockTask(1, status='Completed', due_date=days_from_now(-3), priority='High')
    late = overdue_task(2)
    review = MockTask(3, status='For Review', due_date=days_from_now(-1))
    fresh = future_task(4, status='In Progress')

    report = build([done, late, review, fresh], assign([done, late, review, fresh], ANN))

    (workload,) = report.employee_workloads
    assert workload.completed_task_count == 1
    assert workload.in_progress_task_count == 2
    assert workload.overdue_task_count == 2
    assert [d.is_overdue for d in workload.tasks] == [False, True, True, False]
    assert workload.tasks[0].priority == 'High'
    assert workload.tasks[0].task_title == 'Task 1'


def test_workload_percentage_is_relative_to_most_loaded():
    tasks = [future_task(i) for i in range(1, 5)]
    assignments = assign(tasks, ANN) + assign(tasks[:1], BOB) + assign(tasks[:2], CARA)

    report = build(tasks, assignments)

    percentages = {w.employee_name: w.workload_percentage for w in report.employee_workloads}
    assert percentages == {
        'Ann Lee': Decimal('100'),
        'Bob Ray': Decimal('25'),
        'Cara Diaz': Decimal('50'),
    }
    assert [w.employee_name for w in report.employee_workloads] == ['Ann Lee', 'Cara Diaz', 'Bob Ray']
    assert report.most_loaded_employee == 'Ann Lee'
    assert report.least_loaded_employee == 'Bob Ray'
    assert report.average_tasks_per_employee == Decimal(7) / Decimal(3)
    assert all(0 <= w.workload_percentage <= 100 for w in report.employee_workloads)


def test_shared_task_counts_for_each_assignee():
    task = future_task(1)

    report = build([task], assign([task], ANN) + assign([task], BOB))

    assert [w.assigned_task_count for w in report.employee_workloads] == [1, 1]
    assert report.average_tasks_per_employee == Decimal('1')


# =============================================================================
# Overallocation
# =============================================================================

@pytest.mark.parametrize('in_progress, overdue, severity', [
    (5, 0, None),
    (6, 0, 'Medium'),
    (8, 0, 'Medium'),
    (9, 0, 'High'),
    (0, 1, 'Medium'),
    (0, 3, 'Medium'),
    (0, 4, 'High'),
])
def test_overallocation_thresholds(in_progress, overdue, severity):
    tasks = [future_task(i, status='In Progress') for i in range(1, in_progress + 1)]
    tasks += [MockTask(100 + i, due_date=days_from_now(-1)) for i in range(overdue)]

    report = build(tasks, assign(tasks, CARA))

    if severity is None:
        assert report.overallocation_alerts == ()
    else:
        (alert,) = report.overallocation_alerts
        assert alert.severity_level == severity


def test_busy_employee_without_overdue_gets_redistribution_advice():
    tasks = [future_task(i, status='In Progress') for i in range(1, 7)]

    report = build(tasks, assign(tasks, CARA))

    assert report.overallocation_alerts[0].recommendation == (
        "Consider redistributing some of Cara Diaz's tasks"
    )


# =============================================================================
# Empty cases
# =============================================================================

def test_no_assignments_reports_not_available():
    report = build([future_task(1)], [])

    assert report.employee_workloads == ()
    assert report.overallocation_alerts == ()
    assert report.average_tasks_per_employee == 0
    assert report.most_loaded_employee == 'N/A'
    assert report.least_loaded_employee == 'N/A'


@pytest.mark.django_db
def test_missing_project_returns_empty_workload_report():
    report = generate_workload_report(31337, now=NOW)

    assert report.is_empty
    assert report.most_loaded_employee == 'N/A'


# =============================================================================
# Entry point
# =============================================================================

@pytest.mark.django_db
def test_workload_from_database(project, task_factory, employee_factory, assign_task):
    ann = employee_factory('Ann', 'Lee')
    bob = employee_factory('Bob', 'Ray')
    late = task_factory('Late', status=Task.Status.IN_PROGRESS, due_in_days=-3)
    soon = task_factory('Soon')
    hidden = task_factory('Hidden', is_archived=True)
    assign_task(late, ann)
    assign_task(soon, ann)
    assign_task(soon, bob)
    assign_task(hidden, bob)

    report = generate_workload_report(project.id, now=NOW)

    ann_load, bob_load = report.employee_workloads
    assert (ann_load.employee_name, ann_load.assigned_task_count) == ('Ann Lee', 2)
    assert (bob_load.employee_name, bob_load.assigned_task_count) == ('Bob Ray', 1)
    assert bob_load.workload_percentage == Decimal('50')
    assert [a.employee_name for a in report.overallocation_alerts] == ['Ann Lee']
    assert report.overallocation_alerts[0].severity_level == 'Medium'
