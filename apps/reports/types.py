"""
Report structures returned by the report services.

All structures are frozen dataclasses with tuple collections, built fresh
on every call. They carry plain values only (no model instances), so a
rendering or serialization layer can consume them without touching the ORM.

Reports:
- StatusReport: tasks bucketed by lifecycle state
- TimeTrackingReport: logged hours by task, employee, day and week
- WorkloadReport: assignment counters and overallocation alerts
- ProgressReport: completion, synthetic milestones and health indicator
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Tuple

from django.db import models

from .constants import NOT_AVAILABLE


ZERO = Decimal('0')


class ReportType(models.TextChoices):
    STATUS = 'status', 'Status'
    TIME_TRACKING = 'time_tracking', 'Time Tracking'
    WORKLOAD = 'workload', 'Workload'
    PROGRESS = 'progress', 'Progress'


@dataclass(frozen=True)
class ProjectChoice:
    """Project entry for a report picker."""

    id: int
    name: str


# =============================================================================
# Status Report
# =============================================================================

@dataclass(frozen=True)
class TaskStatusItem:
    task_id: int
    title: str
    priority: str
    due_date: datetime
    completed_at: Optional[datetime]
    assigned_to: str
    status: str


@dataclass(frozen=True)
class StatusReport:
    project_id: int
    project_name: str
    generated_at: datetime
    completed_tasks: Tuple[TaskStatusItem, ...] = ()
    in_progress_tasks: Tuple[TaskStatusItem, ...] = ()
    upcoming_tasks: Tuple[TaskStatusItem, ...] = ()
    total_tasks: int = 0
    completion_percentage: Decimal = ZERO

    @classmethod
    def empty(cls, project_id, generated_at):
        return cls(project_id=project_id, project_name='', generated_at=generated_at)

    @property
    def is_empty(self):
        return self.total_tasks == 0

    @property
    def completed_count(self):
        return len(self.completed_tasks)

    @property
    def in_progress_count(self):
        return len(self.in_progress_tasks)

    @property
    def upcoming_count(self):
        return len(self.upcoming_tasks)


# =============================================================================
# Time Tracking Report
# =============================================================================

@dataclass(frozen=True)
class TaskTimeItem:
    task_id: int
    task_title: str
    hours: Decimal
    status: str


@dataclass(frozen=True)
class EmployeeTimeItem:
    employee_id: int
    employee_name: str
    total_hours: Decimal
    task_count: int
    average_hours_per_task: Decimal


@dataclass(frozen=True)
class DailyTimeItem:
    date: date
    hours: Decimal
    task_count: int


@dataclass(frozen=True)
class WeeklyTimeItem:
    week_start_date: date
    week_end_date: date
    hours: Decimal
    task_count: int


@dataclass(frozen=True)
class TimeTrackingReport:
    project_id: int
    project_name: str
    generated_at: datetime
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    task_times: Tuple[TaskTimeItem, ...] = ()
    employee_times: Tuple[EmployeeTimeItem, ...] = ()
    daily_breakdown: Tuple[DailyTimeItem, ...] = ()
    weekly_breakdown: Tuple[WeeklyTimeItem, ...] = ()
    total_hours: Decimal = ZERO

    @classmethod
    def empty(cls, project_id, generated_at, start_date=None, end_date=None):
        return cls(
            project_id=project_id,
            project_name='',
            generated_at=generated_at,
            start_date=start_date,
            end_date=end_date,
        )

    @property
    def is_empty(self):
        return not self.task_times


# =============================================================================
# Workload Report
# =============================================================================

@dataclass(frozen=True)
class AssignedTaskDetail:
    task_id: int
    task_title: str
    status: str
    priority: str
    due_date: datetime
    is_overdue: bool


@dataclass(frozen=True)
class EmployeeWorkloadItem:
    employee_id: int
    employee_name: str
    assigned_task_count: int
    completed_task_count: int
    in_progress_task_count: int
    overdue_task_count: int
    workload_percentage: Decimal
    tasks: Tuple[AssignedTaskDetail, ...] = ()


@dataclass(frozen=True)
class OverallocationAlert:
    employee_id: int
    employee_name: str
    task_count: int
    overdue_task_count: int
    severity_level: str
    recommendation: str


@dataclass(frozen=True)
class WorkloadReport:
    project_id: int
    project_name: str
    generated_at: datetime
    employee_workloads: Tuple[EmployeeWorkloadItem, ...] = ()
    overallocation_alerts: Tuple[OverallocationAlert, ...] = ()
    average_tasks_per_employee: Decimal = ZERO
    most_loaded_employee: str = NOT_AVAILABLE
    least_loaded_employee: str = NOT_AVAILABLE

    @classmethod
    def empty(cls, project_id, generated_at):
        return cls(project_id=project_id, project_name='', generated_at=generated_at)

    @property
    def is_empty(self):
        return not self.employee_workloads


# =============================================================================
# Progress Report
# =============================================================================

@dataclass(frozen=True)
class MilestoneItem:
    milestone_index: int
    title: str
    target_date: datetime
    is_completed: bool
    completed_date: Optional[datetime]
    status: str
    description: str


@dataclass(frozen=True)
class TaskBreakdown:
    total_tasks: int = 0
    completed_tasks: int = 0
    in_progress_tasks: int = 0
    not_started_tasks: int = 0
    overdue_tasks: int = 0


@dataclass(frozen=True)
class ProjectHealthIndicator:
    overall_health: str = ''
    schedule_health: str = ''
    resource_health: str = ''
    quality_health: str = ''
    risks: Tuple[str, ...] = ()
    achievements: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ProgressReport:
    project_id: int
    project_name: str
    generated_at: datetime
    completion_percentage: Decimal = ZERO
    project_status: str = ''
    project_start_date: Optional[datetime] = None
    project_end_date: Optional[datetime] = None
    project_expected_end_date: Optional[datetime] = None
    milestones: Tuple[MilestoneItem, ...] = ()
    task_breakdown: TaskBreakdown = field(default_factory=TaskBreakdown)
    health_indicator: ProjectHealthIndicator = field(default_factory=ProjectHealthIndicator)

    @classmethod
    def empty(cls, project_id, generated_at):
        return cls(project_id=project_id, project_name='', generated_at=generated_at)

    @property
    def is_empty(self):
        return self.task_breakdown.total_tasks == 0
