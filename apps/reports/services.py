"""
Service layer for reports app.

All report generation is centralized here. Every report comes in two parts:
- generate_*: entry point taking a project id; loads the snapshot through
  the selectors and returns the finished report
- build_*: pure aggregation over already-loaded records (tasks, time
  entries, assignments), no database access

Services:
- generate_status_report: Tasks bucketed by lifecycle state
- generate_time_tracking_report: Logged hours by task, employee, day, week
- generate_workload_report: Assignment counters and overallocation alerts
- generate_progress_report: Completion, milestones and project health
- generate_report: Dispatch by ReportType

Reports are read-only and keep no state between calls. A missing project
yields an empty report (zeroed counts, empty lists) instead of an error.
"""

import logging
import math
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone as dt_timezone
from decimal import Decimal, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.utils import timezone
from django.utils.dateparse import parse_date

from apps.tasks.models import Task, is_past_due
from . import constants
from .constants import (
    MilestoneStatus, OverallHealth, QualityHealth, ResourceHealth,
    ScheduleHealth, Severity,
)
from .selectors import (
    load_project_with_tasks, load_time_entries,
    load_task_assignments_with_employees,
)
from .types import (
    ZERO, ReportType,
    StatusReport, TaskStatusItem,
    TimeTrackingReport, TaskTimeItem, EmployeeTimeItem, DailyTimeItem, WeeklyTimeItem,
    WorkloadReport, EmployeeWorkloadItem, AssignedTaskDetail, OverallocationAlert,
    ProgressReport, MilestoneItem, TaskBreakdown, ProjectHealthIndicator,
)

logger = logging.getLogger(__name__)

COMPLETED = Task.Status.COMPLETED.value
IN_PROGRESS = Task.Status.IN_PROGRESS.value
NOT_STARTED = Task.Status.NOT_STARTED.value

MICROSECONDS_PER_HOUR = Decimal(3600 * 1000000)


# =============================================================================
# Shared helpers
# =============================================================================

def percentage(part, whole):
    """Return part * 100 / whole as a Decimal, or 0 when whole is 0."""
    if not whole:
        return ZERO
    return Decimal(part * 100) / Decimal(whole)


def is_task_overdue(task, now):
    """Overdue check against an explicit clock; see tasks.models.is_past_due."""
    return is_past_due(task.status, task.due_date, now)


def entry_hours(entry):
    """
    Return the duration of a time entry in hours.

    The duration is taken in whole microseconds and rounded once to
    HOURS_QUANTUM, so sums of these values are exact in any grouping.
    """
    duration = entry.end_time - entry.start_time
    microseconds = (duration.days * 86400 + duration.seconds) * 1000000 + duration.microseconds
    hours = Decimal(microseconds) / MICROSECONDS_PER_HOUR
    return hours.quantize(constants.HOURS_QUANTUM, rounding=ROUND_HALF_UP)


def utc_date(value):
    """Return the UTC calendar date of a datetime (naive values are taken as UTC)."""
    if timezone.is_aware(value):
        value = value.astimezone(dt_timezone.utc)
    return value.date()


def week_start(day):
    """Return the Monday that begins the week containing ``day``."""
    return day - timedelta(days=day.weekday() % constants.WEEK_LENGTH_DAYS)


def employee_name(employee):
    """Resolve a display name for an employee record."""
    if employee is None:
        return constants.NOT_AVAILABLE
    if hasattr(employee, 'get_full_name'):
        return employee.get_full_name()
    return f"{employee.first_name} {employee.last_name}".strip()


def _as_date(value):
    """Normalize an optional date/datetime bound to a date."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return utc_date(value)
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            parsed = parse_date(value)
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed
    raise ValidationError(f"Invalid report date: {value!r}")


def _group_assignments(assignments):
    """Map task id -> assignments, keeping load order."""
    by_task = defaultdict(list)
    for assignment in assignments:
        by_task[assignment.task_id].append(assignment)
    return by_task


# =============================================================================
# Status Report
# =============================================================================

def _status_item(task, assignees):
    names = [employee_name(a.employee) for a in assignees]
    return TaskStatusItem(
        task_id=task.id,
        title=task.title,
        priority=task.priority,
        due_date=task.due_date,
        completed_at=task.completed_at,
        assigned_to=', '.join(names) if names else constants.UNASSIGNED,
        status=task.status,
    )


def build_status_report(project, tasks, assignments, now):
    """
    Bucket tasks by status.

    Only the exact statuses Completed, In Progress and Not Started are
    bucketed; tasks in review/revision/approval states count toward the
    total but appear in no bucket.
    """
    by_task = _group_assignments(assignments)
    buckets = {COMPLETED: [], IN_PROGRESS: [], NOT_STARTED: []}

    for task in tasks:
        bucket = buckets.get(str(task.status))
        if bucket is not None:
            bucket.append(_status_item(task, by_task.get(task.id, ())))

    total_tasks = len(tasks)

    return StatusReport(
        project_id=project.id,
        project_name=project.name,
        generated_at=now,
        completed_tasks=tuple(buckets[COMPLETED]),
        in_progress_tasks=tuple(buckets[IN_PROGRESS]),
        upcoming_tasks=tuple(buckets[NOT_STARTED]),
        total_tasks=total_tasks,
        completion_percentage=percentage(len(buckets[COMPLETED]), total_tasks),
    )


def generate_status_report(project_id, now=None):
    """
    Generate the status report for a project.

    Args:
        project_id: Project primary key
        now: Clock override (defaults to timezone.now())

    Returns:
        StatusReport (empty if the project does not exist)
    """
    now = now or timezone.now()

    project = load_project_with_tasks(project_id)
    if project is None:
        logger.warning(f'Status report: project {project_id} not found')
        return StatusReport.empty(project_id, now)

    tasks = project.report_tasks
    assignments = load_task_assignments_with_employees(t.id for t in tasks)

    report = build_status_report(project, tasks, assignments, now)
    logger.debug(
        f'Status report for project {project_id}: {report.total_tasks} tasks, '
        f'{report.completion_percentage}% complete'
    )
    return report


# =============================================================================
# Time Tracking Report
# =============================================================================

class _HoursBucket:
    """Running hours total plus the distinct tasks that contributed."""

    __slots__ = ('hours', 'task_ids')

    def __init__(self):
        self.hours = ZERO
        self.task_ids = set()

    def add(self, task_id, hours):
        self.hours += hours
        self.task_ids.add(task_id)


def build_time_tracking_report(project, tasks, entries, now, start_date=None, end_date=None):
    """
    Aggregate logged hours by task, employee, day and week.

    Every entry's hours are computed once (see entry_hours) and reused by
    all aggregates, so the per-task hours always add up to total_hours.
    """
    timed = [(entry, entry_hours(entry)) for entry in entries]

    task_hours = defaultdict(lambda: ZERO)
    employees = {}
    employee_names = {}
    days = defaultdict(_HoursBucket)
    weeks = defaultdict(_HoursBucket)

    for entry, hours in timed:
        task_hours[entry.task_id] += hours

        if entry.employee_id not in employees:
            employees[entry.employee_id] = _HoursBucket()
            employee_names[entry.employee_id] = employee_name(entry.employee)
        employees[entry.employee_id].add(entry.task_id, hours)

        day = utc_date(entry.start_time)
        days[day].add(entry.task_id, hours)
        weeks[week_start(day)].add(entry.task_id, hours)

    task_times = [
        TaskTimeItem(
            task_id=task.id,
            task_title=task.title,
            hours=task_hours[task.id],
            status=task.status,
        )
        for task in tasks
        if task_hours.get(task.id, ZERO) > 0
    ]
    task_times.sort(key=lambda item: item.hours, reverse=True)

    employee_times = []
    for employee_id, bucket in employees.items():
        task_count = len(bucket.task_ids)
        employee_times.append(EmployeeTimeItem(
            employee_id=employee_id,
            employee_name=employee_names[employee_id],
            total_hours=bucket.hours,
            task_count=task_count,
            average_hours_per_task=bucket.hours / task_count if task_count else ZERO,
        ))
    employee_times.sort(key=lambda item: item.total_hours, reverse=True)

    daily_breakdown = [
        DailyTimeItem(date=day, hours=bucket.hours, task_count=len(bucket.task_ids))
        for day, bucket in sorted(days.items())
    ]

    weekly_breakdown = [
        WeeklyTimeItem(
            week_start_date=start,
            week_end_date=start + timedelta(days=constants.WEEK_LENGTH_DAYS - 1),
            hours=bucket.hours,
            task_count=len(bucket.task_ids),
        )
        for start, bucket in sorted(weeks.items())
    ]

    return TimeTrackingReport(
        project_id=project.id,
        project_name=project.name,
        generated_at=now,
        start_date=start_date,
        end_date=end_date,
        task_times=tuple(task_times),
        employee_times=tuple(employee_times),
        daily_breakdown=tuple(daily_breakdown),
        weekly_breakdown=tuple(weekly_breakdown),
        total_hours=sum((item.hours for item in task_times), ZERO),
    )


def generate_time_tracking_report(project_id, start_date=None, end_date=None, now=None):
    """
    Generate the time-tracking report for a project.

    Args:
        project_id: Project primary key
        start_date: Only entries starting on or after this day (optional)
        end_date: Only entries ending on or before this day (optional)
        now: Clock override (defaults to timezone.now())

    Returns:
        TimeTrackingReport (empty if the project does not exist)

    Raises:
        ValidationError: If start_date is after end_date
    """
    now = now or timezone.now()
    start_date = _as_date(start_date)
    end_date = _as_date(end_date)

    if start_date and end_date and start_date > end_date:
        raise ValidationError("Report start date cannot be after the end date.")

    project = load_project_with_tasks(project_id)
    if project is None:
        logger.warning(f'Time tracking report: project {project_id} not found')
        return TimeTrackingReport.empty(project_id, now, start_date, end_date)

    tasks = project.report_tasks
    entries = load_time_entries((t.id for t in tasks), start_date, end_date)

    report = build_time_tracking_report(project, tasks, entries, now, start_date, end_date)
    logger.debug(
        f'Time tracking report for project {project_id}: '
        f'{len(entries)} entries, {report.total_hours} hours'
    )
    return report


# =============================================================================
# Workload Report
# =============================================================================

class _WorkloadAccumulator:
    """Per-employee counters collected while scanning assignments."""

    def __init__(self, employee_id, employee_name):
        self.employee_id = employee_id
        self.employee_name = employee_name
        self.assigned = 0
        self.completed = 0
        self.in_progress = 0
        self.overdue = 0
        self.tasks = []

    def add(self, task, now):
        overdue = is_task_overdue(task, now)

        self.assigned += 1
        if task.status == COMPLETED:
            self.completed += 1
        elif task.status == IN_PROGRESS:
            self.in_progress += 1
        if overdue:
            self.overdue += 1

        self.tasks.append(AssignedTaskDetail(
            task_id=task.id,
            task_title=task.title,
            status=task.status,
            priority=task.priority,
            due_date=task.due_date,
            is_overdue=overdue,
        ))

    def freeze(self, max_assigned):
        return EmployeeWorkloadItem(
            employee_id=self.employee_id,
            employee_name=self.employee_name,
            assigned_task_count=self.assigned,
            completed_task_count=self.completed,
            in_progress_task_count=self.in_progress,
            overdue_task_count=self.overdue,
            workload_percentage=percentage(self.assigned, max_assigned),
            tasks=tuple(self.tasks),
        )


def is_overallocated(workload):
    """Flag employees with overdue work or too many tasks in flight."""
    return (
        workload.overdue_task_count > 0
        or workload.in_progress_task_count > constants.OVERALLOCATION_IN_PROGRESS_LIMIT
    )


def overallocation_severity(workload):
    if (workload.overdue_task_count > constants.HIGH_SEVERITY_OVERDUE_LIMIT
            or workload.in_progress_task_count > constants.HIGH_SEVERITY_IN_PROGRESS_LIMIT):
        return Severity.HIGH
    return Severity.MEDIUM


def _overallocation_alert(workload):
    if workload.overdue_task_count > 0:
        recommendation = f"Address {workload.overdue_task_count} overdue tasks urgently"
    else:
        recommendation = f"Consider redistributing some of {workload.employee_name}'s tasks"

    return OverallocationAlert(
        employee_id=workload.employee_id,
        employee_name=workload.employee_name,
        task_count=workload.assigned_task_count,
        overdue_task_count=workload.overdue_task_count,
        severity_level=overallocation_severity(workload),
        recommendation=recommendation,
    )


def build_workload_report(project, tasks, assignments, now):
    """
    Count assignments per employee and flag overallocation.

    Each (task, assigned employee) pair counts once toward that employee.
    Workload percentage is relative to the most-loaded employee.
    """
    by_task = _group_assignments(assignments)
    accumulators = {}

    for task in tasks:
        for assignment in by_task.get(task.id, ()):
            key = assignment.employee_id
            if key not in accumulators:
                accumulators[key] = _WorkloadAccumulator(key, employee_name(assignment.employee))
            accumulators[key].add(task, now)

    if accumulators:
        max_assigned = max(acc.assigned for acc in accumulators.values())
        average = (
            Decimal(sum(acc.assigned for acc in accumulators.values()))
            / Decimal(len(accumulators))
        )
    else:
        max_assigned = 1
        average = ZERO

    workloads = [acc.freeze(max_assigned) for acc in accumulators.values()]
    by_load = sorted(workloads, key=lambda w: w.assigned_task_count, reverse=True)

    alerts = [_overallocation_alert(w) for w in by_load if is_overallocated(w)]

    if workloads:
        most_loaded = by_load[0].employee_name
        least_loaded = min(workloads, key=lambda w: w.assigned_task_count).employee_name
    else:
        most_loaded = least_loaded = constants.NOT_AVAILABLE

    return WorkloadReport(
        project_id=project.id,
        project_name=project.name,
        generated_at=now,
        employee_workloads=tuple(by_load),
        overallocation_alerts=tuple(alerts),
        average_tasks_per_employee=average,
        most_loaded_employee=most_loaded,
        least_loaded_employee=least_loaded,
    )


def generate_workload_report(project_id, now=None):
    """
    Generate the workload report for a project.

    Returns:
        WorkloadReport (empty if the project does not exist)
    """
    now = now or timezone.now()

    project = load_project_with_tasks(project_id)
    if project is None:
        logger.warning(f'Workload report: project {project_id} not found')
        return WorkloadReport.empty(project_id, now)

    tasks = project.report_tasks
    assignments = load_task_assignments_with_employees(t.id for t in tasks)

    report = build_workload_report(project, tasks, assignments, now)
    logger.debug(
        f'Workload report for project {project_id}: '
        f'{len(report.employee_workloads)} employees, '
        f'{len(report.overallocation_alerts)} alerts'
    )
    return report


# =============================================================================
# Progress Report
# =============================================================================

def milestone_status(chunk, now):
    """
    Status of one milestone chunk.

    Completed if every task is completed; Delayed if every task is overdue;
    At Risk if any task is overdue; otherwise On Track.
    """
    if all(task.status == COMPLETED for task in chunk):
        return MilestoneStatus.COMPLETED

    overdue = [is_task_overdue(task, now) for task in chunk]
    if all(overdue):
        return MilestoneStatus.DELAYED
    if any(overdue):
        return MilestoneStatus.AT_RISK
    return MilestoneStatus.ON_TRACK


def build_milestones(tasks, now):
    """
    Slice tasks into synthetic milestones.

    Tasks are ordered by due date and cut into consecutive chunks of
    ceil(n / MILESTONE_SLICES) tasks (at least 1); each chunk is one
    milestone.
    """
    ordered = sorted(tasks, key=lambda t: t.due_date)
    interval = max(1, math.ceil(len(ordered) / constants.MILESTONE_SLICES))

    milestones = []
    for offset in range(0, len(ordered), interval):
        chunk = ordered[offset:offset + interval]
        index = offset // interval + 1
        completed_dates = [t.completed_at for t in chunk if t.completed_at is not None]

        milestones.append(MilestoneItem(
            milestone_index=index,
            title=f"Phase {index} - {chunk[0].title}",
            target_date=chunk[-1].due_date,
            is_completed=all(t.status == COMPLETED for t in chunk),
            completed_date=max(completed_dates) if completed_dates else None,
            status=milestone_status(chunk, now),
            description=f"{len(chunk)} tasks",
        ))
    return milestones


def expected_end_date(project, tasks):
    """
    The later of the planned end date and the last task due date.

    A project without a planned end date has no expected end date.
    """
    if not tasks or project.end_date is None:
        return project.end_date

    return max(max(task.due_date for task in tasks), project.end_date)


def assess_health(breakdown, completion):
    """
    Derive the qualitative health indicator from task counts.

    All ratio thresholds are taken against the total task count; with no
    tasks every dimension stays in its healthy branch and no risks or
    achievements are reported.
    """
    total = Decimal(breakdown.total_tasks)
    overdue = breakdown.overdue_tasks
    in_progress = breakdown.in_progress_tasks

    if overdue > total * constants.SCHEDULE_DELAYED_OVERDUE_RATIO:
        schedule = ScheduleHealth.DELAYED
    elif overdue > total * constants.SCHEDULE_AT_RISK_OVERDUE_RATIO:
        schedule = ScheduleHealth.AT_RISK
    else:
        schedule = ScheduleHealth.ON_TRACK

    if in_progress > total * constants.RESOURCE_OVERLOADED_IN_PROGRESS_RATIO:
        resource = ResourceHealth.OVERLOADED
    elif in_progress < total * constants.RESOURCE_UNDERUTILIZED_IN_PROGRESS_RATIO:
        resource = ResourceHealth.UNDERUTILIZED
    else:
        resource = ResourceHealth.ADEQUATE

    if overdue == 0:
        quality = QualityHealth.GOOD
    elif overdue <= total * constants.QUALITY_FAIR_OVERDUE_RATIO:
        quality = QualityHealth.FAIR
    else:
        quality = QualityHealth.POOR

    if (schedule == ScheduleHealth.ON_TRACK and resource == ResourceHealth.ADEQUATE
            and quality == QualityHealth.GOOD):
        overall = OverallHealth.GREEN
    elif (schedule == ScheduleHealth.DELAYED or resource == ResourceHealth.OVERLOADED
            or quality == QualityHealth.POOR):
        overall = OverallHealth.RED
    else:
        overall = OverallHealth.YELLOW

    risks = []
    achievements = []

    if breakdown.total_tasks:
        if overdue > 0:
            risks.append(f"{overdue} overdue tasks detected")
        if completion < constants.RISK_BEHIND_SCHEDULE_COMPLETION:
            risks.append("Project completion significantly behind schedule")

        if completion > constants.ACHIEVEMENT_NEARLY_DONE_COMPLETION:
            achievements.append("Project is 75%+ complete")
        if overdue == 0 and completion > constants.ACHIEVEMENT_CLEAN_PROGRESS_COMPLETION:
            achievements.append("No overdue tasks - good progress!")

    return ProjectHealthIndicator(
        overall_health=overall,
        schedule_health=schedule,
        resource_health=resource,
        quality_health=quality,
        risks=tuple(risks),
        achievements=tuple(achievements),
    )


def build_progress_report(project, tasks, now):
    """Compute completion, milestones, expected end date and health."""
    breakdown = TaskBreakdown(
        total_tasks=len(tasks),
        completed_tasks=sum(1 for t in tasks if t.status == COMPLETED),
        in_progress_tasks=sum(1 for t in tasks if t.status == IN_PROGRESS),
        not_started_tasks=sum(1 for t in tasks if t.status == NOT_STARTED),
        overdue_tasks=sum(1 for t in tasks if is_task_overdue(t, now)),
    )
    completion = percentage(breakdown.completed_tasks, breakdown.total_tasks)

    return ProgressReport(
        project_id=project.id,
        project_name=project.name,
        generated_at=now,
        completion_percentage=completion,
        project_status=project.status,
        project_start_date=project.start_date,
        project_end_date=project.end_date,
        project_expected_end_date=expected_end_date(project, tasks),
        milestones=tuple(build_milestones(tasks, now)),
        task_breakdown=breakdown,
        health_indicator=assess_health(breakdown, completion),
    )


def generate_progress_report(project_id, now=None):
    """
    Generate the progress report for a project.

    Returns:
        ProgressReport (empty if the project does not exist)
    """
    now = now or timezone.now()

    project = load_project_with_tasks(project_id)
    if project is None:
        logger.warning(f'Progress report: project {project_id} not found')
        return ProgressReport.empty(project_id, now)

    report = build_progress_report(project, project.report_tasks, now)
    logger.debug(
        f'Progress report for project {project_id}: '
        f'{report.health_indicator.overall_health} health, '
        f'{len(report.milestones)} milestones'
    )
    return report


# =============================================================================
# Dispatch
# =============================================================================

REPORT_GENERATORS = {
    ReportType.STATUS: generate_status_report,
    ReportType.TIME_TRACKING: generate_time_tracking_report,
    ReportType.WORKLOAD: generate_workload_report,
    ReportType.PROGRESS: generate_progress_report,
}


def generate_report(report_type, project_id, **kwargs):
    """
    Generate a report by type.

    Args:
        report_type: ReportType value (status/time_tracking/workload/progress)
        project_id: Project primary key
        **kwargs: Passed through (start_date/end_date for time tracking, now)

    Raises:
        ValidationError: If the report type is unknown
    """
    try:
        report_type = ReportType(report_type)
    except ValueError:
        raise ValidationError(f"Unknown report type: {report_type}")
    return REPORT_GENERATORS[report_type](project_id, **kwargs)
