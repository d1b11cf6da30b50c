"""
Task management models.

Models:
- Task: Unit of work belonging to exactly one project
- TaskAssignment: Links a task to an assigned employee (many-to-many join)
- TimeEntry: Interval of work logged by an employee against a task
"""

from datetime import timedelta

from django.db import models
from django.conf import settings
from django.utils import timezone
from django.core.exceptions import ValidationError


def is_past_due(status, due_date, now):
    """A task is overdue when it is not completed and its due date has passed."""
    return status != Task.Status.COMPLETED and due_date < now


class Task(models.Model):
    """
    Project task.

    Status values are stored as their display strings; reports match them
    by exact equality.

    Status workflow:
    - Not Started → In Progress → For Review → Completed
    - For Review → Needs Revision → In Progress
    - Client sign-off: Completed may pass through Pending Approval
    """

    class Status(models.TextChoices):
        NOT_STARTED = 'Not Started', 'Not Started'
        IN_PROGRESS = 'In Progress', 'In Progress'
        FOR_REVIEW = 'For Review', 'For Review'
        NEEDS_REVISION = 'Needs Revision', 'Needs Revision'
        COMPLETED = 'Completed', 'Completed'
        PENDING_APPROVAL = 'Pending Approval', 'Pending Approval'

    class Priority(models.TextChoices):
        LOW = 'Low', 'Low'
        MEDIUM = 'Medium', 'Medium'
        HIGH = 'High', 'High'
        CRITICAL = 'Critical', 'Critical'

    project = models.ForeignKey(
        'projects.Project',
        on_delete=models.CASCADE,
        related_name='tasks',
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.NOT_STARTED,
        db_index=True,
    )
    priority = models.CharField(
        max_length=10,
        choices=Priority.choices,
        default=Priority.MEDIUM,
        db_index=True,
    )

    due_date = models.DateTimeField(db_index=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    is_archived = models.BooleanField(default=False, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'task'
        verbose_name_plural = 'tasks'
        ordering = ['due_date', 'id']
        indexes = [
            models.Index(fields=['project', 'is_archived'], name='tasks_task_project_4b2c1e_idx'),
            models.Index(fields=['due_date', 'status'], name='tasks_task_due_dat_7d9a0f_idx'),
        ]

    def __str__(self):
        return self.title

    @property
    def is_overdue(self):
        """Check if task is past its due date and not completed."""
        return is_past_due(self.status, self.due_date, timezone.now())


class TaskAssignment(models.Model):
    """
    Assignment of an employee to a task.

    A task may have several assignees; each employee appears at most once
    per task.
    """

    task = models.ForeignKey(
        Task,
        on_delete=models.CASCADE,
        related_name='assignments',
    )
    employee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='task_assignments',
    )
    assigned_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = 'task assignment'
        verbose_name_plural = 'task assignments'
        ordering = ['assigned_at', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['task', 'employee'],
                name='uq_task_assignment_employee',
            ),
        ]

    def __str__(self):
        return f"{self.employee} on {self.task}"


class TimeEntry(models.Model):
    """
    Work interval logged against a task.

    Rules:
    - end_time must not precede start_time
    - duration is end_time - start_time
    """

    task = models.ForeignKey(
        Task,
        on_delete=models.CASCADE,
        related_name='time_entries',
    )
    employee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='time_entries',
    )
    start_time = models.DateTimeField(db_index=True)
    end_time = models.DateTimeField()
    description = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'time entry'
        verbose_name_plural = 'time entries'
        ordering = ['start_time', 'id']
        indexes = [
            models.Index(fields=['task', 'start_time'], name='tasks_timee_task_id_3f8e2a_idx'),
            models.Index(fields=['employee', 'start_time'], name='tasks_timee_employe_9c1b4d_idx'),
        ]

    def __str__(self):
        return f"{self.employee} on {self.task}: {self.start_time:%Y-%m-%d %H:%M}"

    def clean(self):
        """Validate the logged interval."""
        if self.start_time and self.end_time and self.end_time < self.start_time:
            raise ValidationError({
                'end_time': 'End time cannot be before the start time.'
            })

    @property
    def duration(self):
        """Return the logged interval as a timedelta."""
        if not self.start_time or not self.end_time:
            return timedelta(0)
        return self.end_time - self.start_time
