"""
Fixed thresholds and labels used by the report engine.

Ratios are fractions of the project's total (non-archived) task count.
Completion thresholds are percentages.
"""

from decimal import Decimal


# =============================================================================
# Health indicator thresholds
# =============================================================================
SCHEDULE_DELAYED_OVERDUE_RATIO = Decimal('0.2')
SCHEDULE_AT_RISK_OVERDUE_RATIO = Decimal('0.1')

RESOURCE_OVERLOADED_IN_PROGRESS_RATIO = Decimal('0.7')
RESOURCE_UNDERUTILIZED_IN_PROGRESS_RATIO = Decimal('0.2')

QUALITY_FAIR_OVERDUE_RATIO = Decimal('0.1')

RISK_BEHIND_SCHEDULE_COMPLETION = Decimal('25')
ACHIEVEMENT_NEARLY_DONE_COMPLETION = Decimal('75')
ACHIEVEMENT_CLEAN_PROGRESS_COMPLETION = Decimal('50')


# =============================================================================
# Overallocation thresholds
# =============================================================================
OVERALLOCATION_IN_PROGRESS_LIMIT = 5
HIGH_SEVERITY_OVERDUE_LIMIT = 3
HIGH_SEVERITY_IN_PROGRESS_LIMIT = 8


# =============================================================================
# Milestones & hours
# =============================================================================
# Tasks are sliced into (at most) this many milestones
MILESTONE_SLICES = 4

# Every logged duration is rounded once to this many hours
HOURS_QUANTUM = Decimal('0.000001')

WEEK_LENGTH_DAYS = 7


# =============================================================================
# Labels
# =============================================================================
class OverallHealth:
    GREEN = 'Green'
    YELLOW = 'Yellow'
    RED = 'Red'


class ScheduleHealth:
    ON_TRACK = 'On Track'
    AT_RISK = 'At Risk'
    DELAYED = 'Delayed'


class ResourceHealth:
    ADEQUATE = 'Adequate'
    OVERLOADED = 'Overloaded'
    UNDERUTILIZED = 'Underutilized'


class QualityHealth:
    GOOD = 'Good'
    FAIR = 'Fair'
    POOR = 'Poor'


class MilestoneStatus:
    COMPLETED = 'Completed'
    ON_TRACK = 'On Track'
    AT_RISK = 'At Risk'
    DELAYED = 'Delayed'


class Severity:
    MEDIUM = 'Medium'
    HIGH = 'High'


NOT_AVAILABLE = 'N/A'
UNASSIGNED = 'Unassigned'
