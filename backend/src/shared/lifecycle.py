"""
Task lifecycle - allowed status transitions and derived progress values.
"""
from decimal import Decimal
from typing import Optional

from shared.errors import InvalidTransitionError
from shared.models import TaskStatus


# status -> statuses it may move to
TRANSITIONS = {
    TaskStatus.PENDING: (TaskStatus.ASSIGNED,),
    TaskStatus.ASSIGNED: (TaskStatus.IN_PROGRESS,),
    TaskStatus.IN_PROGRESS: (TaskStatus.COMPLETED,),
    TaskStatus.COMPLETED: (TaskStatus.REVIEWED,),
    TaskStatus.REVIEWED: (),
}

PROGRESS_PERCENTAGE = {
    TaskStatus.PENDING: 0,
    TaskStatus.ASSIGNED: 10,
    TaskStatus.IN_PROGRESS: 50,
    TaskStatus.COMPLETED: 90,
    TaskStatus.REVIEWED: 100,
}

# Who drives each transition after assignment
WORKER_STATUSES = (TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED)
COMPANY_STATUSES = (TaskStatus.REVIEWED,)


def can_transition(current: str, new: str) -> bool:
    return new in TRANSITIONS.get(current, ())


def check_transition(current: str, new: str) -> None:
    """
    Raises:
        InvalidTransitionError: if the lifecycle does not allow current -> new
    """
    if not can_transition(current, new):
        raise InvalidTransitionError(f"Cannot move task from '{current}' to '{new}'")


def progress_percentage(status: str) -> int:
    return PROGRESS_PERCENTAGE.get(status, 0)


def hourly_rate(budget, estimated_hours) -> Decimal:
    """Budget per estimated hour, 0 when hours are missing."""
    if not estimated_hours:
        return Decimal('0')
    return (Decimal(str(budget)) / Decimal(str(estimated_hours))).quantize(Decimal('0.01'))


def efficiency(estimated_hours, actual_hours) -> Optional[float]:
    """Estimated over actual hours; None until both are known."""
    if not estimated_hours or not actual_hours:
        return None
    return float(estimated_hours) / float(actual_hours)
