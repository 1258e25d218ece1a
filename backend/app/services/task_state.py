"""Task status state machine.

TO_DO → IN_PROGRESS → DONE, with TO_DO → DONE allowed directly.
DONE is terminal. OVERDUE is computed on read and is never a target.
"""

from collections.abc import Iterable
from datetime import datetime

from app.core.exceptions import DomainValidationError, InvalidTaskStateError
from app.db.base import utcnow
from app.models.enums import TaskRole, TaskStatus
from app.models.task import Task

TASK_TRANSITIONS: dict[str, list[str]] = {
    TaskStatus.TO_DO: [TaskStatus.IN_PROGRESS, TaskStatus.DONE],
    TaskStatus.IN_PROGRESS: [TaskStatus.DONE],
    TaskStatus.DONE: [],
}


def validate_transition(current: str, requested: str) -> None:
    """Raise ``InvalidTaskStateError`` if the transition is not allowed."""
    if current == TaskStatus.DONE:
        raise InvalidTaskStateError("Not allowed to change status of a completed task.")

    if requested == current:
        raise InvalidTaskStateError("The new status cannot be the same as the current status.")

    if requested == TaskStatus.OVERDUE:
        raise InvalidTaskStateError("You cannot manually set the task status to OVERDUE.")

    allowed = TASK_TRANSITIONS.get(current, [])
    if requested not in allowed:
        raise InvalidTaskStateError(
            f"Cannot transition task from '{current}' to '{requested}'. "
            f"Allowed: {', '.join(allowed) or 'none'}."
        )


def apply_status(
    task: Task,
    new_status: str,
    completion_comment: str | None = None,
    now: datetime | None = None,
) -> None:
    """Validate and apply a transition, stamping completion data on DONE."""
    validate_transition(task.status, new_status)

    task.status = new_status
    if new_status == TaskStatus.DONE:
        task.completed_at = now or utcnow()
        task.completion_comment = completion_comment


def is_overdue(task: Task, now: datetime | None = None) -> bool:
    return (
        task.due_date is not None
        and (now or utcnow()) > task.due_date
        and task.status != TaskStatus.DONE
    )


def effective_status(task: Task, now: datetime | None = None) -> str:
    if task.status == TaskStatus.DONE:
        return TaskStatus.DONE
    if is_overdue(task, now):
        return TaskStatus.OVERDUE
    return task.status


def validate_assignment_roles(roles: Iterable[str]) -> None:
    """OWNER is set automatically at task creation and never assigned."""
    if any(role == TaskRole.OWNER for role in roles):
        raise DomainValidationError(
            "The OWNER role cannot be assigned through this method. "
            "It is set automatically on task creation."
        )
