"""SQL clauses for list filters and paging."""

from datetime import UTC, date, datetime, time, timedelta

from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement

from app.db.base import utcnow
from app.models.enums import TaskStatus
from app.models.task import Task

DEFAULT_LIMIT = 50
MAX_LIMIT = 200


def _start_of(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


def contains_ci(column, text: str | None) -> list[ColumnElement]:
    """Case-insensitive substring match. Blank text matches everything."""
    if text is None or not text.strip():
        return []
    return [column.icontains(text.strip(), autoescape=True)]


def day_range(column, after: date | None, before: date | None) -> list[ColumnElement]:
    """``column`` falls on or after ``after`` and on or before ``before``."""
    clauses: list[ColumnElement] = []
    if after is not None:
        clauses.append(column >= _start_of(after))
    if before is not None:
        clauses.append(column < _start_of(before + timedelta(days=1)))
    return clauses


def effective_status_is(status: str | None, now: datetime | None = None) -> list[ColumnElement]:
    """Match tasks by the status reported on read, so OVERDUE is filterable."""
    if status is None:
        return []
    now = now or utcnow()
    overdue = and_(
        Task.status != TaskStatus.DONE, Task.due_date.is_not(None), Task.due_date < now
    )
    if status == TaskStatus.OVERDUE:
        return [overdue]
    if status == TaskStatus.DONE:
        return [Task.status == TaskStatus.DONE]
    return [Task.status == status, or_(Task.due_date.is_(None), Task.due_date >= now)]
