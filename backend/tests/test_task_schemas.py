"""Task request schema rules: due dates and partial updates."""

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from app.db.base import utcnow
from app.schemas.task import TaskCreate, TaskUpdate


def test_create_rejects_past_due_date():
    with pytest.raises(ValidationError, match="present or the future"):
        TaskCreate(title="Late", due_date=utcnow() - timedelta(days=1))


def test_create_accepts_future_or_missing_due_date():
    due = utcnow() + timedelta(hours=1)
    assert TaskCreate(title="Soon", due_date=due).due_date == due
    assert TaskCreate(title="Whenever").due_date is None


def test_naive_due_date_is_read_as_utc():
    naive = datetime.now(UTC).replace(tzinfo=None, microsecond=0) + timedelta(days=2)
    task = TaskCreate(title="Naive", due_date=naive)
    assert task.due_date.tzinfo is not None
    assert task.due_date.replace(tzinfo=None) == naive


def test_update_requires_strictly_future_due_date():
    with pytest.raises(ValidationError, match="in the future"):
        TaskUpdate(due_date=utcnow() - timedelta(seconds=1))

    assert TaskUpdate(due_date=utcnow() + timedelta(days=1)).due_date is not None


def test_update_distinguishes_null_from_omitted_due_date():
    assert TaskUpdate(title="Renamed").clears_due_date is False
    assert TaskUpdate.model_validate({"due_date": None}).clears_due_date is True
    assert TaskUpdate(due_date=utcnow() + timedelta(days=1)).clears_due_date is False
