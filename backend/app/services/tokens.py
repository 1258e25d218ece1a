"""Opaque single-use tokens with an absolute expiry."""

import uuid
from datetime import datetime, timedelta

from app.db.base import utcnow


def issue_token(ttl_hours: int, now: datetime | None = None) -> tuple[str, datetime]:
    """Return a new random token and its expiry ``ttl_hours`` from now."""
    return str(uuid.uuid4()), (now or utcnow()) + timedelta(hours=ttl_hours)


def is_expired(expiry: datetime | None, now: datetime | None = None) -> bool:
    """A missing expiry counts as expired."""
    return expiry is None or expiry < (now or utcnow())
