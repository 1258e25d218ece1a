"""Closed role and status sets.

Enums are data only; predicates over them live in plain functions.
"""

from enum import StrEnum


class TeamRole(StrEnum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class ProjectRole(StrEnum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class TaskRole(StrEnum):
    OWNER = "OWNER"
    ASSIGNEE = "ASSIGNEE"


class TaskStatus(StrEnum):
    TO_DO = "TO_DO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"
    # Computed on read, never stored.
    OVERDUE = "OVERDUE"


OWNER_ROLE = "OWNER"
PRIVILEGED_ROLES: frozenset[str] = frozenset({"OWNER", "ADMIN"})


def is_privileged(role: str) -> bool:
    """OWNER or ADMIN, for either team or project roles."""
    return role in PRIVILEGED_ROLES


def is_owner_role(role: str) -> bool:
    return role == OWNER_ROLE
