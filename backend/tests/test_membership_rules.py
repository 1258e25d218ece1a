"""Membership mutation validator tests."""

import uuid
from types import SimpleNamespace

import pytest

from app.core.exceptions import AccessDeniedError, DomainValidationError
from app.services.membership_rules import (
    validate_deletion,
    validate_invitation_role,
    validate_role_update,
)


def _member(role: str):
    return SimpleNamespace(id=uuid.uuid4(), role=role)


OWNER = _member("OWNER")
ADMIN = _member("ADMIN")
OTHER_ADMIN = _member("ADMIN")
MEMBER = _member("MEMBER")


def test_invitation_cannot_grant_owner():
    validate_invitation_role("ADMIN")
    validate_invitation_role("MEMBER")
    with pytest.raises(DomainValidationError):
        validate_invitation_role("OWNER")


@pytest.mark.parametrize("acting", [OWNER, ADMIN])
def test_owner_role_is_immutable(acting):
    with pytest.raises(AccessDeniedError):
        validate_role_update(acting, OWNER, "MEMBER")


def test_admin_cannot_change_another_admin():
    with pytest.raises(AccessDeniedError):
        validate_role_update(ADMIN, OTHER_ADMIN, "MEMBER")


def test_owner_can_demote_admin():
    validate_role_update(OWNER, ADMIN, "MEMBER")


def test_admin_can_promote_member():
    validate_role_update(ADMIN, MEMBER, "ADMIN")


@pytest.mark.parametrize("acting", [OWNER, ADMIN])
def test_nobody_can_promote_to_owner(acting):
    with pytest.raises(DomainValidationError):
        validate_role_update(acting, MEMBER, "OWNER")


def test_owner_cannot_remove_self():
    with pytest.raises(AccessDeniedError):
        validate_deletion(OWNER, OWNER)


def test_owner_can_remove_admin_and_member():
    validate_deletion(OWNER, ADMIN)
    validate_deletion(OWNER, MEMBER)


@pytest.mark.parametrize("target", [OWNER, OTHER_ADMIN])
def test_admin_cannot_remove_privileged(target):
    with pytest.raises(AccessDeniedError):
        validate_deletion(ADMIN, target)


def test_admin_can_remove_member():
    validate_deletion(ADMIN, MEMBER)
