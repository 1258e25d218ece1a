"""Legality rules for changing or removing a team/project membership.

Callers must already have passed ``check_admin`` on the resource. These
functions only compare the two memberships and the requested role.
"""

from app.core.exceptions import AccessDeniedError, DomainValidationError
from app.models.enums import is_owner_role, is_privileged


def validate_invitation_role(role: str) -> None:
    if is_owner_role(role):
        raise DomainValidationError("Cannot assign the OWNER role through an invitation.")


def validate_role_update(acting, target, new_role: str) -> None:
    if is_owner_role(target.role):
        raise AccessDeniedError("The OWNER's role cannot be changed.")

    if target.role == "ADMIN" and not is_owner_role(acting.role):
        raise AccessDeniedError("Only the OWNER can change an ADMIN's role.")

    if is_owner_role(new_role):
        raise DomainValidationError("Cannot promote a user to the OWNER role.")


def validate_deletion(acting, target) -> None:
    acting_is_owner = is_owner_role(acting.role)

    if acting_is_owner and acting.id == target.id:
        raise AccessDeniedError("OWNER cannot remove themselves.")

    if not acting_is_owner and is_privileged(target.role):
        raise AccessDeniedError("You cannot remove a member with role OWNER or ADMIN.")
