"""Team and project operations that share one shape.

Both resources are aggregates owning their membership rows, named by an
owner-unique (case-insensitive) display field, guarded by a
``ResourceAuthorization`` and invited into through an ``InvitationManager``.
"""

import logging
import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AccessDeniedError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
)
from app.models.enums import OWNER_ROLE, is_owner_role, is_privileged
from app.models.user import User
from app.schemas.common import ResourceFilter
from app.services.authorization import ResourceAuthorization
from app.services.email import EmailDispatcher
from app.services.filters import DEFAULT_LIMIT, contains_ci, day_range
from app.services.invitations import InvitationManager
from app.services.membership_rules import validate_deletion, validate_role_update

logger = logging.getLogger(__name__)


def succession_order(membership) -> tuple:
    """Admins first, then by join time."""
    return (not is_privileged(membership.role), membership.joined_at)


class ResourceService:
    def __init__(
        self,
        resource_model: type,
        membership_model: type,
        authorization: ResourceAuthorization,
        invitations: InvitationManager,
        name_field: str,
        update_requires_owner: bool,
    ) -> None:
        self.resource_model = resource_model
        self.membership_model = membership_model
        self.authorization = authorization
        self.invitations = invitations
        self.name_field = name_field
        self.update_requires_owner = update_requires_owner

    @property
    def label(self) -> str:
        return self.authorization.label

    # -- lookups ------------------------------------------------------------

    async def get(self, db: AsyncSession, resource_id: uuid.UUID):
        resource = await db.get(self.resource_model, resource_id)
        if resource is None:
            raise ResourceNotFoundError(
                f"{self.label.capitalize()} not found with id: {resource_id}"
            )
        return resource

    async def get_for_member(self, db: AsyncSession, user: User, resource_id: uuid.UUID):
        resource = await self.get(db, resource_id)
        await self.authorization.check_membership(db, user, resource)
        return resource

    async def list_for_user(
        self,
        db: AsyncSession,
        user: User,
        filters: ResourceFilter | None = None,
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
    ) -> list:
        """Resources where the user holds an accepted membership, oldest first."""
        filters = filters or ResourceFilter()
        model = self.membership_model
        resource_column = getattr(model, self.authorization.resource_column)
        created_at = self.resource_model.created_at
        result = await db.execute(
            select(self.resource_model)
            .join(model, resource_column == self.resource_model.id)
            .where(
                model.user_id == user.id,
                model.accepted_invite.is_(True),
                *contains_ci(getattr(self.resource_model, self.name_field), filters.name),
                *day_range(created_at, filters.created_after, filters.created_before),
            )
            .order_by(created_at, self.resource_model.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_members(
        self,
        db: AsyncSession,
        user: User,
        resource_id: uuid.UUID,
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
    ) -> list:
        resource = await self.get_for_member(db, user, resource_id)
        accepted = sorted(
            (m for m in resource.members if m.accepted_invite), key=lambda m: m.joined_at
        )
        return accepted[offset : offset + limit]

    async def _ensure_name_available(
        self, db: AsyncSession, owner_id: uuid.UUID, name: str, exclude_id: uuid.UUID | None = None
    ) -> None:
        column = getattr(self.resource_model, self.name_field)
        stmt = select(self.resource_model.id).where(
            self.resource_model.owner_id == owner_id,
            func.lower(column) == name.strip().lower(),
        )
        if exclude_id is not None:
            stmt = stmt.where(self.resource_model.id != exclude_id)
        if (await db.execute(stmt)).first() is not None:
            raise ResourceAlreadyExistsError(
                f"{self.label.capitalize()} {self.name_field} already in use by this creator."
            )

    # -- lifecycle ----------------------------------------------------------

    async def create(self, db: AsyncSession, owner: User, name: str, description: str = ""):
        await self._ensure_name_available(db, owner.id, name)

        resource = self.resource_model(
            **{self.name_field: name.strip()},
            description=description or "",
            owner_id=owner.id,
        )
        resource.add_member(
            self.membership_model(
                user=owner, user_id=owner.id, role=OWNER_ROLE, accepted_invite=True
            )
        )
        db.add(resource)
        await db.flush()

        logger.info("User %s created %s %s", owner.id, self.label, resource.id)
        return resource

    async def update(
        self,
        db: AsyncSession,
        user: User,
        resource_id: uuid.UUID,
        name: str | None = None,
        description: str | None = None,
    ):
        resource = await self.get(db, resource_id)
        if self.update_requires_owner:
            self.authorization.check_owner(user, resource)
        else:
            await self.authorization.check_admin(db, user, resource)

        if name is not None and name.strip().lower() != getattr(resource, self.name_field).lower():
            await self._ensure_name_available(db, resource.owner_id, name, exclude_id=resource.id)
        if name is not None:
            setattr(resource, self.name_field, name.strip())
        if description is not None:
            resource.description = description

        await db.flush()
        return resource

    async def delete(self, db: AsyncSession, user: User, resource_id: uuid.UUID) -> None:
        resource = await self.get(db, resource_id)
        self.authorization.check_owner(user, resource)
        await self.destroy(db, resource)
        logger.info("User %s deleted %s %s", user.id, self.label, resource_id)

    async def destroy(self, db: AsyncSession, resource) -> None:
        """Delete the resource and everything it owns."""
        await db.delete(resource)
        await db.flush()

    # -- invitations --------------------------------------------------------

    async def invite(
        self,
        db: AsyncSession,
        user: User,
        resource_id: uuid.UUID,
        email: str,
        role: str,
        mailer: EmailDispatcher,
    ):
        resource = await self.get(db, resource_id)
        return await self.invitations.invite(db, resource, user, email, role, mailer)

    async def accept_invitation(self, db: AsyncSession, token: str):
        return await self.invitations.accept_invitation(db, token)

    async def generate_invite_link(
        self, db: AsyncSession, user: User, resource_id: uuid.UUID
    ) -> tuple[str, datetime]:
        resource = await self.get(db, resource_id)
        return await self.invitations.generate_invite_link(db, resource, user)

    async def accept_invite_link(self, db: AsyncSession, token: str, user: User):
        return await self.invitations.accept_invite_link(db, token, user)

    # -- membership mutations -----------------------------------------------

    async def update_member_role(
        self,
        db: AsyncSession,
        user: User,
        resource_id: uuid.UUID,
        member_user_id: uuid.UUID,
        new_role: str,
    ):
        resource = await self.get(db, resource_id)
        await self.authorization.check_admin(db, user, resource)

        acting = await self.authorization.get_membership_or_404(db, user.id, resource)
        target = await self.authorization.get_membership_or_404(db, member_user_id, resource)
        validate_role_update(acting, target, new_role)

        target.change_role(new_role)
        await db.flush()
        logger.info(
            "User %s set role of %s in %s %s to %s",
            user.id,
            member_user_id,
            self.label,
            resource.id,
            new_role,
        )
        return target

    async def remove_member(
        self, db: AsyncSession, user: User, resource_id: uuid.UUID, member_user_id: uuid.UUID
    ) -> None:
        resource = await self.get(db, resource_id)
        await self.authorization.check_admin(db, user, resource)

        acting = await self.authorization.get_membership_or_404(db, user.id, resource)
        target = await self.authorization.get_membership_or_404(db, member_user_id, resource)
        validate_deletion(acting, target)

        resource.remove_member(target)
        await db.flush()
        await self.after_member_removed(db, resource, member_user_id)

    async def leave(self, db: AsyncSession, user: User, resource_id: uuid.UUID) -> None:
        resource = await self.get(db, resource_id)
        membership = await self.authorization.get_membership_or_404(db, user.id, resource)
        if is_owner_role(membership.role):
            raise AccessDeniedError(
                f"The OWNER cannot leave the {self.label}. Delete it instead."
            )

        resource.remove_member(membership)
        await db.flush()
        await self.after_member_removed(db, resource, user.id)
        logger.info("User %s left %s %s", user.id, self.label, resource.id)

    async def after_member_removed(self, db: AsyncSession, resource, user_id: uuid.UUID) -> None:
        """Hook for resources whose children reference the removed user."""

    # -- account deletion -----------------------------------------------------

    async def release_user(self, db: AsyncSession, user_id: uuid.UUID) -> None:
        """Drop every membership of ``user_id``, handing off or deleting owned resources."""
        model = self.membership_model
        result = await db.execute(select(model).where(model.user_id == user_id))
        for membership in list(result.scalars().all()):
            resource_id = membership.resource_id
            resource = await self.get(db, resource_id)

            if resource.owner_id != user_id:
                resource.remove_member(membership)
                await db.flush()
                await self.after_member_removed(db, resource, user_id)
                continue

            successors = sorted(
                (m for m in resource.members if m.user_id != user_id and m.accepted_invite),
                key=succession_order,
            )
            if not successors:
                await self.destroy(db, resource)
                logger.info("Deleted %s %s with its last member", self.label, resource_id)
                continue

            # The old OWNER row must be gone before another row takes the role.
            resource.remove_member(membership)
            await db.flush()
            resource.transfer_ownership(successors[0])
            await db.flush()
            await self.after_member_removed(db, resource, user_id)
            logger.info(
                "Transferred %s %s ownership to %s",
                self.label,
                resource_id,
                successors[0].user_id,
            )
