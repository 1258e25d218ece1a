"""Invitation lifecycle for teams and projects.

Two flows share one manager per resource kind:

* email: an admin invites a registered user by address; a pending
  membership holds a single-use token until the invitee accepts it.
* link: an admin publishes one shareable token on the resource; any user
  presenting it joins immediately as MEMBER. The link token is not consumed,
  so repeat joins are stopped only by the (user, resource) uniqueness check.

Expired and unknown tokens are both reported as not found.
"""

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    DomainValidationError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
)
from app.models.enums import ProjectRole, TeamRole
from app.models.project import Project
from app.models.project_member import ProjectMember
from app.models.team import Team
from app.models.team_member import TeamMember
from app.models.user import User
from app.services.authorization import (
    ResourceAuthorization,
    project_authorization,
    team_authorization,
)
from app.services.email import EmailDispatcher
from app.services.membership_rules import validate_invitation_role
from app.services.tokens import is_expired, issue_token

logger = logging.getLogger(__name__)


class InvitationManager:
    def __init__(
        self,
        resource_model: type,
        membership_model: type,
        authorization: ResourceAuthorization,
        member_role: str,
        route: str,
        email_method: str,
    ) -> None:
        self.resource_model = resource_model
        self.membership_model = membership_model
        self.authorization = authorization
        self.member_role = member_role
        self.route = route
        self.email_method = email_method

    @property
    def label(self) -> str:
        return self.authorization.label

    def _already_member(self) -> ResourceAlreadyExistsError:
        return ResourceAlreadyExistsError(f"User is already a member of this {self.label}.")

    async def _add_membership(self, db: AsyncSession, resource, membership) -> None:
        """Attach and flush; the store's unique (resource, user) constraint is final."""
        resource.add_member(membership)
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            raise self._already_member() from exc

    # -- email flow ---------------------------------------------------------

    async def invite(
        self,
        db: AsyncSession,
        resource,
        inviter: User,
        invitee_email: str,
        role: str,
        mailer: EmailDispatcher,
    ):
        await self.authorization.check_admin(db, inviter, resource)
        validate_invitation_role(role)

        result = await db.execute(
            select(User).where(func.lower(User.email) == invitee_email.strip().lower())
        )
        invitee = result.scalar_one_or_none()
        if invitee is None:
            raise ResourceNotFoundError(f"User to invite not found with email: {invitee_email}")

        if await self.authorization.get_membership(db, invitee.id, resource) is not None:
            raise self._already_member()

        token, expiry = issue_token(settings.INVITATION_TOKEN_TTL_HOURS)
        membership = self.membership_model(
            user=invitee,
            user_id=invitee.id,
            role=role,
            accepted_invite=False,
            invitation_token=token,
            invitation_token_expiry=expiry,
        )
        await self._add_membership(db, resource, membership)

        logger.info(
            "User %s invited %s to %s %s as %s", inviter.id, invitee.id, self.label, resource.id, role
        )
        getattr(mailer, self.email_method)(invitee.email, resource.display_name, token)
        return membership

    async def accept_invitation(self, db: AsyncSession, token: str):
        if not token or not token.strip():
            raise DomainValidationError("Invitation token cannot be null or empty.")

        model = self.membership_model
        result = await db.execute(
            select(model).where(model.invitation_token == token).with_for_update()
        )
        membership = result.scalar_one_or_none()
        if membership is None:
            raise ResourceNotFoundError("Invalid invitation.")

        if is_expired(membership.invitation_token_expiry):
            raise ResourceNotFoundError("Invitation token has expired.")

        membership.accept_invitation()
        await db.flush()
        logger.info("User %s accepted %s invitation", membership.user_id, self.label)
        return membership

    # -- link flow ----------------------------------------------------------

    async def generate_invite_link(
        self, db: AsyncSession, resource, acting_user: User
    ) -> tuple[str, datetime]:
        """Replace the resource's link token and return (join URL, expiry)."""
        await self.authorization.check_admin(db, acting_user, resource)

        token, expiry = issue_token(settings.INVITATION_TOKEN_TTL_HOURS)
        resource.invitation_token = token
        resource.invitation_token_expiry = expiry
        await db.flush()

        return f"{settings.BASE_URL}/api/v1/{self.route}/join?token={token}", expiry

    async def accept_invite_link(self, db: AsyncSession, token: str, user: User):
        if not token or not token.strip():
            raise DomainValidationError("Invitation token cannot be null or empty.")

        model = self.resource_model
        result = await db.execute(select(model).where(model.invitation_token == token))
        resource = result.scalar_one_or_none()
        if resource is None:
            raise ResourceNotFoundError("Invalid invitation.")

        if not resource.is_link_token_valid():
            raise ResourceNotFoundError("Invitation token has expired.")

        if await self.authorization.get_membership(db, user.id, resource) is not None:
            raise self._already_member()

        membership = self.membership_model(
            user=user,
            user_id=user.id,
            role=self.member_role,
            accepted_invite=True,
        )
        await self._add_membership(db, resource, membership)
        logger.info("User %s joined %s %s through invite link", user.id, self.label, resource.id)
        return membership


team_invitations = InvitationManager(
    Team,
    TeamMember,
    team_authorization,
    member_role=TeamRole.MEMBER,
    route="teams",
    email_method="send_team_invitation_email",
)

project_invitations = InvitationManager(
    Project,
    ProjectMember,
    project_authorization,
    member_role=ProjectRole.MEMBER,
    route="projects",
    email_method="send_project_invitation_email",
)
