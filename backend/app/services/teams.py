"""Team operations."""

import uuid
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import log_operation
from app.models.team import Team
from app.models.team_member import TeamMember
from app.models.user import User
from app.schemas.common import ResourceFilter
from app.services.authorization import team_authorization
from app.services.email import EmailDispatcher
from app.services.filters import DEFAULT_LIMIT
from app.services.invitations import team_invitations
from app.services.resources import ResourceService

team_service = ResourceService(
    Team,
    TeamMember,
    team_authorization,
    team_invitations,
    name_field="name",
    update_requires_owner=True,
)


@log_operation("Create Team")
async def create_team(db: AsyncSession, user: User, name: str, description: str = "") -> Team:
    return await team_service.create(db, user, name, description)


async def get_team(db: AsyncSession, user: User, team_id: uuid.UUID) -> Team:
    return await team_service.get_for_member(db, user, team_id)


async def list_my_teams(
    db: AsyncSession,
    user: User,
    filters: ResourceFilter | None = None,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
) -> list[Team]:
    return await team_service.list_for_user(db, user, filters, limit, offset)


async def list_team_members(
    db: AsyncSession, user: User, team_id: uuid.UUID, limit: int = DEFAULT_LIMIT, offset: int = 0
) -> list[TeamMember]:
    return await team_service.list_members(db, user, team_id, limit, offset)


@log_operation("Update Team")
async def update_team(
    db: AsyncSession,
    user: User,
    team_id: uuid.UUID,
    name: str | None = None,
    description: str | None = None,
) -> Team:
    return await team_service.update(db, user, team_id, name, description)


@log_operation("Delete Team")
async def delete_team(db: AsyncSession, user: User, team_id: uuid.UUID) -> None:
    await team_service.delete(db, user, team_id)


@log_operation("Invite Team Member")
async def invite_member(
    db: AsyncSession,
    user: User,
    team_id: uuid.UUID,
    email: str,
    role: str,
    mailer: EmailDispatcher,
) -> TeamMember:
    return await team_service.invite(db, user, team_id, email, role, mailer)


@log_operation("Accept Team Invitation")
async def accept_invitation(db: AsyncSession, token: str) -> TeamMember:
    return await team_service.accept_invitation(db, token)


@log_operation("Generate Team Invite Link")
async def generate_invite_link(
    db: AsyncSession, user: User, team_id: uuid.UUID
) -> tuple[str, datetime]:
    return await team_service.generate_invite_link(db, user, team_id)


@log_operation("Join Team Through Link")
async def accept_invite_link(db: AsyncSession, token: str, user: User) -> TeamMember:
    return await team_service.accept_invite_link(db, token, user)


@log_operation("Update Team Member Role")
async def update_member_role(
    db: AsyncSession, user: User, team_id: uuid.UUID, member_user_id: uuid.UUID, new_role: str
) -> TeamMember:
    return await team_service.update_member_role(db, user, team_id, member_user_id, new_role)


@log_operation("Remove Team Member")
async def remove_member(
    db: AsyncSession, user: User, team_id: uuid.UUID, member_user_id: uuid.UUID
) -> None:
    await team_service.remove_member(db, user, team_id, member_user_id)


@log_operation("Leave Team")
async def leave_team(db: AsyncSession, user: User, team_id: uuid.UUID) -> None:
    await team_service.leave(db, user, team_id)
