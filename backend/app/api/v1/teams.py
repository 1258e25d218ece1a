"""Team endpoints: CRUD, members, invitations."""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, get_mailer
from app.models.user import User
from app.schemas.common import InviteLinkResponse, MessageResponse, ResourceFilter
from app.schemas.member import MemberInvite, MemberResponse, MemberRoleUpdate
from app.schemas.team import TeamCreate, TeamResponse, TeamUpdate
from app.services import teams
from app.services.email import EmailDispatcher
from app.services.filters import DEFAULT_LIMIT, MAX_LIMIT

router = APIRouter()


@router.post("/", response_model=TeamResponse, status_code=201)
async def create_team(
    body: TeamCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a team. The authenticated user becomes its OWNER."""
    return await teams.create_team(db, user, body.name, body.description)


@router.get("/", response_model=list[TeamResponse])
async def list_my_teams(
    name: str | None = Query(None, max_length=50),
    created_after: date | None = Query(None),
    created_before: date | None = Query(None),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Teams the caller belongs to. ``name`` matches any part, ignoring case."""
    filters = ResourceFilter(
        name=name, created_after=created_after, created_before=created_before
    )
    return await teams.list_my_teams(db, user, filters, limit, offset)


@router.get("/accept-invite", response_model=MessageResponse)
async def accept_invitation(
    token: str = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Accept an email invitation. The token alone identifies the invitee."""
    await teams.accept_invitation(db, token)
    return MessageResponse(message="Invitation accepted successfully.")


@router.post("/join", response_model=MemberResponse)
async def join_with_link(
    token: str = Query(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Join a team through its shareable invite link."""
    membership = await teams.accept_invite_link(db, token, user)
    return MemberResponse.from_membership(membership)


@router.get("/{team_id}", response_model=TeamResponse)
async def get_team(
    team_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await teams.get_team(db, user, team_id)


@router.patch("/{team_id}", response_model=TeamResponse)
async def update_team(
    team_id: uuid.UUID,
    body: TeamUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update team details. Requires team OWNER."""
    return await teams.update_team(db, user, team_id, body.name, body.description)


@router.delete("/{team_id}", status_code=204)
async def delete_team(
    team_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete the team and all its memberships. Requires team OWNER."""
    await teams.delete_team(db, user, team_id)


@router.get("/{team_id}/members", response_model=list[MemberResponse])
async def list_members(
    team_id: uuid.UUID,
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List accepted members of the team."""
    members = await teams.list_team_members(db, user, team_id, limit, offset)
    return [MemberResponse.from_membership(m) for m in members]


@router.post("/{team_id}/invite", response_model=MemberResponse, status_code=201)
async def invite_member(
    team_id: uuid.UUID,
    body: MemberInvite,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    mailer: EmailDispatcher = Depends(get_mailer),
):
    """Invite a registered user by email. Requires ADMIN or OWNER."""
    membership = await teams.invite_member(db, user, team_id, body.email, body.role, mailer)
    return MemberResponse.from_membership(membership)


@router.post("/{team_id}/invite-link", response_model=InviteLinkResponse)
async def generate_invite_link(
    team_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create (or replace) the team's shareable invite link."""
    link, expires_at = await teams.generate_invite_link(db, user, team_id)
    return InviteLinkResponse(invite_link=link, expires_at=expires_at)


@router.patch("/{team_id}/members/{member_user_id}/role", response_model=MemberResponse)
async def update_member_role(
    team_id: uuid.UUID,
    member_user_id: uuid.UUID,
    body: MemberRoleUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    membership = await teams.update_member_role(db, user, team_id, member_user_id, body.new_role)
    return MemberResponse.from_membership(membership)


@router.delete("/{team_id}/members/{member_user_id}", status_code=204)
async def remove_member(
    team_id: uuid.UUID,
    member_user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await teams.remove_member(db, user, team_id, member_user_id)


@router.delete("/{team_id}/leave", status_code=204)
async def leave_team(
    team_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Leave the team. The OWNER cannot leave."""
    await teams.leave_team(db, user, team_id)
