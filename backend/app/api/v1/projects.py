"""Project endpoints: CRUD, members, invitations."""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, get_mailer
from app.models.user import User
from app.schemas.common import InviteLinkResponse, MessageResponse, ResourceFilter
from app.schemas.member import (
    MemberResponse,
    ProjectMemberInvite,
    ProjectMemberRoleUpdate,
)
from app.schemas.project import ProjectCreate, ProjectResponse, ProjectUpdate
from app.services import projects
from app.services.email import EmailDispatcher
from app.services.filters import DEFAULT_LIMIT, MAX_LIMIT

router = APIRouter()


@router.post("/", response_model=ProjectResponse, status_code=201)
async def create_project(
    body: ProjectCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a project. The authenticated user becomes its OWNER."""
    return await projects.create_project(db, user, body.title, body.description)


@router.get("/", response_model=list[ProjectResponse])
async def list_my_projects(
    title: str | None = Query(None, max_length=100),
    created_after: date | None = Query(None),
    created_before: date | None = Query(None),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Projects the caller belongs to. ``title`` matches any part, ignoring case."""
    filters = ResourceFilter(
        name=title, created_after=created_after, created_before=created_before
    )
    return await projects.list_my_projects(db, user, filters, limit, offset)


@router.get("/accept-invite", response_model=MessageResponse)
async def accept_invitation(
    token: str = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Accept an email invitation. The token alone identifies the invitee."""
    await projects.accept_invitation(db, token)
    return MessageResponse(message="Invitation accepted successfully.")


@router.post("/join", response_model=MemberResponse)
async def join_with_link(
    token: str = Query(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Join a project through its shareable invite link."""
    membership = await projects.accept_invite_link(db, token, user)
    return MemberResponse.from_membership(membership)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await projects.get_project(db, user, project_id)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: uuid.UUID,
    body: ProjectUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update project details. Requires ADMIN or OWNER."""
    return await projects.update_project(db, user, project_id, body.title, body.description)


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete the project with its memberships and tasks. Requires project OWNER."""
    await projects.delete_project(db, user, project_id)


@router.get("/{project_id}/members", response_model=list[MemberResponse])
async def list_members(
    project_id: uuid.UUID,
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List accepted members of the project."""
    members = await projects.list_project_members(db, user, project_id, limit, offset)
    return [MemberResponse.from_membership(m) for m in members]


@router.post("/{project_id}/invite", response_model=MemberResponse, status_code=201)
async def invite_member(
    project_id: uuid.UUID,
    body: ProjectMemberInvite,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    mailer: EmailDispatcher = Depends(get_mailer),
):
    """Invite a registered user by email. Requires ADMIN or OWNER."""
    membership = await projects.invite_member(db, user, project_id, body.email, body.role, mailer)
    return MemberResponse.from_membership(membership)


@router.post("/{project_id}/invite-link", response_model=InviteLinkResponse)
async def generate_invite_link(
    project_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create (or replace) the project's shareable invite link."""
    link, expires_at = await projects.generate_invite_link(db, user, project_id)
    return InviteLinkResponse(invite_link=link, expires_at=expires_at)


@router.patch("/{project_id}/members/{member_user_id}/role", response_model=MemberResponse)
async def update_member_role(
    project_id: uuid.UUID,
    member_user_id: uuid.UUID,
    body: ProjectMemberRoleUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    membership = await projects.update_member_role(
        db, user, project_id, member_user_id, body.new_role
    )
    return MemberResponse.from_membership(membership)


@router.delete("/{project_id}/members/{member_user_id}", status_code=204)
async def remove_member(
    project_id: uuid.UUID,
    member_user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await projects.remove_member(db, user, project_id, member_user_id)


@router.delete("/{project_id}/leave", status_code=204)
async def leave_project(
    project_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Leave the project. The OWNER cannot leave."""
    await projects.leave_project(db, user, project_id)
