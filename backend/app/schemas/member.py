"""Team/project member request/response schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr

from app.models.enums import ProjectRole, TeamRole


class MemberInvite(BaseModel):
    email: EmailStr
    # OWNER passes shape validation and is rejected by the invitation rules.
    role: TeamRole = TeamRole.MEMBER


class MemberRoleUpdate(BaseModel):
    new_role: TeamRole


class ProjectMemberInvite(BaseModel):
    email: EmailStr
    role: ProjectRole = ProjectRole.MEMBER


class ProjectMemberRoleUpdate(BaseModel):
    new_role: ProjectRole


class MemberResponse(BaseModel):
    user_id: uuid.UUID
    username: str
    email: str
    role: str
    accepted_invite: bool
    joined_at: datetime

    @classmethod
    def from_membership(cls, membership) -> "MemberResponse":
        return cls(
            user_id=membership.user_id,
            username=membership.user.username,
            email=membership.user.email,
            role=membership.role,
            accepted_invite=membership.accepted_invite,
            joined_at=membership.joined_at,
        )
