"""Project operations.

Projects differ from teams in two places: ADMINs may edit project details,
and members leaving or being removed are also released from the project's
tasks.
"""

import uuid
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import log_operation
from app.models.project import Project
from app.models.project_member import ProjectMember
from app.models.user import User
from app.schemas.common import ResourceFilter
from app.services.authorization import project_authorization
from app.services.email import EmailDispatcher
from app.services.filters import DEFAULT_LIMIT
from app.services.invitations import project_invitations
from app.services.resources import ResourceService
from app.services.tasks import delete_project_tasks, release_project_tasks


class ProjectService(ResourceService):
    async def destroy(self, db: AsyncSession, resource: Project) -> None:
        await delete_project_tasks(db, resource.id)
        await super().destroy(db, resource)

    async def after_member_removed(
        self, db: AsyncSession, resource: Project, user_id: uuid.UUID
    ) -> None:
        await release_project_tasks(db, resource.id, user_id)


project_service = ProjectService(
    Project,
    ProjectMember,
    project_authorization,
    project_invitations,
    name_field="title",
    update_requires_owner=False,
)


@log_operation("Create Project")
async def create_project(
    db: AsyncSession, user: User, title: str, description: str = ""
) -> Project:
    return await project_service.create(db, user, title, description)


async def get_project(db: AsyncSession, user: User, project_id: uuid.UUID) -> Project:
    return await project_service.get_for_member(db, user, project_id)


async def list_my_projects(
    db: AsyncSession,
    user: User,
    filters: ResourceFilter | None = None,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
) -> list[Project]:
    return await project_service.list_for_user(db, user, filters, limit, offset)


async def list_project_members(
    db: AsyncSession,
    user: User,
    project_id: uuid.UUID,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
) -> list[ProjectMember]:
    return await project_service.list_members(db, user, project_id, limit, offset)


@log_operation("Update Project")
async def update_project(
    db: AsyncSession,
    user: User,
    project_id: uuid.UUID,
    title: str | None = None,
    description: str | None = None,
) -> Project:
    return await project_service.update(db, user, project_id, title, description)


@log_operation("Delete Project")
async def delete_project(db: AsyncSession, user: User, project_id: uuid.UUID) -> None:
    await project_service.delete(db, user, project_id)


@log_operation("Invite Project Member")
async def invite_member(
    db: AsyncSession,
    user: User,
    project_id: uuid.UUID,
    email: str,
    role: str,
    mailer: EmailDispatcher,
) -> ProjectMember:
    return await project_service.invite(db, user, project_id, email, role, mailer)


@log_operation("Accept Project Invitation")
async def accept_invitation(db: AsyncSession, token: str) -> ProjectMember:
    return await project_service.accept_invitation(db, token)


@log_operation("Generate Project Invite Link")
async def generate_invite_link(
    db: AsyncSession, user: User, project_id: uuid.UUID
) -> tuple[str, datetime]:
    return await project_service.generate_invite_link(db, user, project_id)


@log_operation("Join Project Through Link")
async def accept_invite_link(db: AsyncSession, token: str, user: User) -> ProjectMember:
    return await project_service.accept_invite_link(db, token, user)


@log_operation("Update Project Member Role")
async def update_member_role(
    db: AsyncSession,
    user: User,
    project_id: uuid.UUID,
    member_user_id: uuid.UUID,
    new_role: str,
) -> ProjectMember:
    return await project_service.update_member_role(
        db, user, project_id, member_user_id, new_role
    )


@log_operation("Remove Project Member")
async def remove_member(
    db: AsyncSession, user: User, project_id: uuid.UUID, member_user_id: uuid.UUID
) -> None:
    await project_service.remove_member(db, user, project_id, member_user_id)


@log_operation("Leave Project")
async def leave_project(db: AsyncSession, user: User, project_id: uuid.UUID) -> None:
    """Leave the project and every task in it."""
    await project_service.leave(db, user, project_id)
