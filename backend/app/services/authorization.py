"""Membership and role authorization for teams, projects and tasks.

``ResourceAuthorization`` is instantiated once per resource kind. The
predicates never raise; the ``check_*`` guards raise ``AccessDeniedError``
and are called at the start of every mutating operation.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AccessDeniedError, ResourceNotFoundError
from app.models.enums import TaskRole, is_privileged
from app.models.project import Project
from app.models.project_member import ProjectMember
from app.models.task import Task
from app.models.team_member import TeamMember
from app.models.user import User


class ResourceAuthorization:
    def __init__(self, membership_model: type, resource_column: str, label: str) -> None:
        self.membership_model = membership_model
        self.resource_column = resource_column
        self.label = label

    async def get_membership(self, db: AsyncSession, user_id: uuid.UUID, resource):
        """Membership row for (user, resource), pending or accepted."""
        model = self.membership_model
        result = await db.execute(
            select(model).where(
                model.user_id == user_id,
                getattr(model, self.resource_column) == resource.id,
            )
        )
        return result.scalar_one_or_none()

    async def get_membership_or_404(self, db: AsyncSession, user_id: uuid.UUID, resource):
        membership = await self.get_membership(db, user_id, resource)
        if membership is None:
            raise ResourceNotFoundError(f"User not found in this {self.label}.")
        return membership

    async def is_member(self, db: AsyncSession, user: User, resource) -> bool:
        membership = await self.get_membership(db, user.id, resource)
        return membership is not None and membership.accepted_invite

    async def is_admin(self, db: AsyncSession, user: User, resource) -> bool:
        membership = await self.get_membership(db, user.id, resource)
        return (
            membership is not None
            and membership.accepted_invite
            and is_privileged(membership.role)
        )

    def is_owner(self, user: User, resource) -> bool:
        return resource.owner_id == user.id

    async def check_membership(self, db: AsyncSession, user: User, resource) -> None:
        if not await self.is_member(db, user, resource):
            raise AccessDeniedError(f"Access denied. You are not a member of this {self.label}.")

    async def check_admin(self, db: AsyncSession, user: User, resource) -> None:
        if not await self.is_admin(db, user, resource):
            raise AccessDeniedError(
                f"Permission denied. Action requires ADMIN or OWNER role for this {self.label}."
            )

    def check_owner(self, user: User, resource) -> None:
        if not self.is_owner(user, resource):
            raise AccessDeniedError(
                f"Permission denied. Action requires {self.label.upper()} OWNER role."
            )


team_authorization = ResourceAuthorization(TeamMember, "team_id", "team")
project_authorization = ResourceAuthorization(ProjectMember, "project_id", "project")


class TaskAuthorization:
    """Task gates layered on project authorization.

    Status changes are open to a wider set (assignees) than edits.
    """

    def __init__(self, projects: ResourceAuthorization) -> None:
        self.projects = projects

    async def _project(self, db: AsyncSession, task: Task) -> Project:
        project = await db.get(Project, task.project_id)
        if project is None:
            raise ResourceNotFoundError(f"Project not found with id: {task.project_id}")
        return project

    def is_task_owner(self, user: User, task: Task) -> bool:
        return task.owner_id == user.id

    def is_assignee(self, user: User, task: Task) -> bool:
        return any(
            a.user_id == user.id and a.role == TaskRole.ASSIGNEE for a in task.assignments
        )

    async def check_view(self, db: AsyncSession, user: User, task: Task) -> None:
        await self.projects.check_membership(db, user, await self._project(db, task))

    async def check_edit(self, db: AsyncSession, user: User, task: Task) -> None:
        await self.check_view(db, user, task)
        if self.is_task_owner(user, task):
            return
        if await self.projects.is_admin(db, user, await self._project(db, task)):
            return
        raise AccessDeniedError(
            "Permission denied. Only the task owner or a project admin or project owner "
            "can edit this task."
        )

    async def check_change_status(self, db: AsyncSession, user: User, task: Task) -> None:
        await self.check_view(db, user, task)
        if self.is_task_owner(user, task) or self.is_assignee(user, task):
            return
        if await self.projects.is_admin(db, user, await self._project(db, task)):
            return
        raise AccessDeniedError(
            "Permission denied. Only the task owner or a project owner/admin or an assignee "
            "can change the status of this task."
        )


task_authorization = TaskAuthorization(project_authorization)
