"""Task operations inside a project.

Every task is addressed through its project; a task id that belongs to a
different project is reported as not found.
"""

import logging
import uuid
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DomainValidationError, ResourceNotFoundError
from app.core.logging import log_operation
from app.models.enums import TaskRole
from app.models.project import Project
from app.models.project_member import ProjectMember
from app.models.task import Task
from app.models.task_assignment import TaskAssignment
from app.models.user import User
from app.schemas.task import TaskFilter
from app.services.authorization import project_authorization, task_authorization
from app.services.filters import DEFAULT_LIMIT, contains_ci, day_range, effective_status_is
from app.services.task_state import apply_status, validate_assignment_roles

logger = logging.getLogger(__name__)


async def get_project_or_404(db: AsyncSession, project_id: uuid.UUID) -> Project:
    project = await db.get(Project, project_id)
    if project is None:
        raise ResourceNotFoundError(f"Project not found with id: {project_id}")
    return project


async def get_task_or_404(db: AsyncSession, task_id: uuid.UUID) -> Task:
    task = await db.get(Task, task_id)
    if task is None:
        raise ResourceNotFoundError(f"Task with id '{task_id}' not found.")
    return task


async def get_project_task_or_404(
    db: AsyncSession, project_id: uuid.UUID, task_id: uuid.UUID
) -> Task:
    task = await db.get(Task, task_id)
    if task is None or task.project_id != project_id:
        raise ResourceNotFoundError(
            f"Task with id '{task_id}' not found in project with id '{project_id}'."
        )
    return task


@log_operation("Create Task")
async def create_task(
    db: AsyncSession,
    user: User,
    project_id: uuid.UUID,
    title: str,
    description: str = "",
    due_date: datetime | None = None,
) -> Task:
    project = await get_project_or_404(db, project_id)
    await project_authorization.check_membership(db, user, project)

    task = Task(
        project_id=project.id,
        owner_id=user.id,
        title=title,
        description=description or "",
        due_date=due_date,
    )
    task.add_assignment(TaskAssignment(user=user, user_id=user.id, role=TaskRole.OWNER))
    db.add(task)
    await db.flush()

    logger.info("User %s created task %s in project %s", user.id, task.id, project.id)
    return task


async def get_task(
    db: AsyncSession, user: User, project_id: uuid.UUID, task_id: uuid.UUID
) -> Task:
    task = await get_project_task_or_404(db, project_id, task_id)
    await task_authorization.check_view(db, user, task)
    return task


async def list_tasks(
    db: AsyncSession,
    user: User,
    project_id: uuid.UUID,
    filters: TaskFilter | None = None,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
) -> list[Task]:
    project = await get_project_or_404(db, project_id)
    await project_authorization.check_membership(db, user, project)

    result = await db.execute(
        select(Task)
        .where(Task.project_id == project.id, *_task_filter_clauses(filters))
        .order_by(Task.created_at, Task.id)
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all())


async def list_task_members(
    db: AsyncSession, user: User, project_id: uuid.UUID, task_id: uuid.UUID
) -> list[TaskAssignment]:
    task = await get_task(db, user, project_id, task_id)
    return sorted(task.assignments, key=lambda a: a.assigned_at)


async def list_my_tasks(
    db: AsyncSession,
    user: User,
    filters: TaskFilter | None = None,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
) -> list[Task]:
    """Tasks the user owns or is assigned to, across all projects."""
    result = await db.execute(
        select(Task)
        .join(TaskAssignment, TaskAssignment.task_id == Task.id)
        .where(TaskAssignment.user_id == user.id, *_task_filter_clauses(filters))
        .order_by(Task.due_date.is_(None), Task.due_date, Task.created_at, Task.id)
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all())


def _task_filter_clauses(filters: TaskFilter | None) -> list:
    if filters is None:
        return []
    return [
        *contains_ci(Task.title, filters.title),
        *effective_status_is(filters.status),
        *day_range(Task.due_date, filters.due_after, filters.due_before),
        *day_range(Task.created_at, filters.created_after, filters.created_before),
        *day_range(Task.completed_at, filters.completed_after, filters.completed_before),
    ]


@log_operation("Update Task Details")
async def update_task(
    db: AsyncSession,
    user: User,
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    title: str | None = None,
    description: str | None = None,
    due_date: datetime | None = None,
    clear_due_date: bool = False,
) -> Task:
    """Apply the given fields. ``None`` leaves a field unchanged."""
    task = await get_project_task_or_404(db, project_id, task_id)
    await task_authorization.check_edit(db, user, task)

    if title is not None:
        task.title = title
    if description is not None:
        task.description = description
    if clear_due_date:
        task.due_date = None
    elif due_date is not None:
        task.due_date = due_date

    await db.flush()
    return task


@log_operation("Update Task Status")
async def update_task_status(
    db: AsyncSession,
    user: User,
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    new_status: str,
    completion_comment: str | None = None,
) -> Task:
    task = await get_project_task_or_404(db, project_id, task_id)
    await task_authorization.check_change_status(db, user, task)

    # Decide on the row as it is now, not as it was when first loaded.
    result = await db.execute(
        select(Task)
        .where(Task.id == task.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    task = result.scalar_one()

    apply_status(task, new_status, completion_comment)
    await db.flush()

    logger.info("User %s moved task %s to %s", user.id, task.id, new_status)
    return task


@log_operation("Assign Users to Task")
async def assign_users(
    db: AsyncSession,
    user: User,
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    assignments: Iterable[tuple[uuid.UUID, str]],
) -> Task:
    """Add (user_id, role) pairs. Users already on the task are skipped."""
    task = await get_project_task_or_404(db, project_id, task_id)
    await task_authorization.check_edit(db, user, task)

    requested = dict(assignments)
    validate_assignment_roles(requested.values())

    members: dict[uuid.UUID, User] = {}
    if requested:
        result = await db.execute(
            select(User)
            .join(ProjectMember, ProjectMember.user_id == User.id)
            .where(
                ProjectMember.project_id == project_id,
                ProjectMember.user_id.in_(list(requested)),
                ProjectMember.accepted_invite.is_(True),
            )
        )
        members = {u.id: u for u in result.scalars().all()}
        if set(members) != set(requested):
            raise DomainValidationError("One or more users are not valid members of this project.")

    for user_id, role in requested.items():
        if task.assignment_for(user_id) is None:
            task.add_assignment(TaskAssignment(user=members[user_id], user_id=user_id, role=role))

    await db.flush()
    return task


@log_operation("Remove Users from Task")
async def remove_assignees(
    db: AsyncSession,
    user: User,
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    user_ids: Iterable[uuid.UUID],
) -> Task:
    task = await get_project_task_or_404(db, project_id, task_id)
    await task_authorization.check_edit(db, user, task)

    to_remove = set(user_ids)
    if task.owner_id in to_remove:
        raise DomainValidationError("The task owner cannot be removed.")

    for assignment in [a for a in task.assignments if a.user_id in to_remove]:
        task.remove_assignment(assignment)

    await db.flush()
    return task


@log_operation("Delete Task")
async def delete_task(
    db: AsyncSession, user: User, project_id: uuid.UUID, task_id: uuid.UUID
) -> None:
    task = await get_project_task_or_404(db, project_id, task_id)
    await task_authorization.check_edit(db, user, task)

    await db.delete(task)
    await db.flush()
    logger.info("User %s deleted task %s", user.id, task_id)


@log_operation("Leave Task")
async def leave_task(db: AsyncSession, user: User, task_id: uuid.UUID) -> None:
    task = await get_task_or_404(db, task_id)
    await task_authorization.check_change_status(db, user, task)
    await release_task(db, task, user.id)


async def release_task(db: AsyncSession, task: Task, user_id: uuid.UUID) -> None:
    """Remove ``user_id`` from the task.

    An owner hands the task to the earliest remaining assignee; an owner
    with nobody left deletes it.
    """
    own = task.assignment_for(user_id)
    if own is None:
        raise ResourceNotFoundError("User to update not found in this task.")

    if task.owner_id != user_id:
        task.remove_assignment(own)
        await db.flush()
        return

    others = sorted(
        (a for a in task.assignments if a.user_id != user_id), key=lambda a: a.assigned_at
    )
    if not others:
        await db.delete(task)
        await db.flush()
        logger.info("Deleted task %s with its last assignee", task.id)
        return

    # The OWNER row has to be flushed away before another row becomes OWNER.
    task.remove_assignment(own)
    await db.flush()
    task.transfer_ownership(others[0])
    await db.flush()
    logger.info("Transferred task %s ownership to %s", task.id, others[0].user_id)


async def release_project_tasks(db: AsyncSession, project_id: uuid.UUID, user_id: uuid.UUID) -> None:
    """Release every task in the project that ``user_id`` is attached to."""
    result = await db.execute(
        select(Task)
        .join(TaskAssignment, TaskAssignment.task_id == Task.id)
        .where(Task.project_id == project_id, TaskAssignment.user_id == user_id)
    )
    for task in list(result.scalars().unique().all()):
        await release_task(db, task, user_id)


async def release_all_tasks(db: AsyncSession, user_id: uuid.UUID) -> None:
    result = await db.execute(
        select(Task)
        .join(TaskAssignment, TaskAssignment.task_id == Task.id)
        .where(TaskAssignment.user_id == user_id)
    )
    for task in list(result.scalars().unique().all()):
        await release_task(db, task, user_id)


async def delete_project_tasks(db: AsyncSession, project_id: uuid.UUID) -> None:
    result = await db.execute(select(Task).where(Task.project_id == project_id))
    for task in result.scalars().all():
        await db.delete(task)
    await db.flush()
