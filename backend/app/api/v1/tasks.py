"""Task endpoints, nested under projects, plus the caller's own tasks."""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db
from app.models.enums import TaskStatus
from app.models.user import User
from app.schemas.task import (
    AssignmentRequest,
    AssignmentResponse,
    RemoveAssigneesRequest,
    TaskCreate,
    TaskFilter,
    TaskResponse,
    TaskStatusUpdate,
    TaskUpdate,
)
from app.services import tasks
from app.services.filters import DEFAULT_LIMIT, MAX_LIMIT

project_tasks_router = APIRouter()
my_tasks_router = APIRouter()


def task_filters(
    title: str | None = Query(None, max_length=100),
    status: TaskStatus | None = Query(None),
    due_after: date | None = Query(None),
    due_before: date | None = Query(None),
    created_after: date | None = Query(None),
    created_before: date | None = Query(None),
    completed_after: date | None = Query(None),
    completed_before: date | None = Query(None),
) -> TaskFilter:
    """Shared query parameters of the task lists. ``status`` may be OVERDUE."""
    return TaskFilter(
        title=title,
        status=status,
        due_after=due_after,
        due_before=due_before,
        created_after=created_after,
        created_before=created_before,
        completed_after=completed_after,
        completed_before=completed_before,
    )


@project_tasks_router.post("/", response_model=TaskResponse, status_code=201)
async def create_task(
    project_id: uuid.UUID,
    body: TaskCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a task. The creator becomes its OWNER."""
    task = await tasks.create_task(
        db, user, project_id, body.title, body.description, body.due_date
    )
    return TaskResponse.from_task(task)


@project_tasks_router.get("/", response_model=list[TaskResponse])
async def list_tasks(
    project_id: uuid.UUID,
    filters: TaskFilter = Depends(task_filters),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    found = await tasks.list_tasks(db, user, project_id, filters, limit, offset)
    return [TaskResponse.from_task(t) for t in found]


@project_tasks_router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return TaskResponse.from_task(await tasks.get_task(db, user, project_id, task_id))


@project_tasks_router.get("/{task_id}/members", response_model=list[AssignmentResponse])
async def list_task_members(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    assignments = await tasks.list_task_members(db, user, project_id, task_id)
    return [AssignmentResponse.from_assignment(a) for a in assignments]


@project_tasks_router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    body: TaskUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update task details. Requires task OWNER or project ADMIN/OWNER."""
    task = await tasks.update_task(
        db,
        user,
        project_id,
        task_id,
        body.title,
        body.description,
        body.due_date,
        clear_due_date=body.clears_due_date,
    )
    return TaskResponse.from_task(task)


@project_tasks_router.patch("/{task_id}/status", response_model=TaskResponse)
async def update_task_status(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    body: TaskStatusUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Move the task along TO_DO → IN_PROGRESS → DONE.

    Allowed for the task OWNER, its assignees and project ADMIN/OWNER.
    """
    task = await tasks.update_task_status(
        db, user, project_id, task_id, body.new_status, body.completion_comment
    )
    return TaskResponse.from_task(task)


@project_tasks_router.post("/{task_id}/assign", response_model=TaskResponse)
async def assign_users(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    body: list[AssignmentRequest],
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await tasks.assign_users(
        db, user, project_id, task_id, [(a.user_id, a.task_role) for a in body]
    )
    return TaskResponse.from_task(task)


@project_tasks_router.post("/{task_id}/unassign", response_model=TaskResponse)
async def remove_assignees(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    body: RemoveAssigneesRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await tasks.remove_assignees(db, user, project_id, task_id, body.user_ids)
    return TaskResponse.from_task(task)


@project_tasks_router.delete("/{task_id}", status_code=204)
async def delete_task(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await tasks.delete_task(db, user, project_id, task_id)


@my_tasks_router.get("/me", response_model=list[TaskResponse])
async def list_my_tasks(
    filters: TaskFilter = Depends(task_filters),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Tasks the caller owns or is assigned to, across projects, soonest due first."""
    found = await tasks.list_my_tasks(db, user, filters, limit, offset)
    return [TaskResponse.from_task(t) for t in found]


@my_tasks_router.delete("/{task_id}/leave", status_code=204)
async def leave_task(
    task_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Leave a task. An OWNER hands it to the earliest assignee, or deletes it."""
    await tasks.leave_task(db, user, task_id)
