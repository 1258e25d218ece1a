"""Task request/response schemas."""

import uuid
from datetime import UTC, date, datetime

from pydantic import BaseModel, Field, field_validator

from app.db.base import utcnow
from app.models.enums import TaskRole, TaskStatus
from app.models.task import Task
from app.services.task_state import effective_status


def _as_utc(v: datetime | None) -> datetime | None:
    if v is not None and v.tzinfo is None:
        return v.replace(tzinfo=UTC)
    return v


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=500)
    due_date: datetime | None = None

    @field_validator("due_date")
    @classmethod
    def due_date_not_past(cls, v: datetime | None) -> datetime | None:
        v = _as_utc(v)
        if v is not None and v < utcnow():
            raise ValueError("The due date must be in the present or the future.")
        return v


class TaskUpdate(BaseModel):
    """Partial update. Sending ``due_date: null`` clears the due date."""

    title: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    due_date: datetime | None = None

    @field_validator("due_date")
    @classmethod
    def due_date_in_future(cls, v: datetime | None) -> datetime | None:
        v = _as_utc(v)
        if v is not None and v <= utcnow():
            raise ValueError("The due date must be in the future.")
        return v

    @property
    def clears_due_date(self) -> bool:
        return "due_date" in self.model_fields_set and self.due_date is None


class TaskStatusUpdate(BaseModel):
    new_status: TaskStatus
    completion_comment: str | None = Field(None, max_length=300)


class AssignmentRequest(BaseModel):
    user_id: uuid.UUID
    # OWNER passes shape validation and is rejected by the assignment rules.
    task_role: TaskRole = TaskRole.ASSIGNEE


class RemoveAssigneesRequest(BaseModel):
    user_ids: list[uuid.UUID] = Field(..., min_length=1)


class TaskFilter(BaseModel):
    """Task list filters. Date bounds are inclusive calendar days (UTC)."""

    title: str | None = None
    status: TaskStatus | None = None
    due_after: date | None = None
    due_before: date | None = None
    created_after: date | None = None
    created_before: date | None = None
    completed_after: date | None = None
    completed_before: date | None = None


class AssignmentResponse(BaseModel):
    user_id: uuid.UUID
    username: str
    role: str
    assigned_at: datetime

    @classmethod
    def from_assignment(cls, assignment) -> "AssignmentResponse":
        return cls(
            user_id=assignment.user_id,
            username=assignment.user.username,
            role=assignment.role,
            assigned_at=assignment.assigned_at,
        )


class TaskResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    description: str
    status: str
    due_date: datetime | None = None
    completed_at: datetime | None = None
    completion_comment: str | None = None
    created_at: datetime
    assignments: list[AssignmentResponse] = []

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        """Report OVERDUE in place of the stored status when it applies."""
        return cls(
            id=task.id,
            project_id=task.project_id,
            owner_id=task.owner_id,
            title=task.title,
            description=task.description,
            status=effective_status(task),
            due_date=task.due_date,
            completed_at=task.completed_at,
            completion_comment=task.completion_comment,
            created_at=task.created_at,
            assignments=[
                AssignmentResponse.from_assignment(a)
                for a in sorted(task.assignments, key=lambda a: a.assigned_at)
            ],
        )
