import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, UTCDateTime, utcnow
from app.models.enums import TaskRole, TaskStatus


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint(
            "status IN ('TO_DO', 'IN_PROGRESS', 'DONE')",
            name="ck_tasks_status",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(30), nullable=False, default=TaskStatus.TO_DO)
    due_date: Mapped[datetime | None] = mapped_column(UTCDateTime)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    completion_comment: Mapped[str | None] = mapped_column(String(300))
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime | None] = mapped_column(UTCDateTime, onupdate=utcnow)

    project: Mapped["Project"] = relationship(back_populates="tasks")  # noqa: F821
    assignments: Mapped[list["TaskAssignment"]] = relationship(  # noqa: F821
        back_populates="task", cascade="all, delete-orphan", lazy="selectin"
    )

    def add_assignment(self, assignment: "TaskAssignment") -> None:  # noqa: F821
        self.assignments.append(assignment)

    def remove_assignment(self, assignment: "TaskAssignment") -> None:  # noqa: F821
        self.assignments.remove(assignment)

    def transfer_ownership(self, new_owner: "TaskAssignment") -> None:  # noqa: F821
        self.owner_id = new_owner.user_id
        new_owner.role = TaskRole.OWNER

    def assignment_for(self, user_id: uuid.UUID) -> "TaskAssignment | None":  # noqa: F821
        return next((a for a in self.assignments if a.user_id == user_id), None)
