import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, InviteLinkMixin, UTCDateTime, utcnow
from app.models.enums import ProjectRole


class Project(InviteLinkMixin, Base):
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(String(250), nullable=False, default="")
    owner_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    members: Mapped[list["ProjectMember"]] = relationship(  # noqa: F821
        back_populates="project", cascade="all, delete-orphan", lazy="selectin"
    )
    tasks: Mapped[list["Task"]] = relationship(  # noqa: F821
        back_populates="project", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def display_name(self) -> str:
        return self.title

    def add_member(self, member: "ProjectMember") -> None:  # noqa: F821
        self.members.append(member)

    def remove_member(self, member: "ProjectMember") -> None:  # noqa: F821
        self.members.remove(member)

    def transfer_ownership(self, new_owner: "ProjectMember") -> None:  # noqa: F821
        """Hand OWNER to ``new_owner``; the previous owner row must already be gone."""
        self.owner_id = new_owner.user_id
        new_owner.change_role(ProjectRole.OWNER)
