import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, InviteLinkMixin, UTCDateTime, utcnow
from app.models.enums import TeamRole


class Team(InviteLinkMixin, Base):
    __tablename__ = "teams"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(String(250), nullable=False, default="")
    owner_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    members: Mapped[list["TeamMember"]] = relationship(  # noqa: F821
        back_populates="team", cascade="all, delete-orphan", lazy="selectin"
    )

    @property
    def display_name(self) -> str:
        return self.name

    def add_member(self, member: "TeamMember") -> None:  # noqa: F821
        self.members.append(member)

    def remove_member(self, member: "TeamMember") -> None:  # noqa: F821
        self.members.remove(member)

    def transfer_ownership(self, new_owner: "TeamMember") -> None:  # noqa: F821
        """Hand OWNER to ``new_owner``; the previous owner row must already be gone."""
        self.owner_id = new_owner.user_id
        new_owner.change_role(TeamRole.OWNER)
