import uuid

from sqlalchemy import CheckConstraint, ForeignKey, Index, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, MembershipMixin


class TeamMember(MembershipMixin, Base):
    __tablename__ = "team_members"
    __table_args__ = (
        UniqueConstraint("team_id", "user_id", name="uq_team_members_team_user"),
        CheckConstraint("role IN ('OWNER', 'ADMIN', 'MEMBER')", name="ck_team_members_role"),
        Index(
            "uq_team_members_one_owner",
            "team_id",
            unique=True,
            postgresql_where=text("role = 'OWNER'"),
            sqlite_where=text("role = 'OWNER'"),
        ),
    )

    team_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True
    )

    team: Mapped["Team"] = relationship(back_populates="members")  # noqa: F821
    user: Mapped["User"] = relationship(lazy="selectin")  # noqa: F821

    @property
    def resource_id(self) -> uuid.UUID:
        return self.team_id
