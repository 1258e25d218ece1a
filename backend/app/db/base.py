import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, TypeDecorator
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


def utcnow() -> datetime:
    return datetime.now(UTC)


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime that always comes back as UTC.

    Backends without native timezone support (SQLite) return naive values.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):  # type: ignore[no-untyped-def]
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value

    def process_result_value(self, value, dialect):  # type: ignore[no-untyped-def]
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value


class Base(DeclarativeBase):
    pass


class InviteLinkMixin:
    """Resource-level shareable invitation token (one outstanding at a time)."""

    invitation_token: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    invitation_token_expiry: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    def is_link_token_valid(self, now: datetime | None = None) -> bool:
        if self.invitation_token is None or self.invitation_token_expiry is None:
            return False
        return self.invitation_token_expiry >= (now or utcnow())


class MembershipMixin:
    """Columns shared by team_members and project_members.

    A row is either accepted (``accepted_invite`` true, no token) or pending
    (holding an unconsumed invitation token + expiry).
    """

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    accepted_invite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    invitation_token: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    invitation_token_expiry: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    joined_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    @declared_attr
    def user_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(ForeignKey("users.id"), nullable=False, index=True)

    def accept_invitation(self) -> None:
        self.accepted_invite = True
        self.invitation_token = None
        self.invitation_token_expiry = None
        self.joined_at = utcnow()

    def change_role(self, role: str) -> None:
        self.role = role
