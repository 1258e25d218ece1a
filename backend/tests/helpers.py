"""Seeding helpers shared across test modules."""

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import create_access_token, hash_password
from app.models import Project, Team, User
from app.services import projects, teams
from app.services.email import EmailDispatcher, EmailMessage

TEST_PASSWORD = "correct-horse-battery"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


class RecordingMailer(EmailDispatcher):
    """Keeps every enqueued message instead of sending it."""

    def __init__(self) -> None:
        super().__init__(sender=lambda message: None, maxsize=0)
        self.outbox: list[EmailMessage] = []

    def enqueue(self, message: EmailMessage) -> None:
        self.outbox.append(message)

    def to(self, address: str) -> list[EmailMessage]:
        return [m for m in self.outbox if m.to == address]


def _uid() -> str:
    return uuid.uuid4().hex[:8]


async def create_user(
    db: AsyncSession, username: str | None = None, enabled: bool = True
) -> User:
    name = username or f"user-{_uid()}"
    user = User(
        username=name,
        email=f"{name}@example.com",
        password_hash=TEST_PASSWORD_HASH,
        enabled=enabled,
    )
    db.add(user)
    await db.flush()
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}


async def create_team_with_members(
    db: AsyncSession, owner: User, admins=(), members=(), name: str | None = None
) -> Team:
    """Create a team with accepted ADMIN and MEMBER rows for the given users."""
    team = await teams.create_team(db, owner, name or f"Team {_uid()}")
    for user, role in [(u, "ADMIN") for u in admins] + [(u, "MEMBER") for u in members]:
        membership = await teams.invite_member(
            db, owner, team.id, user.email, role, RecordingMailer()
        )
        membership.accept_invitation()
    await db.flush()
    return team


async def create_project_with_members(
    db: AsyncSession, owner: User, admins=(), members=(), title: str | None = None
) -> Project:
    project = await projects.create_project(db, owner, title or f"Project {_uid()}")
    for user, role in [(u, "ADMIN") for u in admins] + [(u, "MEMBER") for u in members]:
        membership = await projects.invite_member(
            db, owner, project.id, user.email, role, RecordingMailer()
        )
        membership.accept_invitation()
    await db.flush()
    return project
