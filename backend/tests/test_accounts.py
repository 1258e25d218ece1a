"""Account deletion cascade tests."""

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.project import Project
from app.models.task import Task
from app.models.team import Team
from app.models.team_member import TeamMember
from app.models.user import User
from app.services import accounts, tasks, teams
from tests.helpers import (
    RecordingMailer,
    create_project_with_members,
    create_team_with_members,
)


@pytest.mark.asyncio
async def test_ownership_passes_to_admin_before_earlier_member(
    db: AsyncSession, owner, alice, bob
):
    team = await create_team_with_members(db, owner, members=[alice])
    await teams.invite_member(db, owner, team.id, bob.email, "ADMIN", _mailer())
    await teams.accept_invitation(db, (await _membership(db, team, bob)).invitation_token)

    await accounts.delete_account(db, owner)

    assert team.owner_id == bob.id
    roles = {m.user_id: m.role for m in team.members}
    assert roles == {alice.id: "MEMBER", bob.id: "OWNER"}


@pytest.mark.asyncio
async def test_ownership_passes_to_earliest_member(db: AsyncSession, owner, alice, bob):
    team = await create_team_with_members(db, owner, members=[alice, bob])

    await accounts.delete_account(db, owner)

    assert team.owner_id == alice.id


@pytest.mark.asyncio
async def test_sole_member_resources_are_deleted(db: AsyncSession, owner):
    team = await teams.create_team(db, owner, "Solo team")
    project = await create_project_with_members(db, owner)
    task = await tasks.create_task(db, owner, project.id, "Solo task")
    team_id, project_id, task_id, owner_id = team.id, project.id, task.id, owner.id

    await accounts.delete_account(db, owner)

    assert await db.get(Team, team_id) is None
    assert await db.get(Project, project_id) is None
    assert await db.get(Task, task_id) is None
    assert await db.get(User, owner_id) is None


@pytest.mark.asyncio
async def test_member_account_deletion_releases_everything(
    db: AsyncSession, owner, alice, bob
):
    team = await create_team_with_members(db, owner, members=[alice])
    project = await create_project_with_members(db, owner, members=[alice, bob])
    handed_over = await tasks.create_task(db, alice, project.id, "Handed over")
    await tasks.assign_users(db, alice, project.id, handed_over.id, [(bob.id, "ASSIGNEE")])
    alice_id = alice.id

    await accounts.delete_account(db, alice)

    assert team.owner_id == owner.id
    assert [m.user_id for m in team.members] == [owner.id]
    assert {m.user_id for m in project.members} == {owner.id, bob.id}
    assert handed_over.owner_id == bob.id

    leftovers = await db.execute(select(TeamMember).where(TeamMember.user_id == alice_id))
    assert leftovers.all() == []


async def _membership(db: AsyncSession, team, user):
    result = await db.execute(
        select(TeamMember).where(TeamMember.team_id == team.id, TeamMember.user_id == user.id)
    )
    return result.scalar_one()


def _mailer():
    return RecordingMailer()
