"""Team/project/task authorization tests."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AccessDeniedError
from app.services import tasks, teams
from app.services.authorization import task_authorization, team_authorization
from tests.helpers import RecordingMailer, create_project_with_members, create_team_with_members


@pytest.mark.asyncio
async def test_owner_is_member_admin_and_owner(db: AsyncSession, owner):
    team = await teams.create_team(db, owner, "Platform")

    assert await team_authorization.is_member(db, owner, team)
    assert await team_authorization.is_admin(db, owner, team)
    assert team_authorization.is_owner(owner, team)


@pytest.mark.asyncio
async def test_pending_invitee_is_not_a_member(db: AsyncSession, owner, alice):
    team = await teams.create_team(db, owner, "Platform")
    await teams.invite_member(db, owner, team.id, alice.email, "ADMIN", RecordingMailer())

    assert not await team_authorization.is_member(db, alice, team)
    assert not await team_authorization.is_admin(db, alice, team)
    with pytest.raises(AccessDeniedError):
        await team_authorization.check_membership(db, alice, team)


@pytest.mark.asyncio
async def test_member_is_not_admin(db: AsyncSession, owner, alice, bob):
    team = await create_team_with_members(db, owner, admins=[alice], members=[bob])

    assert await team_authorization.is_admin(db, alice, team)
    assert await team_authorization.is_member(db, bob, team)
    assert not await team_authorization.is_admin(db, bob, team)
    with pytest.raises(AccessDeniedError):
        await team_authorization.check_admin(db, bob, team)
    with pytest.raises(AccessDeniedError):
        team_authorization.check_owner(alice, team)


@pytest.mark.asyncio
async def test_task_gates(db: AsyncSession, owner, alice, bob, carol):
    """Edit: task owner or project admin. Status: also assignees."""
    project = await create_project_with_members(db, owner, members=[alice, bob, carol])
    task = await tasks.create_task(db, alice, project.id, "Write docs")
    await tasks.assign_users(db, alice, project.id, task.id, [(bob.id, "ASSIGNEE")])

    await task_authorization.check_edit(db, alice, task)
    await task_authorization.check_edit(db, owner, task)
    with pytest.raises(AccessDeniedError):
        await task_authorization.check_edit(db, bob, task)

    await task_authorization.check_change_status(db, bob, task)
    with pytest.raises(AccessDeniedError):
        await task_authorization.check_change_status(db, carol, task)

    await task_authorization.check_view(db, carol, task)


@pytest.mark.asyncio
async def test_task_view_requires_project_membership(db: AsyncSession, owner, alice):
    project = await create_project_with_members(db, owner)
    task = await tasks.create_task(db, owner, project.id, "Hidden")

    with pytest.raises(AccessDeniedError):
        await task_authorization.check_view(db, alice, task)
