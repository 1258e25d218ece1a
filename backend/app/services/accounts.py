"""Operations that span teams, projects and tasks for one user."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import log_operation
from app.models.user import User
from app.services.projects import project_service
from app.services.tasks import release_all_tasks
from app.services.teams import team_service

logger = logging.getLogger(__name__)


@log_operation("Delete User Account")
async def delete_account(db: AsyncSession, user: User) -> None:
    """Delete the user after detaching them from everything they belong to.

    Owned teams, projects and tasks pass to a successor when one exists and
    are deleted otherwise. Leaving a project also releases its tasks; the
    final sweep catches assignments left behind in projects the user had
    already been removed from.
    """
    user_id = user.id

    await team_service.release_user(db, user_id)
    await project_service.release_user(db, user_id)
    await release_all_tasks(db, user_id)

    await db.delete(user)
    await db.flush()
    logger.info("Deleted user account %s", user_id)
