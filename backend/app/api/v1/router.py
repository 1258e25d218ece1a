"""Aggregate all v1 sub-routers."""

from fastapi import APIRouter

from app.api.v1.auth import router as auth_router
from app.api.v1.health import router as health_router
from app.api.v1.projects import router as projects_router
from app.api.v1.tasks import my_tasks_router, project_tasks_router
from app.api.v1.teams import router as teams_router
from app.api.v1.users import router as users_router
from app.schemas.common import ErrorResponse

# Documented problem+json shapes for every route
PROBLEM_RESPONSES = {
    status: {"model": ErrorResponse, "content": {"application/problem+json": {}}}
    for status in (400, 401, 403, 404, 409, 422)
}

api_v1_router = APIRouter(responses=PROBLEM_RESPONSES)

api_v1_router.include_router(health_router, tags=["health"])
api_v1_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_v1_router.include_router(users_router, prefix="/users", tags=["users"])
api_v1_router.include_router(teams_router, prefix="/teams", tags=["teams"])
api_v1_router.include_router(projects_router, prefix="/projects", tags=["projects"])
api_v1_router.include_router(
    project_tasks_router, prefix="/projects/{project_id}/tasks", tags=["tasks"]
)
api_v1_router.include_router(my_tasks_router, prefix="/tasks", tags=["tasks"])
