from app.models.project import Project
from app.models.project_member import ProjectMember
from app.models.task import Task
from app.models.task_assignment import TaskAssignment
from app.models.team import Team
from app.models.team_member import TeamMember
from app.models.user import User

__all__ = [
    "Project",
    "ProjectMember",
    "Task",
    "TaskAssignment",
    "Team",
    "TeamMember",
    "User",
]
