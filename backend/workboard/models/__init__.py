"""SQL table models. Importing this package registers every table with SQLModel metadata."""

from workboard.models.task import Task, TaskStatus
from workboard.models.user import User
from workboard.models.workspace import Member, MemberRole, Project, Workspace

__all__ = [
    "Member",
    "MemberRole",
    "Project",
    "Task",
    "TaskStatus",
    "User",
    "Workspace",
]
