"""Task model and status vocabulary."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from sqlalchemy import Index
from sqlmodel import Field as SQLField
from sqlmodel import SQLModel


class TaskStatus(str, Enum):
    """Kanban columns a task can sit in."""

    BACKLOG = "BACKLOG"
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    IN_REVIEW = "IN_REVIEW"
    DONE = "DONE"


class Task(SQLModel, table=True):
    """A task inside a project.

    ``position`` orders tasks within their (workspace, project, status)
    bucket. Values are not unique; ties fall back to creation order.
    """

    __tablename__ = "task"
    # Serves the max(position) lookup for a bucket
    __table_args__ = (
        Index("ix_task_bucket_position", "workspace_id", "project_id", "status", "position"),
    )

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str
    description: str | None = None
    workspace_id: str = SQLField(foreign_key="workspace.id", index=True)
    project_id: str = SQLField(foreign_key="project.id", index=True)
    assigned_id: str | None = SQLField(default=None, index=True)
    status: TaskStatus = SQLField(
        default=TaskStatus.BACKLOG, index=True, sa_column_kwargs={"server_default": TaskStatus.BACKLOG.value},
    )
    due_date: datetime
    position: int = SQLField(default=0, sa_column_kwargs={"server_default": "0"})
    created_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc))
