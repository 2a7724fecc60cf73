"""Task Ordering Service — positions, bulk reorder, filtered listing.

Positions are integers scoped to a *bucket*, the
(workspace_id, project_id, status) triple:

- a new task goes to ``max(position in bucket) + 1``, or 0 in an empty bucket
- nothing is compacted on delete, so gaps accumulate and values only grow
- positions are not unique; two concurrent creates may land on the same
  value and then sort by creation time

Bulk updates are applied in one transaction after a single membership
check for the batch's workspace. They are not isolated against other
concurrent batches: overlapping rows are last-write-wins.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from workboard.errors import InternalError, InvalidRequest, NotFound
from workboard.models.task import Task, TaskStatus
from workboard.models.user import User
from workboard.models.workspace import Project
from workboard.services.membership import MembershipGrant, require_membership

logger = logging.getLogger(__name__)

# Fields a single-task patch may touch
PATCHABLE_FIELDS = frozenset({
    "name",
    "description",
    "project_id",
    "assigned_id",
    "status",
    "due_date",
    "position",
})
_REQUIRED_FIELDS = frozenset({"name", "project_id", "status", "due_date", "position"})


@dataclass(frozen=True)
class PositionUpdate:
    """One entry of a bulk reorder batch."""

    id: str
    status: TaskStatus
    position: int


@dataclass
class TaskWithAssignee:
    task: Task
    assigned_user: User | None = None


def to_utc(value: datetime | None) -> datetime | None:
    """Aware UTC datetime; naive input is taken to already be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskOrderingService:
    """Task operations bound to one database session.

    Every public method checks workspace membership through
    ``require_membership`` before reading or writing tasks.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    # === Store helpers ===

    @contextmanager
    def _store(self, action: str) -> Iterator[None]:
        """Roll back and surface store failures as ``InternalError``."""
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Task store failure: failed to %s", action)
            raise InternalError(f"Failed to {action}") from exc

    def _get_or_404(self, task_id: str) -> Task:
        task = self.session.get(Task, task_id)
        if task is None:
            raise NotFound(f"Task not found: {task_id}")
        return task

    def _require_project_in_workspace(self, project_id: str, workspace_id: str) -> None:
        project = self.session.get(Project, project_id)
        if project is None or project.workspace_id != workspace_id:
            raise InvalidRequest("Project does not belong to this workspace")

    # === Positions ===

    def next_position(self, workspace_id: str, project_id: str, status: TaskStatus) -> int:
        """Position for a task appended to the given bucket."""
        stmt = select(func.max(Task.position)).where(
            Task.workspace_id == workspace_id,
            Task.project_id == project_id,
            Task.status == status,
        )
        current = self.session.exec(stmt).one()
        return 0 if current is None else int(current) + 1

    # === Operations ===

    def create_task(
        self,
        user_id: str,
        *,
        workspace_id: str,
        project_id: str,
        name: str,
        due_date: datetime,
        description: str | None = None,
        assigned_id: str | None = None,
        status: TaskStatus | None = None,
    ) -> Task:
        """Create a task at the end of its bucket."""
        with self._store("create task"):
            require_membership(self.session, user_id, workspace_id)
            self._require_project_in_workspace(project_id, workspace_id)

            effective_status = status or TaskStatus.BACKLOG
            task = Task(
                name=name,
                description=description,
                workspace_id=workspace_id,
                project_id=project_id,
                assigned_id=assigned_id,
                due_date=to_utc(due_date),
                status=effective_status,
                position=self.next_position(workspace_id, project_id, effective_status),
            )
            self.session.add(task)
            self.session.commit()
            self.session.refresh(task)

        logger.info(
            "Created task %s in %s/%s/%s at position %d",
            task.id, workspace_id, project_id, task.status.value, task.position,
        )
        return task

    def bulk_update(self, user_id: str, updates: Sequence[PositionUpdate]) -> list[Task]:
        """Apply (status, position) to every task of a single-workspace batch.

        Returns the updated tasks in request order.

        Raises:
            InvalidRequest: batch is empty, spans several workspaces, or names
                unknown task ids. Nothing is written.
            Unauthorized: caller is not a member of the batch's workspace.
                Nothing is written.
            InternalError: the store failed; the whole batch is rolled back.
        """
        with self._store("update tasks"):
            ids = list(dict.fromkeys(update.id for update in updates))
            tasks = self.session.exec(select(Task).where(col(Task.id).in_(ids))).all() if ids else []

            workspace_ids = {task.workspace_id for task in tasks}
            if len(workspace_ids) != 1:
                raise InvalidRequest("Tasks must belong to the same workspace")
            workspace_id = next(iter(workspace_ids))

            require_membership(self.session, user_id, workspace_id)

            by_id = {task.id: task for task in tasks}
            missing = [task_id for task_id in ids if task_id not in by_id]
            if missing:
                raise InvalidRequest(f"Unknown task ids: {', '.join(missing)}")

            now = _utcnow()
            for update in updates:
                task = by_id[update.id]
                task.status = update.status
                task.position = update.position
                task.updated_at = now
                self.session.add(task)
            self.session.commit()
            for task in by_id.values():
                self.session.refresh(task)

        logger.info("Bulk updated %d tasks in workspace %s", len(by_id), workspace_id)
        return [by_id[update.id] for update in updates]

    def list_tasks(
        self,
        user_id: str,
        workspace_id: str,
        *,
        project_id: str | None = None,
        assignee_id: str | None = None,
        status: TaskStatus | None = None,
        search: str | None = None,
        due_date: datetime | None = None,
    ) -> list[TaskWithAssignee]:
        """Tasks of a workspace matching every supplied filter, by position."""
        with self._store("get tasks"):
            require_membership(self.session, user_id, workspace_id)

            conditions = [Task.workspace_id == workspace_id]
            if project_id:
                conditions.append(Task.project_id == project_id)
            if assignee_id:
                conditions.append(Task.assigned_id == assignee_id)
            if status:
                conditions.append(Task.status == status)
            if due_date:
                conditions.append(Task.due_date == to_utc(due_date))
            if search:
                # Text search is not implemented yet; the term is accepted and ignored.
                logger.debug("Ignoring task search term %r", search)

            stmt = (
                select(Task)
                .where(*conditions)
                .order_by(col(Task.position).asc(), col(Task.created_at).asc())
            )
            tasks = self.session.exec(stmt).all()
            users = self._users_by_id({task.assigned_id for task in tasks if task.assigned_id})

        return [
            TaskWithAssignee(task=task, assigned_user=users.get(task.assigned_id) if task.assigned_id else None)
            for task in tasks
        ]

    def get_task(self, user_id: str, task_id: str) -> TaskWithAssignee:
        with self._store("get task"):
            task = self._get_or_404(task_id)
            require_membership(self.session, user_id, task.workspace_id)
            assigned_user = self.session.get(User, task.assigned_id) if task.assigned_id else None
        return TaskWithAssignee(task=task, assigned_user=assigned_user)

    def update_task(self, user_id: str, task_id: str, changes: dict[str, Any]) -> Task:
        """Patch a single task. Position is left as-is on status changes."""
        unknown = set(changes) - PATCHABLE_FIELDS
        if unknown:
            raise InvalidRequest(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        cleared = sorted(key for key in _REQUIRED_FIELDS if key in changes and changes[key] is None)
        if cleared:
            raise InvalidRequest(f"Fields cannot be empty: {', '.join(cleared)}")

        with self._store("update task"):
            task = self._get_or_404(task_id)
            require_membership(self.session, user_id, task.workspace_id)

            if changes.get("project_id") and changes["project_id"] != task.project_id:
                self._require_project_in_workspace(changes["project_id"], task.workspace_id)
            if "due_date" in changes:
                changes = {**changes, "due_date": to_utc(changes["due_date"])}

            for key, value in changes.items():
                setattr(task, key, value)
            task.updated_at = _utcnow()

            self.session.add(task)
            self.session.commit()
            self.session.refresh(task)
        return task

    def delete_task(self, user_id: str, task_id: str) -> MembershipGrant:
        """Delete a task. Remaining positions in its bucket are not compacted."""
        with self._store("delete task"):
            task = self._get_or_404(task_id)
            grant = require_membership(self.session, user_id, task.workspace_id)
            self.session.delete(task)
            self.session.commit()

        logger.info("Deleted task %s from workspace %s", task_id, grant.workspace_id)
        return grant

    def _users_by_id(self, user_ids: set[str]) -> dict[str, User]:
        if not user_ids:
            return {}
        users = self.session.exec(select(User).where(col(User.id).in_(user_ids))).all()
        return {user.id: user for user in users}
