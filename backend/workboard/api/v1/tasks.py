"""Tasks API — listing, creation, single-task edits and bulk reorder.

GET    /api/v1/tasks?workspaceId=...  — list (projectId, assigneedId, status, search, dueDate filters)
POST   /api/v1/tasks                  — create at the end of its bucket
GET    /api/v1/tasks/{task_id}        — single task with assigned user
PATCH  /api/v1/tasks/{task_id}        — partial update
DELETE /api/v1/tasks/{task_id}        — delete (no position compaction)
POST   /api/v1/tasks/bulk-update      — apply (status, position) to a batch

Wire fields are camelCase. Successful responses are ``{"data": ...}``;
failures use the ``{"error", "message"}`` envelope from ``workboard.errors``.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlmodel import Session

from workboard.api.v1.envelope import CamelModel, Envelope
from workboard.api.v1.events import InvalidationHub, get_invalidation_hub
from workboard.db.database import get_session
from workboard.middleware.auth import current_user_id
from workboard.models.events import InvalidationEvent
from workboard.models.task import Task, TaskStatus
from workboard.models.user import User
from workboard.services.task_ordering import PositionUpdate, TaskOrderingService, TaskWithAssignee

router = APIRouter(prefix="/api/v1", tags=["tasks"])


# === Request / Response Models ===


class CreateTaskRequest(CamelModel):
    """Request to create a task. Status defaults to BACKLOG."""

    workspace_id: str = Field(min_length=1)
    project_id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=256)
    description: str | None = Field(default=None, max_length=5000)
    assigned_id: str | None = None
    due_date: datetime
    status: TaskStatus | None = None


class UpdateTaskRequest(CamelModel):
    """Partial update. Only fields present in the body are applied."""

    name: str | None = Field(default=None, min_length=1, max_length=256)
    description: str | None = Field(default=None, max_length=5000)
    project_id: str | None = None
    assigned_id: str | None = None
    status: TaskStatus | None = None
    due_date: datetime | None = None
    position: int | None = Field(default=None, ge=0)


class BulkTaskItem(CamelModel):
    id: str = Field(min_length=1)
    status: TaskStatus
    position: int = Field(ge=0)


class BulkUpdateRequest(CamelModel):
    tasks: list[BulkTaskItem]


class AssignedUserResponse(CamelModel):
    id: str
    name: str
    email: str


class TaskResponse(CamelModel):
    id: str
    name: str
    description: str | None = None
    workspace_id: str
    project_id: str
    assigned_id: str | None = None
    status: TaskStatus
    due_date: datetime
    position: int
    created_at: datetime
    updated_at: datetime


class TaskWithAssigneeResponse(TaskResponse):
    assigned_user: AssignedUserResponse | None = None


class DeletedTaskResponse(CamelModel):
    id: str


def _to_response(task: Task) -> TaskResponse:
    return TaskResponse(
        id=task.id,
        name=task.name,
        description=task.description,
        workspace_id=task.workspace_id,
        project_id=task.project_id,
        assigned_id=task.assigned_id,
        status=task.status,
        due_date=task.due_date,
        position=task.position,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


def _user_response(user: User | None) -> AssignedUserResponse | None:
    if user is None:
        return None
    return AssignedUserResponse(id=user.id, name=user.name, email=user.email)


def _with_assignee(item: TaskWithAssignee) -> TaskWithAssigneeResponse:
    return TaskWithAssigneeResponse(
        **_to_response(item.task).model_dump(),
        assigned_user=_user_response(item.assigned_user),
    )


def get_task_service(session: Session = Depends(get_session)) -> TaskOrderingService:
    return TaskOrderingService(session)


# === Endpoints ===


@router.get("/tasks", response_model=Envelope[list[TaskWithAssigneeResponse]])
async def list_tasks(
    workspace_id: str = Query(alias="workspaceId", min_length=1),
    project_id: str | None = Query(default=None, alias="projectId"),
    assignee_id: str | None = Query(default=None, alias="assigneedId"),
    status: TaskStatus | None = Query(default=None),
    search: str | None = Query(default=None, max_length=256),
    due_date: datetime | None = Query(default=None, alias="dueDate"),
    user_id: str = Depends(current_user_id),
    service: TaskOrderingService = Depends(get_task_service),
) -> Envelope[list[TaskWithAssigneeResponse]]:
    """List a workspace's tasks ordered by position.

    ``search`` is accepted for forward compatibility but does not filter yet.
    """
    items = service.list_tasks(
        user_id,
        workspace_id,
        project_id=project_id,
        assignee_id=assignee_id,
        status=status,
        search=search,
        due_date=due_date,
    )
    return Envelope(data=[_with_assignee(item) for item in items])


@router.post("/tasks", response_model=Envelope[TaskResponse])
async def create_task(
    request: CreateTaskRequest,
    user_id: str = Depends(current_user_id),
    service: TaskOrderingService = Depends(get_task_service),
    hub: InvalidationHub = Depends(get_invalidation_hub),
) -> Envelope[TaskResponse]:
    """Create a task positioned after the last task of its bucket."""
    task = service.create_task(
        user_id,
        workspace_id=request.workspace_id,
        project_id=request.project_id,
        name=request.name,
        description=request.description,
        assigned_id=request.assigned_id,
        due_date=request.due_date,
        status=request.status,
    )
    await hub.publish(InvalidationEvent(workspace_id=task.workspace_id, task_ids=[task.id]))
    return Envelope(data=_to_response(task))


@router.post("/tasks/bulk-update", response_model=Envelope[list[TaskResponse]])
async def bulk_update_tasks(
    request: BulkUpdateRequest,
    user_id: str = Depends(current_user_id),
    service: TaskOrderingService = Depends(get_task_service),
    hub: InvalidationHub = Depends(get_invalidation_hub),
) -> Envelope[list[TaskResponse]]:
    """Move a batch of tasks (same workspace) to new statuses/positions."""
    updated = service.bulk_update(
        user_id,
        [PositionUpdate(id=item.id, status=item.status, position=item.position) for item in request.tasks],
    )
    await hub.publish(InvalidationEvent(
        workspace_id=updated[0].workspace_id,
        task_ids=list(dict.fromkeys(task.id for task in updated)),
    ))
    return Envelope(data=[_to_response(task) for task in updated])


@router.get("/tasks/{task_id}", response_model=Envelope[TaskWithAssigneeResponse])
async def get_task(
    task_id: str,
    user_id: str = Depends(current_user_id),
    service: TaskOrderingService = Depends(get_task_service),
) -> Envelope[TaskWithAssigneeResponse]:
    return Envelope(data=_with_assignee(service.get_task(user_id, task_id)))


@router.patch("/tasks/{task_id}", response_model=Envelope[TaskResponse])
async def update_task(
    task_id: str,
    request: UpdateTaskRequest,
    user_id: str = Depends(current_user_id),
    service: TaskOrderingService = Depends(get_task_service),
    hub: InvalidationHub = Depends(get_invalidation_hub),
) -> Envelope[TaskResponse]:
    """Patch the fields present in the body."""
    task = service.update_task(user_id, task_id, request.model_dump(exclude_unset=True))
    await hub.publish(InvalidationEvent(workspace_id=task.workspace_id, task_ids=[task.id]))
    return Envelope(data=_to_response(task))


@router.delete("/tasks/{task_id}", response_model=Envelope[DeletedTaskResponse])
async def delete_task(
    task_id: str,
    user_id: str = Depends(current_user_id),
    service: TaskOrderingService = Depends(get_task_service),
    hub: InvalidationHub = Depends(get_invalidation_hub),
) -> Envelope[DeletedTaskResponse]:
    grant = service.delete_task(user_id, task_id)
    await hub.publish(InvalidationEvent(
        event_type="task.deleted",
        workspace_id=grant.workspace_id,
        task_ids=[task_id],
    ))
    return Envelope(data=DeletedTaskResponse(id=task_id))
