"""Cache-invalidation hub and its SSE endpoint.

The hub is created once in the application lifespan, stored on
``app.state.invalidation_hub`` and handed to route handlers through the
``get_invalidation_hub`` dependency. After a task mutation the handler
publishes an ``InvalidationEvent``; browsers listening on
``GET /api/v1/events?workspaceId=...`` refetch the listed query keys.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlmodel import Session

from workboard.config import settings
from workboard.db.database import engine as db_engine
from workboard.middleware.auth import current_user_id
from workboard.models.events import InvalidationEvent
from workboard.services.membership import require_membership

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["events"])


def _close(queue: asyncio.Queue[InvalidationEvent | None]) -> None:
    """Discard pending events and enqueue the end-of-stream marker."""
    while not queue.empty():
        queue.get_nowait()
    queue.put_nowait(None)


class InvalidationHub:
    """Fans invalidation events out to per-workspace subscriber queues.

    Usage:
        hub = InvalidationHub()

        # After a mutation:
        await hub.publish(InvalidationEvent(workspace_id="w1", task_ids=["t1"]))

        # In FastAPI:
        return hub.create_response("w1")
    """

    def __init__(self, max_subscribers: int = 50, heartbeat_interval: float = 30.0) -> None:
        self.max_subscribers = max_subscribers
        self.heartbeat_interval = heartbeat_interval
        self._queues: dict[str, list[asyncio.Queue[InvalidationEvent | None]]] = {}

    @property
    def subscriber_count(self) -> int:
        return sum(len(queues) for queues in self._queues.values())

    def subscribe(self, workspace_id: str) -> asyncio.Queue[InvalidationEvent | None]:
        """Create a queue receiving events for ``workspace_id``.

        At capacity the oldest subscriber of that workspace is disconnected.
        """
        queues = self._queues.setdefault(workspace_id, [])
        if len(queues) >= self.max_subscribers:
            logger.warning(
                "Invalidation hub at capacity for %s (%d), evicting oldest subscriber",
                workspace_id, len(queues),
            )
            _close(queues.pop(0))

        queue: asyncio.Queue[InvalidationEvent | None] = asyncio.Queue(maxsize=100)
        queues.append(queue)
        return queue

    def unsubscribe(self, workspace_id: str, queue: asyncio.Queue[InvalidationEvent | None]) -> None:
        queues = self._queues.get(workspace_id, [])
        if queue in queues:
            queues.remove(queue)
        if not queues:
            self._queues.pop(workspace_id, None)

    async def publish(self, event: InvalidationEvent) -> int:
        """Deliver ``event`` to its workspace's subscribers.

        A subscriber whose queue is full has fallen behind: its backlog is
        discarded and its stream is closed so the client reconnects and
        refetches.

        Returns:
            Number of subscribers that received the event.
        """
        sent = 0
        dead = []
        for queue in self._queues.get(event.workspace_id, []):
            try:
                queue.put_nowait(event)
                sent += 1
            except asyncio.QueueFull:
                dead.append(queue)

        for queue in dead:
            logger.warning("Dropping slow invalidation subscriber for %s", event.workspace_id)
            self.unsubscribe(event.workspace_id, queue)
            _close(queue)
        return sent

    async def event_generator(
        self,
        workspace_id: str,
        queue: asyncio.Queue[InvalidationEvent | None],
    ) -> AsyncGenerator[str, None]:
        """Yield SSE frames, with heartbeat comments while idle."""
        try:
            while True:
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=self.heartbeat_interval)
                    if event is None:
                        break
                    yield format_sse(event)
                except asyncio.TimeoutError:
                    yield ": heartbeat\n\n"
        finally:
            self.unsubscribe(workspace_id, queue)

    def create_response(self, workspace_id: str) -> StreamingResponse:
        queue = self.subscribe(workspace_id)
        return StreamingResponse(
            self.event_generator(workspace_id, queue),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable nginx buffering
            },
        )

    async def disconnect_all(self) -> None:
        """Disconnect all subscribers (used during shutdown)."""
        for queues in self._queues.values():
            for queue in queues:
                _close(queue)
        self._queues.clear()


def format_sse(event: InvalidationEvent) -> str:
    """Format an event as ``event: <type>\\ndata: <json>\\n\\n``."""
    data = {
        "event_type": event.event_type,
        "workspace_id": event.workspace_id,
        "query_keys": event.query_keys,
        "task_ids": event.task_ids,
        "timestamp": event.timestamp.isoformat(),
    }
    return f"event: {event.event_type}\ndata: {json.dumps(data)}\n\n"


def get_invalidation_hub(request: Request) -> InvalidationHub:
    """Dependency returning the hub created in the application lifespan."""
    hub = getattr(request.app.state, "invalidation_hub", None)
    if hub is None:
        hub = InvalidationHub(
            max_subscribers=settings.events_max_subscribers,
            heartbeat_interval=settings.events_heartbeat_seconds,
        )
        request.app.state.invalidation_hub = hub
    return hub


@router.get("/events")
async def workspace_events(
    workspace_id: str = Query(alias="workspaceId", min_length=1),
    user_id: str = Depends(current_user_id),
    hub: InvalidationHub = Depends(get_invalidation_hub),
) -> StreamingResponse:
    """Stream cache-invalidation events for one workspace.

    Connect via EventSource (the session cookie is sent automatically):
        new EventSource('/api/v1/events?workspaceId=...')
    """
    with Session(db_engine) as session:
        require_membership(session, user_id, workspace_id)
    return hub.create_response(workspace_id)
