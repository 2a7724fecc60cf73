"""Cache-invalidation events pushed to browsers over SSE."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field


class InvalidationEvent(BaseModel):
    """Tells subscribed clients which cached queries are stale."""

    event_type: Literal[
        "tasks.invalidated",
        "task.deleted",
    ] = "tasks.invalidated"
    workspace_id: str
    query_keys: list[str] = Field(default_factory=lambda: ["tasks"])
    task_ids: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
