"""Tests for the invalidation hub and the /api/v1/events endpoint."""

import os
import sys
import asyncio
import json

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
os.environ.setdefault("DATABASE_URL", "sqlite:///test.db")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")

from fastapi import FastAPI
from fastapi.testclient import TestClient

from workboard.api.v1.events import InvalidationHub, format_sse, get_invalidation_hub
from workboard.api.v1.events import router as events_router
from workboard.config import settings
from workboard.errors import install_error_handlers
from workboard.middleware.auth import SessionAuthMiddleware
from workboard.models.events import InvalidationEvent
from workboard.security.session_token import issue_session_token


def test_subscribe_unsubscribe():
    hub = InvalidationHub()
    assert hub.subscriber_count == 0

    q1 = hub.subscribe("w1")
    q2 = hub.subscribe("w2")
    assert hub.subscriber_count == 2

    hub.unsubscribe("w1", q1)
    assert hub.subscriber_count == 1
    hub.unsubscribe("w2", q2)
    assert hub.subscriber_count == 0


def test_publish_only_reaches_same_workspace():
    hub = InvalidationHub()
    mine = hub.subscribe("w1")
    theirs = hub.subscribe("w2")

    sent = asyncio.run(hub.publish(InvalidationEvent(workspace_id="w1", task_ids=["t1"])))
    assert sent == 1
    assert mine.qsize() == 1
    assert theirs.qsize() == 0
    event = mine.get_nowait()
    assert event.event_type == "tasks.invalidated"
    assert event.query_keys == ["tasks"]


def test_publish_without_subscribers():
    hub = InvalidationHub()
    assert asyncio.run(hub.publish(InvalidationEvent(workspace_id="nobody"))) == 0


def test_full_queue_is_dropped():
    hub = InvalidationHub()
    queue = hub.subscribe("w1")
    for _ in range(queue.maxsize):
        queue.put_nowait(InvalidationEvent(workspace_id="w1"))

    sent = asyncio.run(hub.publish(InvalidationEvent(workspace_id="w1")))
    assert sent == 0
    assert hub.subscriber_count == 0


def test_dropped_subscriber_stream_ends():
    hub = InvalidationHub(heartbeat_interval=0.01)

    async def run():
        queue = hub.subscribe("w1")
        for _ in range(queue.maxsize):
            await hub.publish(InvalidationEvent(workspace_id="w1"))
        await hub.publish(InvalidationEvent(workspace_id="w1"))
        return [chunk async for chunk in hub.event_generator("w1", queue)]

    assert asyncio.run(run()) == []
    assert hub.subscriber_count == 0


def test_disconnect_all_closes_full_queue():
    hub = InvalidationHub()
    queue = hub.subscribe("w1")
    for _ in range(queue.maxsize):
        queue.put_nowait(InvalidationEvent(workspace_id="w1"))
    asyncio.run(hub.disconnect_all())
    assert queue.get_nowait() is None


def test_capacity_evicts_oldest_subscriber():
    hub = InvalidationHub(max_subscribers=2)
    oldest = hub.subscribe("w1")
    hub.subscribe("w1")
    hub.subscribe("w1")
    assert hub.subscriber_count == 2
    assert oldest.get_nowait() is None


def test_disconnect_all():
    hub = InvalidationHub()
    q = hub.subscribe("w1")
    asyncio.run(hub.disconnect_all())
    assert hub.subscriber_count == 0
    assert q.get_nowait() is None


def test_event_generator_yields_frames_then_stops():
    hub = InvalidationHub(heartbeat_interval=5.0)

    async def run():
        queue = hub.subscribe("w1")
        await hub.publish(InvalidationEvent(workspace_id="w1", task_ids=["t1"]))
        queue.put_nowait(None)
        return [chunk async for chunk in hub.event_generator("w1", queue)]

    chunks = asyncio.run(run())
    assert len(chunks) == 1
    assert chunks[0].startswith("event: tasks.invalidated\n")
    assert hub.subscriber_count == 0


def test_event_generator_heartbeat():
    hub = InvalidationHub(heartbeat_interval=0.01)

    async def first_chunk():
        queue = hub.subscribe("w1")
        gen = hub.event_generator("w1", queue)
        chunk = await gen.__anext__()
        await gen.aclose()
        return chunk

    assert asyncio.run(first_chunk()) == ": heartbeat\n\n"


def test_format_sse():
    event = InvalidationEvent(event_type="task.deleted", workspace_id="w1", task_ids=["t9"])
    frame = format_sse(event)
    assert frame.startswith("event: task.deleted\ndata: ")
    assert frame.endswith("\n\n")
    data = json.loads(frame.split("data: ", 1)[1])
    assert data["workspace_id"] == "w1"
    assert data["task_ids"] == ["t9"]
    assert data["query_keys"] == ["tasks"]


# === Endpoint ===


def _client(user_id=None):
    test_app = FastAPI()
    test_app.add_middleware(SessionAuthMiddleware)
    install_error_handlers(test_app)
    test_app.include_router(events_router)
    headers = {}
    if user_id:
        token = issue_session_token(secret=settings.session_secret, user_id=user_id, ttl_seconds=60)
        headers["Authorization"] = f"Bearer {token}"
    return TestClient(test_app, headers=headers), test_app


def test_events_endpoint_requires_membership(board, outsider_id):
    client, _ = _client(outsider_id)
    resp = client.get("/api/v1/events", params={"workspaceId": board.workspace_id})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Unauthorized"


def test_events_endpoint_requires_workspace_id(board):
    client, _ = _client(board.user_id)
    resp = client.get("/api/v1/events")
    assert resp.status_code == 400


def test_get_invalidation_hub_is_created_once():
    _, test_app = _client()

    class _Req:
        app = test_app

    first = get_invalidation_hub(_Req())
    assert get_invalidation_hub(_Req()) is first
    assert first.heartbeat_interval == settings.events_heartbeat_seconds
