"""Workboard FastAPI application.

Entry point for the backend server (``uvicorn workboard.main:app``).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from workboard.api.health import VERSION
from workboard.api.health import router as health_router
from workboard.api.v1.auth import router as auth_router
from workboard.api.v1.events import InvalidationHub
from workboard.api.v1.events import router as events_router
from workboard.api.v1.tasks import router as tasks_router
from workboard.config import INSECURE_SESSION_SECRET, settings
from workboard.db.database import create_db_and_tables
from workboard.errors import install_error_handlers
from workboard.middleware.auth import SessionAuthMiddleware
from workboard.middleware.rate_limit import RateLimitMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    logging.getLogger("workboard").setLevel(settings.log_level.upper())

    create_db_and_tables()

    if settings.session_secret == INSECURE_SESSION_SECRET:
        logger.warning("SESSION_SECRET is not set; sessions are signed with an insecure default key")

    hub = InvalidationHub(
        max_subscribers=settings.events_max_subscribers,
        heartbeat_interval=settings.events_heartbeat_seconds,
    )
    app.state.invalidation_hub = hub

    yield

    await hub.disconnect_all()


app = FastAPI(
    title="Workboard",
    description="Workspaces, projects and kanban task ordering",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware (order matters: last added = outermost)
app.add_middleware(SessionAuthMiddleware)
app.add_middleware(
    RateLimitMiddleware,
    global_rpm=settings.rate_limit_rpm,
    bulk_rpm=settings.rate_limit_bulk_rpm,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

install_error_handlers(app)

# Routes
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(tasks_router)
app.include_router(events_router)


@app.get("/")
async def root():
    return {"name": "Workboard", "version": VERSION, "status": "running"}
