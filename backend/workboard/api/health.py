"""Health check endpoint — database connectivity and session configuration."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from workboard.config import INSECURE_SESSION_SECRET, settings
from workboard.db.database import engine

router = APIRouter()

VERSION = "0.1.0"


class HealthStatus(BaseModel):
    status: str  # "healthy" | "degraded" | "unhealthy"
    version: str
    checks: dict[str, dict]
    timestamp: datetime


@router.get("/health", response_model=HealthStatus)
async def health_check() -> HealthStatus:
    """Report database reachability and configuration warnings."""
    checks: dict[str, dict] = {}
    overall_healthy = True
    has_warning = False

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        checks["database"] = {"status": "ok", "detail": engine.dialect.name}
    except SQLAlchemyError as e:
        checks["database"] = {"status": "error", "detail": str(e)[:200]}
        overall_healthy = False

    if settings.session_secret == INSECURE_SESSION_SECRET:
        checks["session_secret"] = {"status": "warning", "detail": "SESSION_SECRET is the insecure default"}
        has_warning = True
    else:
        checks["session_secret"] = {"status": "ok", "detail": "configured"}

    if overall_healthy:
        status = "degraded" if has_warning else "healthy"
    else:
        status = "unhealthy"

    return HealthStatus(
        status=status,
        version=VERSION,
        checks=checks,
        timestamp=datetime.now(timezone.utc),
    )
