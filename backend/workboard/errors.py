"""Error taxonomy and the ``{error, message}`` response envelope.

Services raise ``WorkboardError`` subclasses; ``install_error_handlers``
turns them (and request validation failures, and anything unexpected)
into JSON envelopes at the handler boundary:

    401 Unauthorized     caller is not a member of the workspace / no session
    400 InvalidRequest   cross-workspace batch, unknown ids, wrong project
    400 ValidationError  request body / query failed schema validation
    404 NotFound         task id does not exist
    500 InternalError    store failure (logged, message is opaque)
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class WorkboardError(Exception):
    """Base class for errors rendered as ``{error, message}``."""

    kind = "InternalError"
    status_code = 500
    default_message = "Internal server error."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(WorkboardError):
    kind = "Unauthorized"
    status_code = 401
    default_message = "You are not a member of this workspace"


class InvalidRequest(WorkboardError):
    kind = "InvalidRequest"
    status_code = 400
    default_message = "Invalid request."


class NotFound(WorkboardError):
    kind = "NotFound"
    status_code = 404
    default_message = "Not found."


class InternalError(WorkboardError):
    pass


def error_response(kind: str, message: str, status_code: int, headers: dict | None = None) -> JSONResponse:
    """Build the JSON error envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"error": kind, "message": message},
        headers=headers,
    )


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Validation error occurred"
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    msg = first.get("msg", "Validation error occurred")
    return f"{loc}: {msg}" if loc else msg


def install_error_handlers(app: FastAPI) -> None:
    """Register envelope-rendering exception handlers on ``app``."""

    @app.exception_handler(WorkboardError)
    async def workboard_error_handler(request: Request, exc: WorkboardError):
        if exc.status_code >= 500:
            logger.error("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
        return error_response(exc.kind, exc.message, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response("ValidationError", _first_validation_message(exc), 400)

    # Prevent internal details from leaking
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=True,
        )
        return error_response("InternalError", "Internal server error.", 500)
