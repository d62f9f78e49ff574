"""Translate engagement errors into HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from clarion.services.errors import EngagementError, NotAuthenticated


async def engagement_error_handler(request: Request, exc: EngagementError) -> JSONResponse:
    """Render an :class:`EngagementError` as ``{"detail", "error"}``."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, NotAuthenticated) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
        headers=headers,
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the engagement error handler on ``app``."""
    app.add_exception_handler(EngagementError, engagement_error_handler)  # type: ignore[arg-type]
