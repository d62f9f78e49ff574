# src/clarion/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    questions_router,
    reports_router,
    users_router,
    votes_router,
)

__all__ = [
    "auth_router",
    "questions_router",
    "reports_router",
    "users_router",
    "votes_router",
]
