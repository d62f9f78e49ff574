# src/clarion/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .questions import router as questions_router
from .reports import router as reports_router
from .users import router as users_router
from .votes import router as votes_router

__all__ = [
    "auth_router",
    "questions_router",
    "reports_router",
    "users_router",
    "votes_router",
]
