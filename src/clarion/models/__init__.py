# src/clarion/models/__init__.py
"""SQLAlchemy models for the Clarion application."""

from .answer import Answer, Comment
from .follow import FollowerEdge, FollowingEdge
from .question import Question
from .report import Report
from .user import User
from .vote import VoteRecord

__all__ = [
    "Answer", "Comment",
    "FollowerEdge", "FollowingEdge",
    "Question",
    "Report",
    "User",
    "VoteRecord",
]
