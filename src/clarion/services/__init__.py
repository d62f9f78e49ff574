"""Business logic services for the Clarion application."""

from .errors import (
    EngagementError,
    NotAuthenticated,
    PermissionDenied,
    StoreUnavailable,
    TargetNotFound,
    TransactionConflict,
    ValidationError,
)
from .follow_graph import FollowGraph
from .transaction import TransactionCoordinator
from .vote_ledger import VoteLedger

__all__ = [
    "EngagementError",
    "FollowGraph",
    "NotAuthenticated",
    "PermissionDenied",
    "StoreUnavailable",
    "TargetNotFound",
    "TransactionConflict",
    "TransactionCoordinator",
    "ValidationError",
    "VoteLedger",
]
