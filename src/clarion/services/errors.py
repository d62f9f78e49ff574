"""Error taxonomy shared by the engagement services.

Every failure of a vote, follow or content operation surfaces as one of
these exceptions. None of them is fatal to the process; the API layer maps
each kind to a status code and a message the client can show.
"""

from __future__ import annotations


class EngagementError(RuntimeError):
    """Base exception for failures of a user action.

    Attributes:
        message: Human readable description suitable for client display.
    """

    status_code: int = 400
    default_message: str = "The action could not be completed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotAuthenticated(EngagementError):
    """Raised when no authenticated principal accompanies the call."""

    status_code = 401
    default_message = "Sign in to continue"


class ValidationError(EngagementError):
    """Raised for malformed input such as a self-follow or blank text."""

    status_code = 422
    default_message = "Invalid request"


class TargetNotFound(EngagementError):
    """Raised when the question, user or parent document does not exist."""

    status_code = 404
    default_message = "Not found"


class TransactionConflict(EngagementError):
    """Raised when concurrent writes kept invalidating a transaction attempt.

    Inside the coordinator this marks a single attempt as retryable; once it
    escapes to callers the retry budget is exhausted.
    """

    status_code = 409
    default_message = "Too many people are doing this right now, please try again"


class StoreUnavailable(EngagementError):
    """Raised when the backing database cannot be reached."""

    status_code = 503
    default_message = "The service is temporarily unavailable"


class PermissionDenied(EngagementError):
    """Raised when the database rejects a write for lack of privileges."""

    status_code = 403
    default_message = "You are not allowed to do that"


__all__ = [
    "EngagementError",
    "NotAuthenticated",
    "ValidationError",
    "TargetNotFound",
    "TransactionConflict",
    "StoreUnavailable",
    "PermissionDenied",
]
