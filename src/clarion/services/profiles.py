"""Profile bootstrap and lookup for authenticated principals."""
from __future__ import annotations

import logging

from clarion.db.time import utcnow
from clarion.models import User
from clarion.schemas.user import UserRecord
from clarion.services.errors import ValidationError
from clarion.services.transaction import (
    DocumentRef,
    SetDocument,
    Snapshots,
    TransactionCoordinator,
    Write,
)

__all__ = [
    "default_profile_values",
    "get_or_create_profile",
    "get_profile",
]

logger = logging.getLogger(__name__)

_SHORT_ID_LENGTH = 6


def default_profile_values(principal_id: str) -> dict[str, object]:
    """Return the profile fields given to a first-time anonymous user."""
    short_id = principal_id[:_SHORT_ID_LENGTH]
    return {
        "username": f"Anonymous User #{short_id}",
        "user_id_handle": f"@anon_{short_id}",
        "followers_count": 0,
        "following_count": 0,
    }


def get_or_create_profile(coordinator: TransactionCoordinator, principal_id: str) -> UserRecord:
    """Return the profile for ``principal_id``, creating a default one if missing.

    Two first requests racing each other collapse onto the same row: the
    losing insert conflicts, retries, and then reads the winner's profile.
    """
    if not principal_id:
        raise ValidationError("Principal id must not be empty")

    ref = DocumentRef.of(User, principal_id)
    created_at = utcnow()

    def mutate(snapshots: Snapshots) -> list[Write]:
        if snapshots[ref].exists:
            return []
        return [SetDocument(ref, {**default_profile_values(principal_id), "created_at": created_at})]

    committed = coordinator.run_atomic([ref], mutate)
    if committed[ref].exists:
        return committed[ref].to_record(UserRecord)

    logger.info("Created default profile for %s", principal_id)
    return get_profile(coordinator, principal_id)


def get_profile(coordinator: TransactionCoordinator, user_id: str) -> UserRecord:
    """Return the profile for ``user_id``.

    Raises:
        TargetNotFound: If no such profile exists.
    """
    ref = DocumentRef.of(User, user_id)
    return coordinator.read([ref])[ref].to_record(UserRecord, "User not found")
