"""Follow relationships and the follower/following counters derived from them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from clarion.db.time import utcnow
from clarion.models import FollowerEdge, FollowingEdge, User
from clarion.schemas.user import FollowEdgeResponse, UserRecord
from clarion.services.errors import ValidationError
from clarion.services.transaction import (
    DeleteDocument,
    DocumentRef,
    IncrementFields,
    SetDocument,
    Snapshots,
    TransactionCoordinator,
    Write,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FollowOutcome:
    """Committed result of a toggle."""

    follower_id: str
    followee_id: str
    following: bool


def follow_reads(follower_id: str, followee_id: str) -> list[DocumentRef]:
    """Read set of a toggle: the follower-side edge and both profiles."""
    return [
        DocumentRef.of(FollowingEdge, follower_id, followee_id),
        DocumentRef.of(User, follower_id),
        DocumentRef.of(User, followee_id),
    ]


def plan_toggle_follow(
    snapshots: Snapshots,
    follower_id: str,
    followee_id: str,
    created_at: datetime,
) -> tuple[FollowOutcome, list[Write]]:
    """Derive the edge and counter writes for one toggle from ``snapshots``."""
    following, follower_profile, followee_profile = follow_reads(follower_id, followee_id)
    follower = DocumentRef.of(FollowerEdge, followee_id, follower_id)

    snapshots[follower_profile].to_record(UserRecord, "User not found")
    snapshots[followee_profile].to_record(UserRecord, "User not found")

    if snapshots[following].exists:
        step = -1
        writes: list[Write] = [DeleteDocument(following), DeleteDocument(follower)]
    else:
        step = 1
        edge = {"created_at": created_at}
        writes = [SetDocument(following, edge), SetDocument(follower, edge)]

    writes.append(IncrementFields(follower_profile, {"following_count": step}))
    writes.append(IncrementFields(followee_profile, {"followers_count": step}))
    return FollowOutcome(follower_id, followee_id, step > 0), writes


class FollowGraph:
    """Maintains mirrored follow edges and profile counters atomically."""

    def __init__(self, coordinator: TransactionCoordinator) -> None:
        self.coordinator = coordinator

    def toggle_follow(self, follower_id: str, followee_id: str) -> FollowOutcome:
        """Follow ``followee_id`` if not already following, otherwise unfollow.

        Both mirror edges and both counters change in a single commit.

        Raises:
            ValidationError: If a user tries to follow themselves.
            TargetNotFound: If either profile does not exist.
            TransactionConflict: If retries were exhausted under contention.
        """
        if follower_id == followee_id:
            raise ValidationError("You cannot follow yourself")

        created_at = utcnow()
        committed = self.coordinator.run_atomic(
            follow_reads(follower_id, followee_id),
            lambda snapshots: plan_toggle_follow(
                snapshots, follower_id, followee_id, created_at
            )[1],
        )
        outcome, _ = plan_toggle_follow(committed, follower_id, followee_id, created_at)
        logger.debug(
            "%s %s %s",
            follower_id,
            "followed" if outcome.following else "unfollowed",
            followee_id,
        )
        return outcome

    def is_following(self, follower_id: str, followee_id: str) -> bool:
        """Return True if ``follower_id`` currently follows ``followee_id``."""
        edge = DocumentRef.of(FollowingEdge, follower_id, followee_id)
        return self.coordinator.read([edge])[edge].exists


def list_following(db: Session, user_id: str) -> list[FollowEdgeResponse]:
    """Return the users ``user_id`` follows, most recent first."""
    rows = db.execute(
        select(FollowingEdge.other_id, FollowingEdge.created_at)
        .where(FollowingEdge.owner_id == user_id)
        .order_by(FollowingEdge.created_at.desc())
    ).all()
    return [FollowEdgeResponse(user_id=other_id, created_at=created_at) for other_id, created_at in rows]


def list_followers(db: Session, user_id: str) -> list[FollowEdgeResponse]:
    """Return the users following ``user_id``, most recent first."""
    rows = db.execute(
        select(FollowerEdge.other_id, FollowerEdge.created_at)
        .where(FollowerEdge.owner_id == user_id)
        .order_by(FollowerEdge.created_at.desc())
    ).all()
    return [FollowEdgeResponse(user_id=other_id, created_at=created_at) for other_id, created_at in rows]


__all__ = [
    "FollowGraph",
    "FollowOutcome",
    "follow_reads",
    "list_followers",
    "list_following",
    "plan_toggle_follow",
]
