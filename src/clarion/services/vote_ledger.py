"""Per-user vote state and the vote counters derived from it.

Each (user, question) pair is a small state machine over ``none``, ``up`` and
``down``. Casting the same vote twice withdraws it; casting the opposite vote
switches sides. The vote record and the question's ``upvotes``,
``downvotes`` and ``vote_count`` fields change in one transaction, and the
counters only ever move by relative increments.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from clarion.models import Question, VoteRecord
from clarion.schemas.question import QuestionRecord
from clarion.schemas.vote import VoteRecordEntry
from clarion.services.errors import ValidationError
from clarion.services.transaction import (
    DeleteDocument,
    DocumentRef,
    IncrementFields,
    SetDocument,
    Snapshot,
    Snapshots,
    TransactionCoordinator,
    Write,
)

logger = logging.getLogger(__name__)


class VoteState(str, Enum):
    """A user's standing vote on a question."""

    NONE = "none"
    UP = "up"
    DOWN = "down"

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> VoteState:
        if not snapshot.exists:
            return cls.NONE
        return cls(snapshot.to_record(VoteRecordEntry).type)


class VoteAction(str, Enum):
    """A vote button press."""

    UP = "up"
    DOWN = "down"

    @classmethod
    def parse(cls, value: str | VoteAction) -> VoteAction:
        try:
            return cls(value)
        except ValueError as err:
            raise ValidationError(f"Unknown vote direction: {value!r}") from err


@dataclass(frozen=True)
class VoteDelta:
    """Counter changes produced by one transition."""

    upvotes: int = 0
    downvotes: int = 0

    @property
    def vote_count(self) -> int:
        return self.upvotes - self.downvotes

    def as_increments(self) -> dict[str, int]:
        return {
            "upvotes": self.upvotes,
            "downvotes": self.downvotes,
            "vote_count": self.vote_count,
        }


_TRANSITIONS: dict[tuple[VoteState, VoteAction], tuple[VoteState, VoteDelta]] = {
    (VoteState.NONE, VoteAction.UP): (VoteState.UP, VoteDelta(upvotes=1)),
    (VoteState.NONE, VoteAction.DOWN): (VoteState.DOWN, VoteDelta(downvotes=1)),
    (VoteState.UP, VoteAction.UP): (VoteState.NONE, VoteDelta(upvotes=-1)),
    (VoteState.UP, VoteAction.DOWN): (VoteState.DOWN, VoteDelta(upvotes=-1, downvotes=1)),
    (VoteState.DOWN, VoteAction.UP): (VoteState.UP, VoteDelta(upvotes=1, downvotes=-1)),
    (VoteState.DOWN, VoteAction.DOWN): (VoteState.NONE, VoteDelta(downvotes=-1)),
}


def apply_vote(state: VoteState, action: VoteAction) -> tuple[VoteState, VoteDelta]:
    """Return the next state and counter delta for ``action`` taken in ``state``."""
    return _TRANSITIONS[(state, action)]


@dataclass(frozen=True)
class VoteOutcome:
    """Committed result of a cast."""

    question_id: str
    previous: VoteState
    state: VoteState
    delta: VoteDelta


def vote_ref(user_id: str, question_id: str) -> DocumentRef:
    return DocumentRef.of(VoteRecord, user_id, question_id)


def question_ref(question_id: str) -> DocumentRef:
    return DocumentRef.of(Question, question_id)


def plan_vote(
    snapshots: Snapshots,
    user_id: str,
    question_id: str,
    action: VoteAction,
) -> tuple[VoteOutcome, list[Write]]:
    """Derive the transition and the writes that commit it.

    Pure function of ``snapshots``, which must cover the vote record and the
    question.
    """
    record = vote_ref(user_id, question_id)
    question = question_ref(question_id)

    snapshots[question].to_record(QuestionRecord, "Question not found")
    previous = VoteState.from_snapshot(snapshots[record])
    state, delta = apply_vote(previous, action)

    writes: list[Write] = []
    if state is VoteState.NONE:
        writes.append(DeleteDocument(record))
    else:
        writes.append(SetDocument(record, {"type": state.value}))
    writes.append(IncrementFields(question, delta.as_increments()))
    return VoteOutcome(question_id, previous, state, delta), writes


class VoteLedger:
    """Casts votes through the transaction coordinator."""

    def __init__(self, coordinator: TransactionCoordinator) -> None:
        self.coordinator = coordinator

    def cast_vote(
        self,
        user_id: str,
        question_id: str,
        action: str | VoteAction,
    ) -> VoteOutcome:
        """Apply a vote button press by ``user_id`` on ``question_id``.

        Raises:
            ValidationError: If the action is not ``up`` or ``down``.
            TargetNotFound: If the question does not exist.
            TransactionConflict: If retries were exhausted under contention.
        """
        vote_action = VoteAction.parse(action)
        committed = self.coordinator.run_atomic(
            [vote_ref(user_id, question_id), question_ref(question_id)],
            lambda snapshots: plan_vote(snapshots, user_id, question_id, vote_action)[1],
        )
        outcome, _ = plan_vote(committed, user_id, question_id, vote_action)
        logger.debug(
            "Vote %s by %s on %s: %s -> %s",
            vote_action.value,
            user_id,
            question_id,
            outcome.previous.value,
            outcome.state.value,
        )
        return outcome

    def current_vote(self, user_id: str, question_id: str) -> VoteState:
        """Return the standing vote of ``user_id`` on ``question_id``."""
        record = vote_ref(user_id, question_id)
        snapshots = self.coordinator.read([record])
        return VoteState.from_snapshot(snapshots[record])


__all__ = [
    "VoteAction",
    "VoteDelta",
    "VoteLedger",
    "VoteOutcome",
    "VoteState",
    "apply_vote",
    "plan_vote",
    "question_ref",
    "vote_ref",
]
