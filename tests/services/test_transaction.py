# tests/services/test_transaction.py
"""Tests for the transaction coordinator."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError

from clarion.models import Question, User, VoteRecord
from clarion.schemas.user import UserRecord
from clarion.services.errors import (
    PermissionDenied,
    StoreUnavailable,
    TargetNotFound,
    TransactionConflict,
    ValidationError,
)
from clarion.services.transaction import (
    Attempt,
    DeleteDocument,
    DocumentRef,
    IncrementFields,
    SetDocument,
    Snapshot,
    TransactionCoordinator,
    translate_store_error,
)


class _DriverError(Exception):
    def __init__(self, message: str, sqlstate: str | None = None) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


class _SqliteError(Exception):
    def __init__(self, message: str, errorname: str) -> None:
        super().__init__(message)
        self.sqlite_errorname = errorname


def test_writes_commit_together(coordinator, make_user, load) -> None:
    """Set and increment writes land in one commit."""
    make_user("alice")
    user = DocumentRef.of(User, "alice")
    followers_before = load(User, "alice").followers_count

    coordinator.run_atomic(
        [user],
        lambda snaps: [
            IncrementFields(user, {"followers_count": 2}),
            SetDocument(DocumentRef.of(User, "bob"), {
                "username": "Bob",
                "user_id_handle": "@bob",
                "followers_count": 0,
                "following_count": 0,
            }),
        ],
    )

    alice = load(User, "alice")
    assert alice.followers_count == followers_before + 2
    assert alice.version == 2
    assert load(User, "bob").username == "Bob"


def test_set_on_read_document_bumps_version(coordinator, make_question, make_user, load) -> None:
    question_id = make_question()
    make_user("alice")
    ref = DocumentRef.of(VoteRecord, "alice", question_id)

    coordinator.run_atomic([ref], lambda snaps: [SetDocument(ref, {"type": "up"})])
    assert load(VoteRecord, "alice", question_id).version == 1

    coordinator.run_atomic([ref], lambda snaps: [SetDocument(ref, {"type": "down"})])
    record = load(VoteRecord, "alice", question_id)
    assert record.type == "down"
    assert record.version == 2


def test_competing_write_triggers_retry_from_fresh_read(
    coordinator, session_factory, make_question, make_user, load
) -> None:
    """A write landing between read and commit discards the attempt."""
    question_id = make_question()
    make_user("alice")
    ref = DocumentRef.of(VoteRecord, "alice", question_id)
    seen: list[str | None] = []

    def mutate(snaps):
        seen.append(snaps[ref].get("type"))
        if len(seen) == 1:
            with session_factory() as other:
                other.add(VoteRecord(user_id="alice", question_id=question_id, type="down"))
                other.commit()
        return [SetDocument(ref, {"type": "up"})]

    coordinator.run_atomic([ref], mutate)

    assert seen == [None, "down"]
    record = load(VoteRecord, "alice", question_id)
    assert record.type == "up"
    assert record.version == 2


def test_stale_delete_conflicts(coordinator, make_question, make_user, count_rows) -> None:
    question_id = make_question()
    make_user("alice")
    ref = DocumentRef.of(VoteRecord, "alice", question_id)
    coordinator.run_atomic([ref], lambda snaps: [SetDocument(ref, {"type": "up"})])

    with coordinator.attempt([ref]) as stale, coordinator.attempt([ref]) as fresh:
        stale.begin()
        fresh.begin()
        fresh.commit([SetDocument(ref, {"type": "down"})])

        with pytest.raises(TransactionConflict):
            stale.commit([DeleteDocument(ref)])

    assert count_rows(VoteRecord) == 1


def test_insert_over_concurrently_created_row_conflicts(
    coordinator, make_question, make_user
) -> None:
    question_id = make_question()
    make_user("alice")
    ref = DocumentRef.of(VoteRecord, "alice", question_id)

    with coordinator.attempt([ref]) as first, coordinator.attempt([ref]) as second:
        first.begin()
        second.begin()
        first.commit([SetDocument(ref, {"type": "up"})])

        with pytest.raises(TransactionConflict):
            second.commit([SetDocument(ref, {"type": "down"})])


def test_increment_on_missing_document_is_not_retried(coordinator) -> None:
    ref = DocumentRef.of(Question, "missing")
    calls = []

    def mutate(snaps):
        calls.append(1)
        return [IncrementFields(ref, {"answer_count": 1})]

    with pytest.raises(TargetNotFound):
        coordinator.run_atomic([], mutate)
    assert len(calls) == 1


def test_domain_errors_propagate_without_retry(coordinator, make_user) -> None:
    make_user("alice")
    ref = DocumentRef.of(User, "alice")
    calls = []

    def mutate(snaps):
        calls.append(1)
        raise ValidationError("nope")

    with pytest.raises(ValidationError):
        coordinator.run_atomic([ref], mutate)
    assert len(calls) == 1


def test_retries_are_bounded(session_factory, make_user, monkeypatch) -> None:
    make_user("alice")
    ref = DocumentRef.of(User, "alice")
    commits = []

    def always_conflict(self, writes):
        commits.append(1)
        raise TransactionConflict("busy")

    monkeypatch.setattr(Attempt, "commit", always_conflict)
    coordinator = TransactionCoordinator(session_factory, max_attempts=3)

    with pytest.raises(TransactionConflict) as excinfo:
        coordinator.run_atomic([ref], lambda snaps: [])

    assert len(commits) == 3
    assert excinfo.value.message == TransactionConflict.default_message


def test_coordinator_rejects_zero_attempts(session_factory) -> None:
    with pytest.raises(ValueError):
        TransactionCoordinator(session_factory, max_attempts=0)


def test_document_ref_checks_key_arity() -> None:
    with pytest.raises(ValueError):
        DocumentRef.of(VoteRecord, "only-user")
    assert DocumentRef.of(VoteRecord, "u", "q").path == "vote_record/u/q"


def test_malformed_snapshot_raises_validation_error() -> None:
    snapshot = Snapshot(DocumentRef.of(User, "alice"), {"id": "alice", "version": 1})
    with pytest.raises(ValidationError):
        snapshot.to_record(UserRecord)


def test_missing_snapshot_raises_target_not_found() -> None:
    snapshot = Snapshot(DocumentRef.of(User, "ghost"))
    assert not snapshot.exists
    with pytest.raises(TargetNotFound, match="User not found"):
        snapshot.to_record(UserRecord, "User not found")


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (OperationalError("SELECT 1", {}, _DriverError("could not connect to server")), StoreUnavailable),
        (OperationalError("UPDATE", {}, _DriverError("database is locked")), TransactionConflict),
        (OperationalError("UPDATE", {}, _DriverError("could not serialize", "40001")), TransactionConflict),
        (ProgrammingError("UPDATE", {}, _DriverError("permission denied", "42501")), PermissionDenied),
        (IntegrityError("INSERT", {}, _DriverError("duplicate key value", "23505")), TransactionConflict),
        (IntegrityError("INSERT", {}, _DriverError("violates foreign key constraint", "23503")), TargetNotFound),
        (IntegrityError("INSERT", {}, _DriverError("null value in column", "23502")), ValidationError),
        (IntegrityError("INSERT", {}, _DriverError("violates check constraint", "23514")), ValidationError),
        (
            IntegrityError("INSERT", {}, _SqliteError("UNIQUE constraint failed: vote_record.user_id", "SQLITE_CONSTRAINT_PRIMARYKEY")),
            TransactionConflict,
        ),
        (
            IntegrityError("INSERT", {}, _SqliteError("FOREIGN KEY constraint failed", "SQLITE_CONSTRAINT_FOREIGNKEY")),
            TargetNotFound,
        ),
        (IntegrityError("INSERT", {}, _DriverError("NOT NULL constraint failed: user_profile.username")), ValidationError),
    ],
)
def test_translate_store_error(error, expected) -> None:
    assert isinstance(translate_store_error(error), expected)


def test_constraint_violation_on_insert_is_not_retried(coordinator, count_rows) -> None:
    ref = DocumentRef.of(User, "bob")
    calls = []

    def mutate(snaps):
        calls.append(1)
        return [SetDocument(ref, {"user_id_handle": "@bob", "followers_count": 0, "following_count": 0})]

    with pytest.raises(ValidationError):
        coordinator.run_atomic([ref], mutate)

    assert len(calls) == 1
    assert count_rows(User) == 0


def test_store_unavailable_is_not_retried(session_factory, make_user, monkeypatch) -> None:
    make_user("alice")
    ref = DocumentRef.of(User, "alice")
    commits = []

    def store_down(self, writes):
        commits.append(1)
        raise StoreUnavailable()

    monkeypatch.setattr(Attempt, "commit", store_down)
    coordinator = TransactionCoordinator(session_factory, max_attempts=5)

    with pytest.raises(StoreUnavailable):
        coordinator.run_atomic([ref], lambda snaps: [])

    assert len(commits) == 1


def test_commit_before_begin_is_rejected(coordinator) -> None:
    ref = DocumentRef.of(User, "alice")
    with coordinator.attempt([ref]) as attempt:
        with pytest.raises(RuntimeError):
            attempt.commit([SetDocument(ref, {"username": "Alice"})])
