"""Atomic read-compute-write transactions with optimistic retry.

The coordinator reads a fixed set of documents, hands the snapshots to a pure
``mutate`` function and commits the writes it returns in one database
transaction. Writes that depend on what was read carry a version
precondition; when another transaction changed a read document in between,
the precondition fails, the attempt is rolled back and the whole cycle runs
again from a fresh read.

Counter fields are never overwritten with an absolute value. They move
through :class:`IncrementFields`, which compiles to ``col = col + delta`` and
therefore composes with concurrent increments without a precondition.

Example:
    coordinator = TransactionCoordinator(SessionLocal, max_attempts=5)
    ref = DocumentRef.of(Question, question_id)
    coordinator.run_atomic([ref], lambda snaps: [IncrementFields(ref, {"answer_count": 1})])
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from types import TracebackType
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import ColumnElement, Table, and_, delete, insert, select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from clarion.services.errors import (
    PermissionDenied,
    StoreUnavailable,
    TargetNotFound,
    TransactionConflict,
    ValidationError,
)

logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected
_CONFLICT_SQLSTATES = frozenset({"40001", "40P01"})
# insufficient_privilege
_PERMISSION_SQLSTATES = frozenset({"42501"})
_UNIQUE_VIOLATION = "23505"
_FOREIGN_KEY_VIOLATION = "23503"
_SQLITE_UNIQUE_ERRORS = frozenset({"SQLITE_CONSTRAINT_PRIMARYKEY", "SQLITE_CONSTRAINT_UNIQUE"})

RecordT = TypeVar("RecordT", bound=BaseModel)


@dataclass(frozen=True)
class DocumentRef:
    """Address of one row: the mapped model plus its primary key values."""

    model: type[Any]
    key: tuple[Any, ...]

    def __post_init__(self) -> None:
        expected = len(self.table.primary_key.columns)
        if len(self.key) != expected:
            raise ValueError(
                f"{self.table.name} is keyed by {expected} column(s), got {len(self.key)}"
            )

    @classmethod
    def of(cls, model: type[Any], *key: Any) -> DocumentRef:
        """Build a reference from positional primary key values."""
        return cls(model, tuple(key))

    @property
    def table(self) -> Table:
        return self.model.__table__

    @property
    def path(self) -> str:
        return "/".join([self.table.name, *(str(part) for part in self.key)])

    def key_values(self) -> dict[str, Any]:
        return {
            column.name: value
            for column, value in zip(self.table.primary_key.columns, self.key, strict=True)
        }

    def where(self) -> ColumnElement[bool]:
        return and_(
            *(
                column == value
                for column, value in zip(self.table.primary_key.columns, self.key, strict=True)
            )
        )


@dataclass(frozen=True)
class Snapshot:
    """Row contents as seen by one transaction attempt, or ``None`` when absent."""

    ref: DocumentRef
    data: Mapping[str, Any] | None = None

    @property
    def exists(self) -> bool:
        return self.data is not None

    @property
    def version(self) -> int | None:
        if self.data is None:
            return None
        return int(self.data["version"])

    def get(self, field: str, default: Any = None) -> Any:
        if self.data is None:
            return default
        return self.data.get(field, default)

    def to_record(self, record_type: type[RecordT], missing_message: str | None = None) -> RecordT:
        """Validate the row against a record type.

        Raises:
            TargetNotFound: If the row does not exist.
            ValidationError: If required fields are missing or malformed.
        """
        if self.data is None:
            raise TargetNotFound(missing_message or f"{self.ref.path} does not exist")
        try:
            return record_type.model_validate(dict(self.data))
        except PydanticValidationError as err:
            raise ValidationError(f"Stored record {self.ref.path} is malformed") from err


Snapshots = Mapping[DocumentRef, Snapshot]


@dataclass(frozen=True)
class SetDocument:
    """Create the document, or overwrite the given fields if it was read present."""

    ref: DocumentRef
    values: Mapping[str, Any]


@dataclass(frozen=True)
class IncrementFields:
    """Add signed deltas to integer fields of an existing document."""

    ref: DocumentRef
    deltas: Mapping[str, int]


@dataclass(frozen=True)
class DeleteDocument:
    """Remove the document."""

    ref: DocumentRef


Write = SetDocument | IncrementFields | DeleteDocument
Mutation = Callable[[Snapshots], Sequence[Write]]


def _sqlstate(err: DBAPIError) -> str | None:
    orig = err.orig
    # psycopg exposes ``sqlstate``, psycopg2 exposes ``pgcode``.
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _translate_integrity_error(err: IntegrityError, code: str | None) -> Exception:
    # sqlite3 exposes the extended result code name since Python 3.11.
    sqlite_name = getattr(err.orig, "sqlite_errorname", None)
    detail = str(err.orig)
    lowered = detail.lower()
    if (
        code == _UNIQUE_VIOLATION
        or sqlite_name in _SQLITE_UNIQUE_ERRORS
        or "unique constraint failed" in lowered
    ):
        return TransactionConflict(detail)
    if (
        code == _FOREIGN_KEY_VIOLATION
        or sqlite_name == "SQLITE_CONSTRAINT_FOREIGNKEY"
        or "foreign key constraint failed" in lowered
    ):
        return TargetNotFound("A referenced document does not exist")
    return ValidationError("The write violates a data constraint")


def translate_store_error(err: DBAPIError) -> Exception:
    """Map a driver-level failure onto the engagement error taxonomy.

    Only unique-key collisions and serialization failures become
    :class:`TransactionConflict`; other integrity failures are not caused by
    concurrent writers and map to ``TargetNotFound`` or ``ValidationError``.
    """
    code = _sqlstate(err)
    if code in _CONFLICT_SQLSTATES:
        return TransactionConflict(str(err.orig))
    if isinstance(err, IntegrityError):
        return _translate_integrity_error(err, code)
    if code in _PERMISSION_SQLSTATES:
        return PermissionDenied()
    if isinstance(err, OperationalError) and "locked" in str(err.orig).lower():
        # SQLite reports write contention as a locked database.
        return TransactionConflict(str(err.orig))
    if err.connection_invalidated or isinstance(err, OperationalError | InterfaceError):
        return StoreUnavailable("The database connection was lost, please try again")
    return StoreUnavailable()


@contextmanager
def _store_errors() -> Iterator[None]:
    try:
        yield
    except DBAPIError as err:
        translated = translate_store_error(err)
        if isinstance(translated, StoreUnavailable | PermissionDenied):
            logger.error("Store rejected transaction: %s", err.orig)
        raise translated from err


class Attempt:
    """One read-compute-write cycle bound to its own session.

    ``begin`` performs the reads, ``commit`` applies the writes and commits.
    The coordinator drives both in sequence; tests may interleave the phases
    of several attempts to reproduce concurrent clients.
    """

    def __init__(
        self,
        session: Session,
        reads: Sequence[DocumentRef],
        *,
        isolation_level: str | None = None,
    ) -> None:
        self.reads = tuple(reads)
        self.snapshots: dict[DocumentRef, Snapshot] | None = None
        self._session = session
        self._isolation_level = isolation_level

    def __enter__(self) -> Attempt:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def begin(self) -> Snapshots:
        """Read every document in the read set."""
        snapshots: dict[DocumentRef, Snapshot] = {}
        with _store_errors():
            if self._isolation_level:
                self._session.connection(
                    execution_options={"isolation_level": self._isolation_level}
                )
            for ref in self.reads:
                row = self._session.execute(
                    select(ref.table).where(ref.where())
                ).mappings().first()
                snapshots[ref] = Snapshot(ref, dict(row) if row is not None else None)
        self.snapshots = snapshots
        return snapshots

    def commit(self, writes: Iterable[Write]) -> None:
        """Apply ``writes`` and commit them as a unit.

        Raises:
            TransactionConflict: A read document changed since ``begin``.
            TargetNotFound: An incremented document does not exist.
        """
        snapshots = self.snapshots
        if snapshots is None:
            raise RuntimeError("begin() must run before commit()")
        with _store_errors():
            for write in writes:
                self._apply(write, snapshots.get(write.ref))
            self._session.commit()

    def close(self) -> None:
        self._session.close()

    def _apply(self, write: Write, snapshot: Snapshot | None) -> None:
        ref = write.ref
        table = ref.table

        if isinstance(write, SetDocument):
            version = snapshot.version if snapshot is not None else None
            if version is not None:
                stmt = (
                    update(table)
                    .where(ref.where(), table.c.version == version)
                    .values({**write.values, "version": version + 1})
                )
                self._expect_single_row(self._session.execute(stmt), ref)
            else:
                values = {**write.values, **ref.key_values(), "version": 1}
                self._session.execute(insert(table).values(values))
            return

        if isinstance(write, IncrementFields):
            values: dict[str, Any] = {
                name: table.c[name] + delta for name, delta in write.deltas.items()
            }
            values["version"] = table.c.version + 1
            try:
                result = self._session.execute(update(table).where(ref.where()).values(values))
            except IntegrityError as err:
                raise ValidationError(f"Increment on {ref.path} violates a constraint") from err
            if result.rowcount == 0:
                raise TargetNotFound(f"{ref.path} does not exist")
            return

        if isinstance(write, DeleteDocument):
            stmt = delete(table).where(ref.where())
            if snapshot is None:
                self._session.execute(stmt)
            elif snapshot.exists:
                stmt = stmt.where(table.c.version == snapshot.version)
                self._expect_single_row(self._session.execute(stmt), ref)
            elif self._session.execute(stmt).rowcount:
                raise TransactionConflict(f"{ref.path} was created since it was read")
            return

        raise TypeError(f"Unsupported write: {write!r}")

    @staticmethod
    def _expect_single_row(result: CursorResult[Any], ref: DocumentRef) -> None:
        if result.rowcount != 1:
            raise TransactionConflict(f"{ref.path} changed since it was read")


class TransactionCoordinator:
    """Runs read-compute-write cycles atomically, retrying on conflicts.

    Only :class:`TransactionConflict` is retried. Every other error raised by
    the store or by ``mutate`` propagates on the first occurrence.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        max_attempts: int = 5,
        retry_backoff_seconds: float = 0.0,
        isolation_level: str | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.session_factory = session_factory
        self.max_attempts = max_attempts
        self.retry_backoff_seconds = retry_backoff_seconds
        self.isolation_level = isolation_level

    def attempt(self, reads: Iterable[DocumentRef]) -> Attempt:
        """Open a single attempt over ``reads`` without running it."""
        return Attempt(
            self.session_factory(),
            tuple(dict.fromkeys(reads)),
            isolation_level=self.isolation_level,
        )

    def read(self, reads: Iterable[DocumentRef]) -> Snapshots:
        """Read documents from one consistent attempt without writing."""
        with self.attempt(reads) as attempt:
            return attempt.begin()

    def run_atomic(self, reads: Iterable[DocumentRef], mutate: Mutation) -> Snapshots:
        """Read ``reads``, apply ``mutate(snapshots)`` and commit atomically.

        ``mutate`` must be a pure function of the snapshots: it runs again
        from scratch on every retry.

        Returns:
            The snapshots of the attempt that committed.

        Raises:
            TransactionConflict: If every attempt conflicted.
        """
        refs = tuple(dict.fromkeys(reads))
        last_conflict: TransactionConflict | None = None

        for attempt_number in range(1, self.max_attempts + 1):
            try:
                with self.attempt(refs) as attempt:
                    snapshots = attempt.begin()
                    attempt.commit(mutate(snapshots))
                    return snapshots
            except TransactionConflict as conflict:
                last_conflict = conflict
                logger.debug(
                    "Transaction attempt %d/%d conflicted: %s",
                    attempt_number,
                    self.max_attempts,
                    conflict.message,
                )
            if attempt_number < self.max_attempts and self.retry_backoff_seconds > 0:
                time.sleep(self.retry_backoff_seconds * attempt_number)

        logger.warning(
            "Transaction over %s gave up after %d attempts",
            ", ".join(ref.path for ref in refs),
            self.max_attempts,
        )
        raise TransactionConflict() from last_conflict


__all__ = [
    "Attempt",
    "DeleteDocument",
    "DocumentRef",
    "IncrementFields",
    "Mutation",
    "SetDocument",
    "Snapshot",
    "Snapshots",
    "TransactionCoordinator",
    "Write",
    "translate_store_error",
]
