"""Shared API dependencies for authentication and the engagement services."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from clarion.core.security import decode_principal
from clarion.core.settings import settings
from clarion.db.session import SessionLocal, get_db
from clarion.schemas.user import UserRecord
from clarion.services.errors import NotAuthenticated
from clarion.services.follow_graph import FollowGraph
from clarion.services.profiles import get_or_create_profile
from clarion.services.transaction import TransactionCoordinator
from clarion.services.vote_ledger import VoteLedger

# HTTP Bearer scheme for JWT authentication; missing tokens surface as NotAuthenticated.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


@lru_cache
def _shared_coordinator() -> TransactionCoordinator:
    return TransactionCoordinator(
        SessionLocal,
        max_attempts=settings.transaction_max_attempts,
        retry_backoff_seconds=settings.transaction_retry_backoff_seconds,
        isolation_level=settings.transaction_isolation_level,
    )


def get_coordinator() -> TransactionCoordinator:
    """Return the process-wide transaction coordinator."""
    return _shared_coordinator()


CoordinatorDep = Annotated[TransactionCoordinator, Depends(get_coordinator)]


def get_principal_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    """Return the authenticated principal id from the bearer token.

    Raises:
        NotAuthenticated: If the token is missing, expired or malformed.
    """
    if credentials is None:
        raise NotAuthenticated()
    principal_id = decode_principal(credentials.credentials)
    if principal_id is None:
        raise NotAuthenticated("Could not validate credentials")
    return principal_id


PrincipalDep = Annotated[str, Depends(get_principal_id)]


def get_current_user(principal_id: PrincipalDep, coordinator: CoordinatorDep) -> UserRecord:
    """Return the caller's profile, creating the default one on first use."""
    return get_or_create_profile(coordinator, principal_id)


CurrentUserDep = Annotated[UserRecord, Depends(get_current_user)]


def get_vote_ledger(coordinator: CoordinatorDep) -> VoteLedger:
    return VoteLedger(coordinator)


def get_follow_graph(coordinator: CoordinatorDep) -> FollowGraph:
    return FollowGraph(coordinator)


VoteLedgerDep = Annotated[VoteLedger, Depends(get_vote_ledger)]
FollowGraphDep = Annotated[FollowGraph, Depends(get_follow_graph)]
