# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from itertools import count
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("SECRET_KEY", "clarion-test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from clarion.api.v1.dependencies import get_coordinator
from clarion.core.security import create_access_token
from clarion.db.session import Base
from clarion.db.session import get_db as app_get_session
from clarion.db.time import utcnow
from clarion.main import app as fastapi_app
from clarion.models import Question, User
from clarion.services.profiles import default_profile_values
from clarion.services.transaction import TransactionCoordinator

_QUESTION_COUNTER = count(1)


@pytest.fixture()
def engine(tmp_path: Path) -> Iterator[Engine]:
    # File-backed so that independent sessions see each other's commits.
    engine = create_engine(
        f"sqlite:///{tmp_path / 'clarion-test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def coordinator(session_factory: sessionmaker[Session]) -> TransactionCoordinator:
    return TransactionCoordinator(session_factory, max_attempts=5)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    session_factory: sessionmaker[Session],
    coordinator: TransactionCoordinator,
) -> Iterator[None]:
    def _get_session_override() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_coordinator] = lambda: coordinator
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_coordinator, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(session_factory: sessionmaker[Session]) -> Callable[[str], str]:
    """Return a factory persisting a default profile and returning its id."""

    def _make(user_id: str) -> str:
        with session_factory() as session:
            session.add(User(id=user_id, **default_profile_values(user_id)))
            session.commit()
        return user_id

    return _make


@pytest.fixture()
def make_question(
    session_factory: sessionmaker[Session],
    make_user: Callable[[str], str],
) -> Callable[..., str]:
    """Return a factory persisting a question with zeroed counters."""

    def _make(author_id: str = "author", title: str | None = None) -> str:
        with session_factory() as session:
            if session.get(User, author_id) is None:
                make_user(author_id)
            question_id = f"q{next(_QUESTION_COUNTER)}"
            session.add(
                Question(
                    id=question_id,
                    author_id=author_id,
                    title=title or f"Question {question_id}?",
                    tags=[],
                    author_handle=f"@anon_{author_id[:6]}",
                    author_initial="A",
                    upvotes=0,
                    downvotes=0,
                    vote_count=0,
                    answer_count=0,
                    comment_count=0,
                    created_at=utcnow(),
                )
            )
            session.commit()
        return question_id

    return _make


@pytest.fixture()
def load(session_factory: sessionmaker[Session]) -> Callable[..., object | None]:
    """Return a helper fetching the committed state of a row."""

    def _load(model: type, *key: str) -> object | None:
        with session_factory() as session:
            return session.get(model, key if len(key) > 1 else key[0])

    return _load


@pytest.fixture()
def count_rows(session_factory: sessionmaker[Session]) -> Callable[..., int]:
    """Return a helper counting committed rows of a model, optionally filtered."""

    def _count(model: type, *criteria: object) -> int:
        stmt = select(func.count()).select_from(model)
        if criteria:
            stmt = stmt.where(*criteria)
        with session_factory() as session:
            return session.scalar(stmt) or 0

    return _count


@pytest.fixture()
def auth_headers() -> Callable[[str], dict[str, str]]:
    """Return a factory building bearer headers for a principal id."""

    def _headers(principal_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(principal_id)}"}

    return _headers
