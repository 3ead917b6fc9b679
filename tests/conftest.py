# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
# Cheapest argon2id parameters libsodium accepts.
os.environ.setdefault("PASSWORD_HASH_OPSLIMIT", "1")
os.environ.setdefault("PASSWORD_HASH_MEMLIMIT", "8192")
os.environ.setdefault("REALTIME_BACKEND", "memory")

from orbit_social.core.security import create_access_token, hash_password
from orbit_social.db.session import Base
from orbit_social.db.session import get_db as app_get_session
from orbit_social.main import app as fastapi_app
from orbit_social.models import Follow, Post, Privacy, Role, User
from orbit_social.services import relationships
from orbit_social.services.broker import reset_notification_broker

TEST_DB_URL = "sqlite://"
DEFAULT_PASSWORD = "correct-horse-42"
BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

_USER_COUNTER = count(1)
_POST_CLOCK = count(1)
# Hashing is the slow part of building a user; every fixture user shares one hash.
_DEFAULT_PASSWORD_HASH = hash_password(DEFAULT_PASSWORD)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record) -> None:  # pragma: no cover - driver hook
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    # Endpoint commits and rollbacks only ever touch a SAVEPOINT.
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture(autouse=True)
def fresh_broker() -> Iterator[None]:
    """Give every test its own in-memory notification broker."""
    reset_notification_broker()
    yield
    reset_notification_broker()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def auth_headers(user: User) -> dict[str, str]:
    """Return authorization headers for ``user``."""
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory that persists users with sensible defaults."""

    def _make_user(
        username: str | None = None,
        *,
        privacy: Privacy = Privacy.PUBLIC,
        role: Role = Role.USER,
        is_active: bool = True,
        full_name: str | None = None,
        bio: str | None = None,
    ) -> User:
        username = username or f"user{next(_USER_COUNTER)}"
        user = User(
            email=f"{username}@example.com",
            username=username,
            password_hash=_DEFAULT_PASSWORD_HASH,
            full_name=full_name,
            bio=bio,
            privacy=privacy,
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.flush()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def make_post(db_session: Session) -> Callable[..., Post]:
    """Return a factory for posts with strictly increasing ``created_at``."""

    def _make_post(author: User, content: str = "Hello orbit", **fields) -> Post:
        fields.setdefault("created_at", BASE_TIME + timedelta(minutes=next(_POST_CLOCK)))
        post = Post(user_id=author.id, content=content, **fields)
        db_session.add(post)
        db_session.flush()
        author.posts_count += 1
        db_session.flush()
        db_session.refresh(post)
        return post

    return _make_post


@pytest.fixture()
def make_follow(db_session: Session) -> Callable[[User, User], Follow]:
    """Return a helper that makes ``follower`` follow ``target``."""

    def _make_follow(follower: User, target: User) -> Follow:
        edge = relationships.follow(db_session, follower, target)
        db_session.flush()
        return edge

    return _make_follow


@pytest.fixture()
def alice(make_user: Callable[..., User]) -> User:
    """A public account."""
    return make_user("alice", full_name="Alice Example", bio="Hi, I'm Alice")


@pytest.fixture()
def bob(make_user: Callable[..., User]) -> User:
    """A second public account."""
    return make_user("bob", full_name="Bob Example")


@pytest.fixture()
def admin_user(make_user: Callable[..., User]) -> User:
    return make_user("root_admin", role=Role.ADMIN)


@pytest.fixture()
def alice_headers(alice: User) -> dict[str, str]:
    return auth_headers(alice)


@pytest.fixture()
def bob_headers(bob: User) -> dict[str, str]:
    return auth_headers(bob)


@pytest.fixture()
def admin_headers(admin_user: User) -> dict[str, str]:
    return auth_headers(admin_user)


@pytest.fixture()
def headers_for() -> Callable[[User], dict[str, str]]:
    """Expose :func:`auth_headers` to tests that build their own users."""
    return auth_headers


@pytest.fixture()
def password() -> str:
    """Plain-text password shared by every fixture user."""
    return DEFAULT_PASSWORD
