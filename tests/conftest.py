# tests/conftest.py
from __future__ import annotations

import json
import os
from collections.abc import AsyncIterator, Generator, Iterator
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from newsroom_admin.core import settings as core_settings
from newsroom_admin.core.security import create_access_token, hash_password
from newsroom_admin.db.session import Base
from newsroom_admin.db.session import get_db as app_get_session
from newsroom_admin.main import app as fastapi_app
from newsroom_admin.models import User
from newsroom_admin.services.console_api import ConsoleApiClient, ConsoleApiConfig
from newsroom_admin.services.session import ConsoleSession
from newsroom_admin.services.storage import (
    ADMIN_USER_KEY,
    AUTH_FLAG_KEY,
    TOKEN_KEY,
    MemoryStorage,
)

TEST_DB_URL = "sqlite://"
TEST_BASE_URL = "http://test/api/v1"
ADMIN_PASSWORD = "correct horse"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
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


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def otp_echo(monkeypatch: pytest.MonkeyPatch) -> None:
    """Have the API return issued codes so tests can relay them."""
    monkeypatch.setattr(core_settings.settings, "otp_echo_enabled", True)


def _create_user(db_session: Session, *, name: str, email: str, role: str) -> User:
    user = User(
        name=name,
        email=email,
        role=role,
        password_hash=hash_password(ADMIN_PASSWORD),
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture()
def admin_user(db_session: Session) -> User:
    """Create and return a persisted console administrator."""
    return _create_user(db_session, name="Ada Admin", email="admin@newsroom.test", role="Admin")


@pytest.fixture()
def reporter_user(db_session: Session) -> User:
    """Create and return a persisted non-admin user."""
    return _create_user(db_session, name="Rita Reporter", email="rita@tech.com", role="Reporter")


@pytest.fixture()
def admin_headers(admin_user: User) -> dict[str, str]:
    """Return authorization headers for the administrator."""
    token = create_access_token(admin_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def reporter_headers(reporter_user: User) -> dict[str, str]:
    token = create_access_token(reporter_user.id)
    return {"Authorization": f"Bearer {token}"}


def cached_admin_record(user: User) -> dict[str, Any]:
    # Cached records use the "_id" key some backends return.
    return {"_id": str(user.id), "name": user.name, "email": user.email, "role": user.role}


@pytest.fixture()
def admin_storage(admin_user: User) -> MemoryStorage:
    """Client storage holding a logged-in administrator."""
    return MemoryStorage(
        {
            TOKEN_KEY: create_access_token(admin_user.id),
            AUTH_FLAG_KEY: "true",
            ADMIN_USER_KEY: json.dumps(cached_admin_record(admin_user)),
        }
    )


@pytest.fixture()
def admin_session(admin_storage: MemoryStorage) -> ConsoleSession:
    return ConsoleSession.load(admin_storage)


@pytest_asyncio.fixture()
async def console_api(app: FastAPI, admin_session: ConsoleSession) -> AsyncIterator[ConsoleApiClient]:
    """Console client bound to the admin session, talking to the in-process API."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url=TEST_BASE_URL) as http_client:
        yield ConsoleApiClient.for_session(
            admin_session,
            ConsoleApiConfig(base_url=TEST_BASE_URL, timeout_seconds=None, login_path="/login"),
            client=http_client,
        )
