# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.

The application runs against an in-memory SQLite database; ``get_db`` is
overridden so the test and the request handlers share one session.
"""

import os
import tempfile

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("INTERNAL_BASIC_AUTH_USER", "ops")
os.environ.setdefault("INTERNAL_BASIC_AUTH_PASS", "ops-secret")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="backoffice-uploads-"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from typing import Generator

import backoffice.models  # noqa: F401
from backoffice.db.base import Base
from backoffice.db.session import get_db
from backoffice.main import app as fastapi_app
from factories import make_role, make_user


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory SQLite database with foreign keys enforced."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(engine):
    """Session bound to the test database."""
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db) -> Generator[TestClient, None, None]:
    """Test client whose requests use the test session."""

    def override_get_db():
        yield db

    fastapi_app.dependency_overrides[get_db] = override_get_db
    with TestClient(fastapi_app) as test_client:
        yield test_client
    fastapi_app.dependency_overrides.clear()


# ---- Common fixtures ----

@pytest.fixture
def roles(db):
    return {
        "super_admin": make_role(db, "super_admin", 100),
        "admin": make_role(db, "admin", 50),
        "user": make_role(db, "user", 1),
    }


@pytest.fixture
def super_admin(db, roles):
    return make_user(db, "root@example.com", roles["super_admin"], name="Root")


@pytest.fixture
def admin(db, roles):
    return make_user(db, "admin@example.com", roles["admin"], name="Admin")


@pytest.fixture
def plain_user(db, roles):
    return make_user(db, "user@example.com", roles["user"], name="Plain")
