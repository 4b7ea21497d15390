"""Shared pytest fixtures for workflow service and router tests."""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from src.app import create_app
from src.database.session import get_db
from src.models.enums import UserRole
from src.modules.identity.auth import AuthenticatedUser, get_current_user


@pytest.fixture
def mock_db() -> AsyncMock:
    """AsyncSession stand-in that already has an open transaction.

    ``atomic`` therefore enters ``begin_nested()``; tests can assert on
    ``mock_db.begin_nested.return_value.__aexit__`` to see whether the
    savepoint exited with an exception (rolled back).
    """
    db = AsyncMock()
    db.add = MagicMock()
    db.flush = AsyncMock()
    db.in_transaction = MagicMock(return_value=True)
    db.begin_nested = MagicMock()
    return db


@pytest.fixture
def admin_user() -> AuthenticatedUser:
    return AuthenticatedUser(
        id=uuid.uuid4(), role=UserRole.ADMIN, email="admin@jemo.cm", name="Admin"
    )


@pytest.fixture
def agency_user() -> AuthenticatedUser:
    return AuthenticatedUser(
        id=uuid.uuid4(),
        role=UserRole.DELIVERY_AGENCY,
        email="dispatch@rapidexpress.cm",
        name="Rapid Express",
    )


@pytest.fixture
def make_client(mock_db):
    """Build a TestClient for the full app, authenticated as the given user."""
    app = create_app()
    clients: list[TestClient] = []

    def _make(user: AuthenticatedUser) -> TestClient:
        async def _override_get_current_user():
            return user

        async def _override_get_db():
            yield mock_db

        app.dependency_overrides[get_current_user] = _override_get_current_user
        app.dependency_overrides[get_db] = _override_get_db
        client = TestClient(app)
        clients.append(client)
        return client

    yield _make
    app.dependency_overrides.clear()
