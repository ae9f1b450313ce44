"""
Global pytest configuration and fixtures for all tests.

- Database fixtures (in-memory SQLite through aiosqlite)
- Identity collaborators: fast argon2 hasher, in-memory sessions, fake geocoder
- HTTP client bound to the ASGI app for GraphQL tests
"""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from faker import Faker
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.config import DatabaseConfig, SecurityConfig, SessionConfig
from marketplace.core.database import ConnectionManager, SessionManager
from marketplace.core.enums import Environment, SessionBackend
from marketplace.core.security import PasswordHasher
from marketplace.modules.identity.infrastructure.session_store import (
    InMemorySessionStore,
    SessionBinding,
)

fake = Faker()

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeResponse:
    """Records cookie calls the way a Starlette response would receive them."""

    def __init__(self):
        self.cookies: dict[str, str] = {}
        self.deleted: list[str] = []

    def set_cookie(self, key: str, value: str = "", **kwargs) -> None:
        self.cookies[key] = value

    def delete_cookie(self, key: str, **kwargs) -> None:
        self.cookies.pop(key, None)
        self.deleted.append(key)


# Database fixtures


@pytest.fixture
async def connection_manager() -> AsyncGenerator[ConnectionManager, None]:
    manager = ConnectionManager(
        DatabaseConfig(url=TEST_DATABASE_URL, environment=Environment.TESTING)
    )
    await manager.initialize()
    await manager.create_all()
    yield manager
    await manager.shutdown()


@pytest.fixture
def session_manager(connection_manager) -> SessionManager:
    return SessionManager(connection_manager.engine)


@pytest.fixture
async def db_session(session_manager) -> AsyncGenerator[AsyncSession, None]:
    async with session_manager.session_factory() as session:
        yield session


# Identity collaborators


@pytest.fixture
def security_config() -> SecurityConfig:
    # Cheapest argon2 parameters; the hash format is unchanged.
    return SecurityConfig(argon2_time_cost=1, argon2_memory_cost=8, argon2_parallelism=1)


@pytest.fixture
def hasher(security_config) -> PasswordHasher:
    return PasswordHasher(security_config)


@pytest.fixture
def session_config() -> SessionConfig:
    return SessionConfig(backend=SessionBackend.MEMORY)


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def fake_response() -> FakeResponse:
    return FakeResponse()


@pytest.fixture
def session_binding(session_store, session_config, fake_response) -> SessionBinding:
    return SessionBinding(
        store=session_store, config=session_config, cookies={}, response=fake_response
    )


@pytest.fixture
def mock_geocoder():
    """Geocoder that finds nothing unless a test sets ``resolve.return_value``."""
    geocoder = AsyncMock()
    geocoder.resolve.return_value = None
    return geocoder


@pytest.fixture
def user_data():
    """Valid registration data; usernames never contain '@'."""

    def _user_data(**overrides) -> dict[str, str]:
        username = fake.unique.user_name().replace("@", "")
        data = {
            "username": f"{username}{fake.random_int(100, 999)}",
            "email": f"{username}@mail.com",
            "password": fake.password(length=12),
        }
        data.update(overrides)
        return data

    return _user_data


# HTTP client


@pytest.fixture
def test_settings(monkeypatch, tmp_path):
    from marketplace.core.config import Settings

    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("DATABASE_URL", TEST_DATABASE_URL)
    monkeypatch.setenv("SESSION_BACKEND", "memory")
    monkeypatch.setenv("GEOCODING_ENABLED", "false")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    return Settings(env_file=str(tmp_path / "missing.env"))


@pytest.fixture
def app(test_settings, connection_manager, session_store, mock_geocoder, hasher):
    from marketplace.main import create_app

    return create_app(
        test_settings,
        connection_manager=connection_manager,
        session_store=session_store,
        geocoder=mock_geocoder,
        hasher=hasher,
    )


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
