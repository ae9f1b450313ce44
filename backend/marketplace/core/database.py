"""Database connection and session management.

- Base: declarative base shared by all ORM models
- ConnectionManager: async engine lifecycle
- SessionManager: per-unit-of-work sessions with commit on success,
  rollback on error and guaranteed close

Usage Example:
    connections = ConnectionManager(settings.database)
    await connections.initialize()
    sessions = SessionManager(connections.engine)

    async with sessions.get_session() as session:
        provider = await session.get(ProviderModel, 1)
"""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import MetaData, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from marketplace.core.config import DatabaseConfig
from marketplace.core.errors import StoreError
from marketplace.core.logging import get_logger

logger = get_logger(__name__)

DB_NOT_INITIALIZED_MSG = "Database not initialized"
HEALTH_CHECK_QUERY = "SELECT 1"

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base with deterministic constraint names."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


# =====================================================================================
# CONNECTION MANAGER
# =====================================================================================


class ConnectionManager:
    """Owns the async engine."""

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.engine: AsyncEngine | None = None

        logger.info("ConnectionManager created", config=config.to_dict())

    async def initialize(self) -> None:
        if self.engine is not None:
            logger.warning("ConnectionManager already initialized")
            return

        kwargs = self.config.get_engine_kwargs()
        if self.config.is_sqlite and ":memory:" in self.config.url:
            # One shared connection, otherwise every checkout sees an empty database.
            kwargs.update(poolclass=StaticPool, connect_args={"check_same_thread": False})

        self.engine = create_async_engine(self.config.url, **kwargs)
        logger.info("Database engine created")

    async def create_all(self) -> None:
        """Create all tables; used for development and tests."""
        if self.engine is None:
            raise StoreError(DB_NOT_INITIALIZED_MSG)
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def check_health(self) -> dict[str, Any]:
        if self.engine is None:
            return {"healthy": False, "error": DB_NOT_INITIALIZED_MSG}
        start = time.time()
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text(HEALTH_CHECK_QUERY))
        except SQLAlchemyError as e:
            logger.warning("Database health check failed", error=str(e))
            return {"healthy": False}
        return {"healthy": True, "response_time": time.time() - start}

    async def shutdown(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
        logger.info("Database engine disposed")


# =====================================================================================
# SESSION MANAGER
# =====================================================================================


class SessionManager:
    """
    Database session manager with transaction support.

    Usage Example:
        async with manager.get_session() as session:
            provider = await session.get(ProviderModel, provider_id)
            provider.username = "renamed"
            # commit on success, rollback on error
    """

    def __init__(self, engine: AsyncEngine):
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Yield a session; commit on success, roll back on error, always close.

        Raises:
            StoreError: If the commit itself fails
        """
        session = self.session_factory()
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.debug(
                "Database session rolled back",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise
        else:
            try:
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.exception("Database commit failed")
                raise StoreError("Database commit failed", cause=e) from e
        finally:
            await session.close()


__all__ = [
    "Base",
    "ConnectionManager",
    "SessionManager",
]
