"""
Actor Store Implementation

SQLAlchemy async implementation of the actor store for one actor kind.
"""

import re
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import StoreError, UniquenessViolationError
from marketplace.core.logging import get_logger
from marketplace.modules.identity.domain.actor import normalize_email
from marketplace.modules.identity.infrastructure.actor_kinds import ActorKindSpec
from marketplace.modules.identity.infrastructure.models import ActorModelMixin

logger = get_logger(__name__)

UNIQUE_COLUMNS = ("username", "email")
UNIQUE_CONSTRAINT_NAME = re.compile(
    r"^(?:uq_)?\w+?_(?P<column>username|email)(?:_key)?$", re.IGNORECASE
)
SQLITE_UNIQUE_FAILURE = re.compile(
    r"UNIQUE constraint failed: \w+\.(?P<column>\w+)", re.IGNORECASE
)


class SQLActorStore:
    """Queries and mutations over the table backing ``spec.kind``."""

    def __init__(self, session: AsyncSession, spec: ActorKindSpec):
        self.session = session
        self.spec = spec
        self.model = spec.model

    async def find_by_id(self, actor_id: int) -> ActorModelMixin | None:
        """Find actor by id, with its related sub-records."""
        return await self._find_one(self.model.id == actor_id)

    async def find_by_username(self, username: str) -> ActorModelMixin | None:
        return await self._find_one(self.model.username == username)

    async def find_by_email(self, email: str) -> ActorModelMixin | None:
        return await self._find_one(self.model.email == normalize_email(email))

    async def find_all(self) -> list[ActorModelMixin]:
        stmt = select(self.model).options(*self.spec.load_options()).order_by(self.model.id)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreError(f"Listing {self.model.__tablename__} failed", cause=e) from e
        return list(result.scalars().all())

    async def count(self) -> int:
        try:
            result = await self.session.execute(select(func.count(self.model.id)))
        except SQLAlchemyError as e:
            raise StoreError(f"Count on {self.model.__tablename__} failed", cause=e) from e
        return result.scalar_one()

    async def insert(self, values: dict[str, Any]) -> ActorModelMixin:
        """
        Insert a new actor.

        Raises:
            UniquenessViolationError: username or email already taken
            StoreError: any other store failure
        """
        for name in self.spec.related:
            values.setdefault(name, [])
        actor = self.model(**values)
        self.session.add(actor)
        await self._flush(actor)

        logger.info(
            "Actor inserted",
            kind=self.spec.kind.value,
            actor_id=actor.id,
        )
        return actor

    async def update(self, actor: ActorModelMixin, **changes: Any) -> ActorModelMixin:
        """
        Apply ``changes`` to ``actor`` and flush.

        Raises:
            UniquenessViolationError: the new username or email is taken
            StoreError: any other store failure
        """
        for key, value in changes.items():
            setattr(actor, key, value)
        await self._flush(actor)

        logger.info(
            "Actor updated",
            kind=self.spec.kind.value,
            actor_id=actor.id,
            fields=sorted(changes),
        )
        return actor

    async def _find_one(self, condition) -> ActorModelMixin | None:
        stmt = select(self.model).where(condition).options(*self.spec.load_options())
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreError(f"Lookup on {self.model.__tablename__} failed", cause=e) from e
        return result.scalars().first()

    async def _flush(self, actor: ActorModelMixin) -> None:
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            column = _violated_unique_column(e)
            if column is None:
                raise StoreError(
                    f"Integrity error on {self.model.__tablename__}", cause=e
                ) from e
            raise UniquenessViolationError(
                f"Duplicate {column} on {self.model.__tablename__}",
                column=column,
                user_message=f"this {column} already exists",
                cause=e,
            ) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StoreError(f"Write to {self.model.__tablename__} failed", cause=e) from e


def _constraint_name(orig: BaseException | None) -> str | None:
    # asyncpg's error is the cause of SQLAlchemy's adapted DBAPI error;
    # psycopg exposes it through ``diag``.
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        name = getattr(candidate, "constraint_name", None)
        if name is None:
            name = getattr(getattr(candidate, "diag", None), "constraint_name", None)
        if name:
            return name
    return None


def _violated_unique_column(error: IntegrityError) -> str | None:
    """
    Work out which unique column an IntegrityError is about.

    Postgres names the violated constraint (``uq_providers_email``, or
    ``providers_email_key`` for tables built with ``create_all``); SQLite
    reports ``UNIQUE constraint failed: providers.email``. The error text is
    never searched for column names since it echoes the submitted value.
    """
    constraint = _constraint_name(error.orig)
    if constraint is not None:
        match = UNIQUE_CONSTRAINT_NAME.match(constraint)
        return match.group("column").lower() if match else None

    match = SQLITE_UNIQUE_FAILURE.search(str(error.orig))
    if match and match.group("column").lower() in UNIQUE_COLUMNS:
        return match.group("column").lower()
    return None
