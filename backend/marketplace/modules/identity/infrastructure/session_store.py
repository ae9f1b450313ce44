"""
Server-side sessions bound to an HTTP cookie.

The cookie carries only an opaque random session id; the data (which actor is
logged in) lives in a ``SessionStore``. ``SessionBinding`` ties one request /
response pair to that store and is what the identity layer talks to.
"""

import json
import secrets
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Protocol

import redis.asyncio as redis
from redis.exceptions import RedisError

from marketplace.core.config import SessionConfig
from marketplace.core.errors import SessionError
from marketplace.core.logging import get_logger
from marketplace.modules.identity.domain.actor import ActorKind

logger = get_logger(__name__)


class CookieResponse(Protocol):
    """The part of a response object the session binding needs."""

    def set_cookie(self, key: str, value: str = "", **kwargs: Any) -> None: ...

    def delete_cookie(self, key: str, **kwargs: Any) -> None: ...


# =====================================================================================
# STORES
# =====================================================================================


class SessionStore(ABC):
    """Storage for session payloads keyed by session id."""

    @abstractmethod
    async def load(self, session_id: str) -> dict[str, Any] | None:
        """Return the payload for ``session_id`` or ``None``."""

    @abstractmethod
    async def save(self, session_id: str, data: dict[str, Any], ttl_seconds: int) -> None:
        """Store ``data`` under ``session_id``."""

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        """Remove ``session_id``; missing ids are not an error."""

    async def close(self) -> None:
        """Release any connections held by the store."""


class RedisSessionStore(SessionStore):
    """Redis-backed session store with JSON payloads."""

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        key_prefix: str = "sess:",
        socket_timeout: float = 5.0,
        client: redis.Redis | None = None,
    ):
        self._key_prefix = key_prefix
        self._client = client or redis.Redis.from_url(
            redis_url,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
            decode_responses=True,
        )

        logger.info("Redis session store initialized", key_prefix=key_prefix)

    def _key(self, session_id: str) -> str:
        return f"{self._key_prefix}{session_id}"

    async def load(self, session_id: str) -> dict[str, Any] | None:
        try:
            raw = await self._client.get(self._key(session_id))
        except RedisError as e:
            raise SessionError("Session load failed", cause=e) from e
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding undecodable session payload")
            return None

    async def save(self, session_id: str, data: dict[str, Any], ttl_seconds: int) -> None:
        try:
            await self._client.set(self._key(session_id), json.dumps(data), ex=ttl_seconds)
        except RedisError as e:
            raise SessionError("Session save failed", cause=e) from e

    async def delete(self, session_id: str) -> None:
        try:
            await self._client.delete(self._key(session_id))
        except RedisError as e:
            raise SessionError("Session destroy failed", cause=e) from e

    async def close(self) -> None:
        await self._client.aclose()


class InMemorySessionStore(SessionStore):
    """Process-local session store for development and tests. Ignores TTLs."""

    def __init__(self):
        self._data: dict[str, dict[str, Any]] = {}

    async def load(self, session_id: str) -> dict[str, Any] | None:
        data = self._data.get(session_id)
        return dict(data) if data is not None else None

    async def save(self, session_id: str, data: dict[str, Any], ttl_seconds: int) -> None:
        self._data[session_id] = dict(data)

    async def delete(self, session_id: str) -> None:
        self._data.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._data)


# =====================================================================================
# BINDING
# =====================================================================================


class SessionBinding:
    """
    Session state for one request/response pair.

    A session holds at most one authenticated actor of at most one kind;
    binding a new actor replaces whatever was bound before and rotates the
    session id.

    ``generation`` counts the bindings made during this request.
    """

    def __init__(
        self,
        store: SessionStore,
        config: SessionConfig,
        cookies: Mapping[str, str],
        response: CookieResponse,
    ):
        self.store = store
        self.config = config
        self.response = response
        self.session_id: str | None = cookies.get(config.cookie_name)
        self._data: dict[str, Any] | None = None
        self.generation = 0

    async def _load(self) -> dict[str, Any]:
        if self._data is None:
            data = None
            if self.session_id:
                data = await self.store.load(self.session_id)
            self._data = data or {}
        return self._data

    async def get(self, kind: ActorKind) -> int | None:
        """Id of the actor of ``kind`` bound to this session, if any."""
        value = (await self._load()).get(kind.session_key)
        return int(value) if value is not None else None

    async def set(self, kind: ActorKind, actor_id: int) -> None:
        """Bind ``actor_id`` to a fresh session and send the cookie."""
        if self.session_id:
            await self.store.delete(self.session_id)

        session_id = secrets.token_urlsafe(32)
        data = {kind.session_key: actor_id}
        await self.store.save(session_id, data, self.config.ttl_seconds)

        self.session_id = session_id
        self._data = data
        self.generation += 1
        self.response.set_cookie(
            self.config.cookie_name,
            session_id,
            max_age=self.config.ttl_seconds,
            httponly=True,
            secure=self.config.cookie_secure,
            samesite=self.config.cookie_samesite,
        )

    async def destroy(self) -> None:
        """
        Remove the session from the store.

        Raises:
            SessionError: If the store fails
        """
        session_id, self.session_id = self.session_id, None
        self._data = {}
        if session_id:
            await self.store.delete(session_id)

    async def unbind(self) -> None:
        """
        Drop a binding made in this request and expire the cookie.

        Raises:
            SessionError: If the store or the response fails
        """
        try:
            await self.destroy()
        finally:
            self.clear_client_token()

    def clear_client_token(self) -> None:
        """Expire the session cookie on the client."""
        try:
            self.response.delete_cookie(
                self.config.cookie_name,
                httponly=True,
                secure=self.config.cookie_secure,
                samesite=self.config.cookie_samesite,
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise SessionError("Clearing the session cookie failed", cause=e) from e
