"""Tests for cookie-bound server-side sessions."""

from unittest.mock import AsyncMock

import pytest

from marketplace.core.errors import SessionError
from marketplace.modules.identity.domain.actor import ActorKind
from marketplace.modules.identity.infrastructure.session_store import (
    InMemorySessionStore,
    SessionBinding,
)


class TestSessionBinding:
    @pytest.mark.asyncio
    async def test_unbound_session_has_no_actor(self, session_binding):
        assert await session_binding.get(ActorKind.CLIENT) is None
        assert await session_binding.get(ActorKind.PROVIDER) is None

    @pytest.mark.asyncio
    async def test_set_stores_id_and_sends_cookie(
        self, session_binding, session_store, fake_response, session_config
    ):
        # Act
        await session_binding.set(ActorKind.PROVIDER, 7)

        # Assert
        session_id = fake_response.cookies[session_config.cookie_name]
        assert await session_store.load(session_id) == {"providerId": 7}
        assert await session_binding.get(ActorKind.PROVIDER) == 7
        assert await session_binding.get(ActorKind.CLIENT) is None

    @pytest.mark.asyncio
    async def test_set_replaces_previous_session(
        self, session_binding, session_store, fake_response, session_config
    ):
        await session_binding.set(ActorKind.CLIENT, 1)
        first_id = fake_response.cookies[session_config.cookie_name]

        await session_binding.set(ActorKind.PROVIDER, 2)

        second_id = fake_response.cookies[session_config.cookie_name]
        assert second_id != first_id
        assert await session_store.load(first_id) is None
        assert len(session_store) == 1
        assert await session_binding.get(ActorKind.CLIENT) is None

    @pytest.mark.asyncio
    async def test_binding_reads_session_from_cookie(self, session_store, session_config):
        # Arrange
        await session_store.save("abc", {"clientId": 5}, 60)

        # Act
        binding = SessionBinding(
            store=session_store,
            config=session_config,
            cookies={session_config.cookie_name: "abc"},
            response=AsyncMock(),
        )

        # Assert
        assert await binding.get(ActorKind.CLIENT) == 5

    @pytest.mark.asyncio
    async def test_destroy_removes_stored_session(self, session_binding, session_store):
        await session_binding.set(ActorKind.CLIENT, 3)

        await session_binding.destroy()

        assert len(session_store) == 0
        assert await session_binding.get(ActorKind.CLIENT) is None

    @pytest.mark.asyncio
    async def test_destroy_propagates_store_failure(self, session_config, fake_response):
        store = InMemorySessionStore()
        store.delete = AsyncMock(side_effect=SessionError("Session destroy failed"))
        binding = SessionBinding(
            store=store,
            config=session_config,
            cookies={session_config.cookie_name: "abc"},
            response=fake_response,
        )

        with pytest.raises(SessionError):
            await binding.destroy()

    def test_clear_client_token_deletes_cookie(
        self, session_binding, fake_response, session_config
    ):
        session_binding.clear_client_token()

        assert fake_response.deleted == [session_config.cookie_name]

    @pytest.mark.asyncio
    async def test_set_counts_generation(self, session_binding):
        assert session_binding.generation == 0

        await session_binding.set(ActorKind.PROVIDER, 1)
        await session_binding.set(ActorKind.PROVIDER, 2)

        assert session_binding.generation == 2

    @pytest.mark.asyncio
    async def test_unbind_drops_session_and_cookie(
        self, session_binding, session_store, fake_response, session_config
    ):
        await session_binding.set(ActorKind.PROVIDER, 1)

        await session_binding.unbind()

        assert len(session_store) == 0
        assert session_config.cookie_name not in fake_response.cookies
        assert fake_response.deleted == [session_config.cookie_name]

    @pytest.mark.asyncio
    async def test_unbind_expires_cookie_when_store_fails(self, session_config, fake_response):
        store = InMemorySessionStore()
        store.delete = AsyncMock(side_effect=SessionError("Session destroy failed"))
        binding = SessionBinding(
            store=store,
            config=session_config,
            cookies={session_config.cookie_name: "abc"},
            response=fake_response,
        )

        with pytest.raises(SessionError):
            await binding.unbind()

        assert fake_response.deleted == [session_config.cookie_name]
