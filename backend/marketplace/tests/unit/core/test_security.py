"""Tests for the argon2 password hasher."""

import pytest

from marketplace.core.config import SecurityConfig
from marketplace.core.security import PasswordHasher


class TestPasswordHasher:
    @pytest.mark.asyncio
    async def test_hash_and_verify(self, hasher):
        # Act
        digest = await hasher.hash("secret123")

        # Assert
        assert digest.startswith("$argon2id$")
        assert digest != "secret123"
        assert await hasher.verify(digest, "secret123")
        assert not await hasher.verify(digest, "wrong")

    @pytest.mark.asyncio
    async def test_hashes_are_salted(self, hasher):
        assert await hasher.hash("secret123") != await hasher.hash("secret123")

    @pytest.mark.parametrize("digest", ["", "not-a-hash", "$argon2id$v=19$broken", "secret123"])
    def test_malformed_digest_verifies_false(self, hasher, digest):
        assert hasher.verify_sync(digest, "secret123") is False

    def test_needs_rehash_after_cost_change(self, hasher):
        digest = hasher.hash_sync("secret123")
        stronger = PasswordHasher(
            SecurityConfig(argon2_time_cost=2, argon2_memory_cost=16, argon2_parallelism=1)
        )

        assert hasher.needs_rehash(digest) is False
        assert stronger.needs_rehash(digest) is True
        assert hasher.needs_rehash("garbage") is True
