"""Credential hashing.

Passwords are stored as argon2id digests. Hashing and verification are CPU
bound, so the async entry points run them in a worker thread and the caller
suspends instead of blocking the event loop.
"""

import asyncio

import argon2
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from marketplace.core.config import SecurityConfig
from marketplace.core.logging import get_logger

logger = get_logger(__name__)


class PasswordHasher:
    """One-way hash and verify for stored secrets."""

    def __init__(self, config: SecurityConfig | None = None):
        self.config = config or SecurityConfig()
        self._argon2_hasher = argon2.PasswordHasher(
            time_cost=self.config.argon2_time_cost,
            memory_cost=self.config.argon2_memory_cost,
            parallelism=self.config.argon2_parallelism,
            hash_len=self.config.argon2_hash_len,
            salt_len=self.config.argon2_salt_len,
        )

    def hash_sync(self, plaintext: str) -> str:
        return self._argon2_hasher.hash(plaintext)

    def verify_sync(self, digest: str, plaintext: str) -> bool:
        """Verify ``plaintext`` against ``digest``; malformed digests never raise."""
        if not digest:
            return False
        try:
            return self._argon2_hasher.verify(digest, plaintext)
        except VerifyMismatchError:
            return False
        except (InvalidHashError, VerificationError):
            logger.warning("Stored password digest could not be verified")
            return False

    def needs_rehash(self, digest: str) -> bool:
        """Whether ``digest`` was produced with outdated cost parameters."""
        try:
            return self._argon2_hasher.check_needs_rehash(digest)
        except InvalidHashError:
            return True

    async def hash(self, plaintext: str) -> str:
        return await asyncio.to_thread(self.hash_sync, plaintext)

    async def verify(self, digest: str, plaintext: str) -> bool:
        return await asyncio.to_thread(self.verify_sync, digest, plaintext)
