"""
Identity Service

Credential lifecycle shared by every actor kind: register, login, username and
password recovery, logout, self lookup and lookup by id. One implementation
serves clients and providers; the differences live in ``ActorKindSpec``.

Expected failures come back as field-scoped errors inside an ``ActorResult``.
``StoreError`` and ``SessionError`` propagate so the surrounding unit of work
rolls back; the GraphQL layer turns them into field errors.
"""

from typing import Any

from marketplace.core.errors import (
    AuthenticationError,
    GeocodingError,
    NotFoundError,
    UniquenessViolationError,
    ValidationError,
)
from marketplace.core.logging import get_logger
from marketplace.core.security import PasswordHasher
from marketplace.modules.identity.domain.actor import (
    ActorResult,
    Credentials,
    FieldError,
    ProviderProfile,
    is_email_identifier,
    normalize_email,
)
from marketplace.modules.identity.domain.validation import (
    CredentialPolicy,
    is_valid_email,
    validate_password,
    validate_register_inputs,
    validate_username,
)
from marketplace.modules.identity.infrastructure.actor_kinds import ActorKindSpec
from marketplace.modules.identity.infrastructure.actor_store import SQLActorStore
from marketplace.modules.identity.infrastructure.geocoding import Geocoder, NullGeocoder
from marketplace.modules.identity.infrastructure.models import ActorModelMixin
from marketplace.modules.identity.infrastructure.session_store import SessionBinding
from marketplace.shared.value_objects import Location, PostalAddress

logger = get_logger(__name__)

_EXPECTED_FAILURES = (
    ValidationError,
    NotFoundError,
    AuthenticationError,
    UniquenessViolationError,
)


class IdentityService:
    """Identity operations for one actor kind within one unit of work."""

    def __init__(
        self,
        spec: ActorKindSpec,
        store: SQLActorStore,
        hasher: PasswordHasher,
        session: SessionBinding,
        geocoder: Geocoder | None = None,
        policy: CredentialPolicy | None = None,
    ):
        self.spec = spec
        self.kind = spec.kind
        self.store = store
        self.hasher = hasher
        self.session = session
        self.geocoder = geocoder or NullGeocoder()
        self.policy = policy or CredentialPolicy()

    # =================================================================================
    # QUERIES
    # =================================================================================

    async def self_lookup(self) -> ActorModelMixin | None:
        """The actor of this kind bound to the current session, if any."""
        actor_id = await self.session.get(self.kind)
        if actor_id is None:
            return None
        actor = await self.store.find_by_id(actor_id)
        if actor is None:
            logger.info("Session refers to a missing actor", kind=self.kind.value)
        return actor

    async def find_by_id(self, actor_id: int) -> ActorResult[ActorModelMixin]:
        actor = await self.store.find_by_id(actor_id)
        if actor is None:
            return ActorResult.failure(FieldError("id", "this id does not exist"))
        return ActorResult.success(actor)

    async def list_all(self) -> list[ActorModelMixin]:
        """Every actor of this kind in id order."""
        return await self.store.find_all()

    # =================================================================================
    # MUTATIONS
    # =================================================================================

    async def register(
        self,
        credentials: Credentials,
        profile: ProviderProfile | None = None,
        address: PostalAddress | None = None,
    ) -> ActorResult[ActorModelMixin]:
        """
        Create an actor and bind it to the session.

        Args:
            credentials: Username, email and plaintext password
            profile: Provider display name and attributes
            address: Provider postal address, geocoded best effort

        Returns:
            ActorResult: The new actor, or every validation error at once, or a
            single duplicate-identity error
        """
        errors = validate_register_inputs(credentials, self.policy)
        if errors:
            return ActorResult.failure(*errors)

        values: dict[str, Any] = {
            "username": credentials.username,
            "email": credentials.email,
            "password": await self.hasher.hash(credentials.password),
        }
        if self.spec.accepts_profile:
            values.update(await self._profile_values(profile, address))
        elif profile or address:
            logger.debug("Ignoring profile data", kind=self.kind.value)

        try:
            actor = await self.store.insert(values)
        except UniquenessViolationError as e:
            return ActorResult.failure(e)

        await self.session.set(self.kind, actor.id)
        logger.info("Actor registered", kind=self.kind.value, actor_id=actor.id)
        return ActorResult.success(actor)

    async def login(self, username_or_email: str, password: str) -> ActorResult[ActorModelMixin]:
        try:
            actor = await self._authenticate(username_or_email, password)
        except _EXPECTED_FAILURES as e:
            return ActorResult.failure(e)

        if self.hasher.needs_rehash(actor.password):
            await self.store.update(actor, password=await self.hasher.hash(password))

        await self.session.set(self.kind, actor.id)
        logger.info("Actor logged in", kind=self.kind.value, actor_id=actor.id)
        return ActorResult.success(actor)

    async def forgot_username(
        self, email: str, password: str, new_username: str
    ) -> ActorResult[ActorModelMixin]:
        """
        Replace the username of the actor owning ``email``.

        The new username must pass the registration rules and must not be
        taken; on any failure the stored username is left as it was.
        """
        email = normalize_email(email)
        if not is_valid_email(email):
            return ActorResult.failure(FieldError("email", "invalid email"))

        try:
            actor = await self._authenticate(email, password)
        except _EXPECTED_FAILURES as e:
            return ActorResult.failure(e)

        new_username = (new_username or "").strip()
        username_error = validate_username(new_username, self.policy)
        if username_error:
            return ActorResult.failure(username_error)

        if new_username != actor.username:
            try:
                await self.store.update(actor, username=new_username)
            except UniquenessViolationError as e:
                return ActorResult.failure(e)

        return ActorResult.success(actor)

    async def forgot_password(
        self,
        username_or_email: str,
        old_password: str,
        repeat_new_password: str,
        new_password: str,
    ) -> bool:
        """
        Replace the password after checking the old one.

        Returns:
            bool: True if the new password was stored; False on any failed
            precondition, in which case nothing changes
        """
        try:
            actor = await self._authenticate(username_or_email, old_password)
        except _EXPECTED_FAILURES as e:
            logger.info("Password change refused", kind=self.kind.value, reason=e.code)
            return False

        if repeat_new_password != new_password:
            logger.info("Password change refused", kind=self.kind.value, reason="MISMATCH")
            return False
        if validate_password(new_password, self.policy):
            logger.info("Password change refused", kind=self.kind.value, reason="POLICY")
            return False

        await self.store.update(actor, password=await self.hasher.hash(new_password))
        logger.info("Password changed", kind=self.kind.value, actor_id=actor.id)
        return True

    async def logout(self) -> bool:
        """
        Destroy the session and clear the client cookie.

        Both steps are always attempted. Only a failure to destroy the session
        makes the result False.
        """
        destroyed = True
        try:
            await self.session.destroy()
        except Exception:
            logger.exception("Session destroy failed", kind=self.kind.value)
            destroyed = False
        finally:
            try:
                self.session.clear_client_token()
            except Exception:
                logger.exception("Clearing the session cookie failed", kind=self.kind.value)

        return destroyed

    # =================================================================================
    # HELPERS
    # =================================================================================

    async def _authenticate(self, username_or_email: str, password: str) -> ActorModelMixin:
        """
        Look up by email or username, decided by ``@`` alone, then verify.

        Raises:
            NotFoundError: No actor with that email or username
            AuthenticationError: Password does not match
        """
        identifier = (username_or_email or "").strip()
        if is_email_identifier(identifier):
            actor = await self.store.find_by_email(identifier)
            if actor is None:
                raise NotFoundError(
                    "Unknown email", field="email", user_message="email does not exist"
                )
        else:
            actor = await self.store.find_by_username(identifier)
            if actor is None:
                raise NotFoundError(
                    "Unknown username", field="username", user_message="username does not exist"
                )

        if not await self.hasher.verify(actor.password, password or ""):
            raise AuthenticationError(
                f"Password mismatch for {self.kind.value} {actor.id}",
                user_message="incorrect password",
            )
        return actor

    async def _profile_values(
        self, profile: ProviderProfile | None, address: PostalAddress | None
    ) -> dict[str, Any]:
        profile = profile or ProviderProfile()
        address = address or PostalAddress()

        values: dict[str, Any] = {
            "name": profile.name,
            "attributes": dict(profile.attributes),
            **address.to_dict(),
        }

        location = await self._geocode(address)
        values["latitude"] = location.latitude if location else None
        values["longitude"] = location.longitude if location else None
        return values

    async def _geocode(self, address: PostalAddress) -> Location | None:
        if address.is_empty:
            return None
        try:
            return await self.geocoder.resolve(address)
        except GeocodingError as e:
            logger.warning("Geocoding failed, storing no coordinates", error=e.message)
            return None
