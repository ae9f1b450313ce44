"""
Identity GraphQL resolvers.

Each field opens one unit of work, runs one ``IdentityService`` operation for
its actor kind and maps the outcome to a response envelope. Store and session
failures surface as field errors; they never reach the GraphQL error list.
"""

from collections.abc import Awaitable, Callable
from typing import TypeVar

import strawberry
from strawberry.types import Info

from marketplace.core.errors import MarketplaceError
from marketplace.core.logging import get_logger
from marketplace.modules.identity.application.identity_service import IdentityService
from marketplace.modules.identity.domain.actor import ActorResult, FieldError
from marketplace.modules.identity.infrastructure.actor_kinds import (
    CLIENT,
    PROVIDER,
    ActorKindSpec,
)
from marketplace.modules.identity.infrastructure.actor_store import SQLActorStore
from marketplace.modules.identity.infrastructure.session_store import SessionBinding
from marketplace.modules.identity.presentation.graphql.types import (
    AttributesInput,
    ClientResponse,
    ClientsResponse,
    ClientType,
    FieldErrorType,
    ProviderInput,
    ProviderResponse,
    ProviderType,
    UsernamePasswordInput,
    provider_profile,
)
from marketplace.presentation.graphql.context import GraphQLContext

logger = get_logger(__name__)

T = TypeVar("T")


async def run_identity(
    info: Info,
    spec: ActorKindSpec,
    operation: Callable[[IdentityService], Awaitable[T]],
) -> T:
    """
    Run ``operation`` inside a unit of work.

    A session bound by ``operation`` is dropped again when the unit of work
    does not commit, so the cookie never names a rolled-back actor.

    Raises:
        MarketplaceError: Store or session failure, after rollback
    """
    ctx = GraphQLContext(info)
    generation = ctx.session.generation
    try:
        async with ctx.unit_of_work() as db:
            service = IdentityService(
                spec=spec,
                store=SQLActorStore(db, spec),
                hasher=ctx.hasher,
                session=ctx.session,
                geocoder=ctx.geocoder,
                policy=ctx.policy,
            )
            return await operation(service)
    except Exception:
        if ctx.session.generation != generation:
            await discard_binding(ctx.session, spec)
        raise


async def discard_binding(session: SessionBinding, spec: ActorKindSpec) -> None:
    try:
        await session.unbind()
    except MarketplaceError as e:
        logger.error(
            "Dropping the session after rollback failed",
            kind=spec.kind.value,
            error_id=e.error_id,
        )


async def run_actor_operation(
    info: Info,
    spec: ActorKindSpec,
    operation: Callable[[IdentityService], Awaitable[ActorResult]],
) -> ActorResult:
    try:
        return await run_identity(info, spec, operation)
    except MarketplaceError as e:
        logger.warning(
            "Identity operation failed",
            kind=spec.kind.value,
            code=e.code,
            error_id=e.error_id,
        )
        return ActorResult.failure(e)


async def run_flag_operation(
    info: Info,
    spec: ActorKindSpec,
    operation: Callable[[IdentityService], Awaitable[bool]],
) -> bool:
    try:
        return await run_identity(info, spec, operation)
    except MarketplaceError as e:
        logger.warning(
            "Identity operation failed",
            kind=spec.kind.value,
            code=e.code,
            error_id=e.error_id,
        )
        return False


async def lookup_self(info: Info, spec: ActorKindSpec):
    try:
        return await run_identity(info, spec, lambda service: service.self_lookup())
    except MarketplaceError as e:
        logger.warning("Self lookup failed", kind=spec.kind.value, error_id=e.error_id)
        return None


# ============================================================================
# Queries
# ============================================================================


@strawberry.type
class IdentityQueries:
    @strawberry.field(description="The client logged in on this session.")
    async def me_client(self, info: Info) -> ClientType | None:
        client = await lookup_self(info, CLIENT)
        return ClientType.from_model(client) if client else None

    @strawberry.field(description="Alias of meClient kept for existing callers.")
    async def self_client(self, info: Info) -> ClientType | None:
        client = await lookup_self(info, CLIENT)
        return ClientType.from_model(client) if client else None

    @strawberry.field
    async def client(self, info: Info, client_id: int) -> ClientResponse:
        result = await run_actor_operation(
            info, CLIENT, lambda service: service.find_by_id(client_id)
        )
        return ClientResponse.from_result(result)

    @strawberry.field
    async def clients(self, info: Info) -> ClientsResponse:
        try:
            clients = await run_identity(info, CLIENT, lambda service: service.list_all())
        except MarketplaceError as e:
            logger.warning("Client listing failed", error_id=e.error_id)
            return ClientsResponse(
                errors=[FieldErrorType.from_domain(FieldError("clients", "query failed"))]
            )
        return ClientsResponse(clients=[ClientType.from_model(c) for c in clients])

    @strawberry.field(description="The provider logged in on this session.")
    async def me_provider(self, info: Info) -> ProviderType | None:
        provider = await lookup_self(info, PROVIDER)
        return ProviderType.from_model(provider) if provider else None

    @strawberry.field
    async def provider(self, info: Info, provider_id: int) -> ProviderResponse:
        result = await run_actor_operation(
            info, PROVIDER, lambda service: service.find_by_id(provider_id)
        )
        return ProviderResponse.from_result(result)


# ============================================================================
# Mutations
# ============================================================================


@strawberry.type
class IdentityMutations:
    # Clients

    @strawberry.mutation
    async def register_client(self, info: Info, input: UsernamePasswordInput) -> ClientResponse:
        result = await run_actor_operation(
            info, CLIENT, lambda service: service.register(input.to_credentials())
        )
        return ClientResponse.from_result(result)

    @strawberry.mutation
    async def login_client(
        self, info: Info, username_or_email: str, password: str
    ) -> ClientResponse:
        result = await run_actor_operation(
            info, CLIENT, lambda service: service.login(username_or_email, password)
        )
        return ClientResponse.from_result(result)

    @strawberry.mutation
    async def forgot_client_username(
        self, info: Info, email: str, password: str, new_username: str
    ) -> ClientResponse:
        result = await run_actor_operation(
            info,
            CLIENT,
            lambda service: service.forgot_username(email, password, new_username),
        )
        return ClientResponse.from_result(result)

    @strawberry.mutation
    async def forgot_client_password(
        self,
        info: Info,
        username_or_email: str,
        old_password: str,
        repeat_new_password: str,
        new_password: str,
    ) -> bool:
        return await run_flag_operation(
            info,
            CLIENT,
            lambda service: service.forgot_password(
                username_or_email, old_password, repeat_new_password, new_password
            ),
        )

    @strawberry.mutation
    async def logout_client(self, info: Info) -> bool:
        return await run_flag_operation(info, CLIENT, lambda service: service.logout())

    # Providers

    @strawberry.mutation
    async def register_provider(
        self,
        info: Info,
        input: UsernamePasswordInput,
        attributes_input: AttributesInput | None = None,
        provider_input: ProviderInput | None = None,
    ) -> ProviderResponse:
        profile = provider_profile(attributes_input, provider_input)
        address = provider_input.to_address() if provider_input else None
        result = await run_actor_operation(
            info,
            PROVIDER,
            lambda service: service.register(input.to_credentials(), profile, address),
        )
        return ProviderResponse.from_result(result)

    @strawberry.mutation
    async def login_provider(
        self, info: Info, username_or_email: str, password: str
    ) -> ProviderResponse:
        result = await run_actor_operation(
            info, PROVIDER, lambda service: service.login(username_or_email, password)
        )
        return ProviderResponse.from_result(result)

    @strawberry.mutation
    async def forgot_provider_username(
        self, info: Info, email: str, password: str, new_username: str
    ) -> ProviderResponse:
        result = await run_actor_operation(
            info,
            PROVIDER,
            lambda service: service.forgot_username(email, password, new_username),
        )
        return ProviderResponse.from_result(result)

    @strawberry.mutation
    async def forgot_provider_password(
        self,
        info: Info,
        username_or_email: str,
        old_password: str,
        repeat_new_password: str,
        new_password: str,
    ) -> bool:
        return await run_flag_operation(
            info,
            PROVIDER,
            lambda service: service.forgot_password(
                username_or_email, old_password, repeat_new_password, new_password
            ),
        )

    @strawberry.mutation
    async def logout_provider(self, info: Info) -> bool:
        return await run_flag_operation(info, PROVIDER, lambda service: service.logout())
