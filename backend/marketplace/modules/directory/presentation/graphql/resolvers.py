"""Directory search GraphQL resolver."""

import strawberry
from strawberry.types import Info

from marketplace.core.logging import get_logger
from marketplace.modules.directory.application.directory_service import (
    SEARCH_FAILED,
    DirectoryResult,
    DirectoryService,
)
from marketplace.modules.directory.infrastructure.plan_executor import ProviderPlanExecutor
from marketplace.modules.directory.presentation.graphql.types import (
    DistanceInput,
    FilterInput,
    ProvidersResponse,
    SortInput,
)
from marketplace.modules.identity.presentation.graphql.types import (
    FieldErrorType,
    ProviderType,
)
from marketplace.presentation.graphql.context import GraphQLContext

logger = get_logger(__name__)


@strawberry.type
class DirectoryQueries:
    @strawberry.field(description="Search providers by filters, sort order and distance.")
    async def providers(
        self,
        info: Info,
        filters: list[FilterInput] | None = None,
        sort: list[SortInput] | None = None,
        within: DistanceInput | None = None,
        limit: int | None = None,
    ) -> ProvidersResponse:
        ctx = GraphQLContext(info)
        try:
            async with ctx.unit_of_work() as db:
                result = await DirectoryService(ProviderPlanExecutor(db)).search(
                    filters=[f.to_domain() for f in filters or ()],
                    sort=[s.to_domain() for s in sort or ()],
                    distance=within.to_domain() if within else None,
                    limit=limit,
                )
        except Exception:
            logger.exception("Provider directory unit of work failed")
            result = DirectoryResult(errors=[SEARCH_FAILED])

        if not result.ok:
            return ProvidersResponse(
                errors=[FieldErrorType.from_domain(e) for e in result.errors]
            )
        return ProvidersResponse(
            providers=[ProviderType.from_model(p) for p in result.providers]
        )
