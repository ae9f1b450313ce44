"""Provider directory search."""

from collections.abc import Sequence

from marketplace.core.errors import ValidationError
from marketplace.core.logging import get_logger
from marketplace.modules.directory.domain.query_plan import (
    AttributeFilter,
    DistanceSpec,
    SortKey,
    compose_query,
)
from marketplace.modules.directory.infrastructure.plan_executor import ProviderPlanExecutor
from marketplace.modules.identity.domain.actor import FieldError
from marketplace.modules.identity.infrastructure.models import ProviderModel

logger = get_logger(__name__)

SEARCH_FAILED = FieldError("providers", "unable to search providers")


class DirectoryResult:
    """Providers found, or the errors that stopped the search."""

    def __init__(
        self,
        providers: list[ProviderModel] | None = None,
        errors: list[FieldError] | None = None,
    ):
        self.providers = providers
        self.errors = errors

    @property
    def ok(self) -> bool:
        return not self.errors


class DirectoryService:
    def __init__(self, executor: ProviderPlanExecutor):
        self.executor = executor

    async def search(
        self,
        filters: Sequence[AttributeFilter] | None = None,
        sort: Sequence[SortKey] | None = None,
        distance: DistanceSpec | None = None,
        limit: int | None = None,
    ) -> DirectoryResult:
        """
        Find providers matching every filter, inside the radius, in sort order.

        Invalid specs produce a field-scoped error. Any failure while running
        the query produces one generic error; the cause is logged only.
        """
        try:
            plan = compose_query(filters, sort, distance, limit)
        except ValidationError as e:
            return DirectoryResult(errors=[FieldError.from_error(e)])

        try:
            providers = await self.executor.execute(plan)
        except Exception:
            logger.exception("Provider directory search failed", stages=len(plan.stages))
            return DirectoryResult(errors=[SEARCH_FAILED])

        return DirectoryResult(providers=providers)
