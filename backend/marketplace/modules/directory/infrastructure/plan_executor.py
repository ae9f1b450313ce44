"""
Query plan executor for the provider table.

Filter stages and a bounding-box prefilter for the distance stage run in SQL.
The exact great-circle check runs in Python over the prefiltered rows, which
keeps the SQL order, so the limit is applied after it when a distance stage is
present and in SQL otherwise.
"""

from typing import Any

from sqlalchemy import Select, and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import StoreError
from marketplace.core.logging import get_logger
from marketplace.modules.directory.domain.query_plan import (
    DistanceStage,
    FilterOperator,
    FilterStage,
    QueryPlan,
    SortDirection,
    SortStage,
)
from marketplace.modules.identity.infrastructure.actor_kinds import PROVIDER
from marketplace.modules.identity.infrastructure.models import ProviderModel
from marketplace.shared.value_objects import BoundingBox, haversine_km

logger = get_logger(__name__)

LIKE_ESCAPE = "\\"


class ProviderPlanExecutor:
    """Runs a ``QueryPlan`` against the providers table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def build_statement(self, plan: QueryPlan) -> Select:
        """Translate the plan into one SELECT, without the exact distance check."""
        stmt = select(ProviderModel).options(*PROVIDER.load_options())

        conditions = [_filter_condition(stage) for stage in plan.filters]
        if plan.distance is not None:
            conditions.extend(_bounding_box_conditions(plan.distance))
        if conditions:
            stmt = stmt.where(and_(*conditions))

        for stage in plan.sorts:
            column = _sort_expression(stage)
            stmt = stmt.order_by(
                column.desc() if stage.direction is SortDirection.DESC else column.asc()
            )

        if plan.limit is not None and plan.distance is None:
            stmt = stmt.limit(plan.limit.count)

        return stmt

    async def execute(self, plan: QueryPlan) -> list[ProviderModel]:
        """
        Run the plan.

        Raises:
            StoreError: The query failed
        """
        stmt = self.build_statement(plan)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreError("Provider directory query failed", cause=e) from e
        providers = list(result.scalars().all())

        if plan.distance is not None:
            providers = [p for p in providers if _within(p, plan.distance)]
            if plan.limit is not None:
                providers = providers[: plan.limit.count]

        logger.debug(
            "Directory query executed",
            stages=len(plan.stages),
            results=len(providers),
        )
        return providers


def _within(provider: ProviderModel, stage: DistanceStage) -> bool:
    if provider.latitude is None or provider.longitude is None:
        return False
    distance = haversine_km(
        stage.center.latitude,
        stage.center.longitude,
        provider.latitude,
        provider.longitude,
    )
    return distance <= stage.radius_km


def _bounding_box_conditions(stage: DistanceStage) -> list[Any]:
    box = BoundingBox.around(stage.center, stage.radius_km)
    conditions = [
        ProviderModel.latitude.is_not(None),
        ProviderModel.longitude.is_not(None),
        ProviderModel.latitude.between(box.min_latitude, box.max_latitude),
    ]
    if box.min_longitude is not None and box.max_longitude is not None:
        conditions.append(ProviderModel.longitude.between(box.min_longitude, box.max_longitude))
    return conditions


def _json_element(key: str, sample: Any):
    element = ProviderModel.attributes[key]
    if isinstance(sample, bool):
        return element.as_boolean()
    if isinstance(sample, int | float):
        return element.as_float()
    return element.as_string()


def _filter_expression(stage: FilterStage):
    if stage.json_key is None:
        return getattr(ProviderModel, stage.attribute)
    sample = stage.value[0] if stage.operator is FilterOperator.IN else stage.value
    return _json_element(stage.json_key, sample)


def _sort_expression(stage: SortStage):
    # JSON values sort as text.
    if stage.json_key is not None:
        return ProviderModel.attributes[stage.json_key].as_string()
    return getattr(ProviderModel, stage.attribute)


def _escape_like(value: str) -> str:
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )


def _filter_condition(stage: FilterStage):
    column = _filter_expression(stage)
    value = stage.value
    op = stage.operator

    if op is FilterOperator.EQ:
        return column.is_(None) if value is None else column == value
    if op is FilterOperator.NE:
        # NULL counts as "not equal".
        if value is None:
            return column.is_not(None)
        return or_(column != value, column.is_(None))
    if op is FilterOperator.LT:
        return column < value
    if op is FilterOperator.LTE:
        return column <= value
    if op is FilterOperator.GT:
        return column > value
    if op is FilterOperator.GTE:
        return column >= value
    if op is FilterOperator.IN:
        return column.in_(list(value))
    if op is FilterOperator.CONTAINS:
        return column.ilike(f"%{_escape_like(value)}%", escape=LIKE_ESCAPE)
    raise ValueError(f"Unsupported operator {op}")
