"""Directory search GraphQL inputs and response."""

import strawberry
from strawberry.scalars import JSON

from marketplace.modules.directory.domain.query_plan import (
    AttributeFilter,
    DistanceSpec,
    FilterOperator,
    SortDirection,
    SortKey,
)
from marketplace.modules.identity.presentation.graphql.types import (
    FieldErrorType,
    ProviderType,
)
from marketplace.shared.value_objects import DistanceUnit

strawberry.enum(FilterOperator)
strawberry.enum(SortDirection)
strawberry.enum(DistanceUnit)


@strawberry.input(
    description=(
        "Predicate on a provider column or on 'attributes.<key>'. "
        "IN takes a list value; CONTAINS is a case-insensitive substring match."
    )
)
class FilterInput:
    attribute: str
    operator: FilterOperator = FilterOperator.EQ
    value: JSON | None = None

    def to_domain(self) -> AttributeFilter:
        return AttributeFilter(self.attribute, self.operator, self.value)


@strawberry.input
class SortInput:
    attribute: str
    direction: SortDirection = SortDirection.ASC

    def to_domain(self) -> SortKey:
        return SortKey(self.attribute, self.direction)


@strawberry.input(description="Great-circle radius around a point.")
class DistanceInput:
    latitude: float
    longitude: float
    distance: float
    unit: DistanceUnit = DistanceUnit.KM

    def to_domain(self) -> DistanceSpec:
        return DistanceSpec(self.latitude, self.longitude, self.distance, self.unit)


@strawberry.type
class ProvidersResponse:
    errors: list[FieldErrorType] | None = None
    providers: list[ProviderType] | None = None
