"""
Provider directory query plans.

``compose_query`` folds optional filter, distance, sort and limit specs into an
immutable ``QueryPlan``: an ordered tuple of stages that is always
filter -> distance -> sort -> limit. Composition is pure and validates every
attribute name, operator and range up front, so a plan that exists can be
executed without further checks.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from marketplace.core.errors import ValidationError
from marketplace.shared.value_objects import DistanceUnit, Location

JSON_ATTRIBUTE_PREFIX = "attributes."


class AttributeType(Enum):
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    JSON = "json"


# Provider columns that may be filtered and sorted on.
PROVIDER_ATTRIBUTES: dict[str, AttributeType] = {
    "name": AttributeType.STRING,
    "username": AttributeType.STRING,
    "email": AttributeType.STRING,
    "country": AttributeType.STRING,
    "state": AttributeType.STRING,
    "city": AttributeType.STRING,
    "street": AttributeType.STRING,
    "zipcode": AttributeType.STRING,
    "latitude": AttributeType.NUMBER,
    "longitude": AttributeType.NUMBER,
}

SORTABLE_ATTRIBUTES: dict[str, AttributeType] = {
    "id": AttributeType.INTEGER,
    **PROVIDER_ATTRIBUTES,
}


class FilterOperator(Enum):
    EQ = "EQ"
    NE = "NE"
    LT = "LT"
    LTE = "LTE"
    GT = "GT"
    GTE = "GTE"
    IN = "IN"
    CONTAINS = "CONTAINS"

    @property
    def is_ordering(self) -> bool:
        return self in (FilterOperator.LT, FilterOperator.LTE, FilterOperator.GT, FilterOperator.GTE)


class SortDirection(Enum):
    ASC = "ASC"
    DESC = "DESC"


# =====================================================================================
# SPECS
# =====================================================================================


@dataclass(frozen=True)
class AttributeFilter:
    """One predicate ``attribute <operator> value``."""

    attribute: str
    operator: FilterOperator
    value: Any


@dataclass(frozen=True)
class SortKey:
    attribute: str
    direction: SortDirection = SortDirection.ASC


@dataclass(frozen=True)
class DistanceSpec:
    """Great-circle radius around a point."""

    latitude: float
    longitude: float
    radius: float
    unit: DistanceUnit = DistanceUnit.KM


# =====================================================================================
# STAGES
# =====================================================================================


@dataclass(frozen=True)
class FilterStage:
    attribute: str
    attribute_type: AttributeType
    operator: FilterOperator
    value: Any

    @property
    def json_key(self) -> str | None:
        if self.attribute_type is AttributeType.JSON:
            return self.attribute[len(JSON_ATTRIBUTE_PREFIX) :]
        return None


@dataclass(frozen=True)
class DistanceStage:
    center: Location
    radius_km: float


@dataclass(frozen=True)
class SortStage:
    attribute: str
    attribute_type: AttributeType
    direction: SortDirection

    @property
    def json_key(self) -> str | None:
        if self.attribute_type is AttributeType.JSON:
            return self.attribute[len(JSON_ATTRIBUTE_PREFIX) :]
        return None


@dataclass(frozen=True)
class LimitStage:
    count: int


Stage = FilterStage | DistanceStage | SortStage | LimitStage


@dataclass(frozen=True)
class QueryPlan:
    """Immutable, ordered stages of a directory search."""

    stages: tuple[Stage, ...] = ()

    @property
    def filters(self) -> tuple[FilterStage, ...]:
        return tuple(s for s in self.stages if isinstance(s, FilterStage))

    @property
    def distance(self) -> DistanceStage | None:
        return next((s for s in self.stages if isinstance(s, DistanceStage)), None)

    @property
    def sorts(self) -> tuple[SortStage, ...]:
        return tuple(s for s in self.stages if isinstance(s, SortStage))

    @property
    def limit(self) -> LimitStage | None:
        return next((s for s in self.stages if isinstance(s, LimitStage)), None)

    @property
    def is_empty(self) -> bool:
        return not self.stages


# =====================================================================================
# COMPOSITION
# =====================================================================================


def compose_query(
    filters: Sequence[AttributeFilter] | None = None,
    sort: Sequence[SortKey] | None = None,
    distance: DistanceSpec | None = None,
    limit: int | None = None,
) -> QueryPlan:
    """
    Build a query plan from optional search specs.

    Args:
        filters: Predicates, combined with AND
        sort: Sort keys, most significant first
        distance: Radius restriction around a point
        limit: Maximum number of results

    Returns:
        QueryPlan: Stages ordered filter, distance, sort, limit

    Raises:
        ValidationError: Unknown attribute, bad operator/value pairing or
            out-of-range distance or limit
    """
    stages: list[Stage] = [_filter_stage(f) for f in filters or ()]

    if distance is not None:
        stages.append(_distance_stage(distance))

    stages.extend(_sort_stage(key) for key in sort or ())

    if limit is not None:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError(
                "Limit must be a positive integer",
                field="limit",
                user_message="limit must be a positive integer",
            )
        stages.append(LimitStage(limit))

    return QueryPlan(tuple(stages))


def _resolve_attribute(
    attribute: str, declared: dict[str, AttributeType], field: str
) -> AttributeType:
    if attribute in declared:
        return declared[attribute]
    if attribute.startswith(JSON_ATTRIBUTE_PREFIX) and attribute[len(JSON_ATTRIBUTE_PREFIX) :]:
        return AttributeType.JSON
    raise ValidationError(
        f"Unknown provider attribute {attribute!r}",
        field=field,
        user_message=f"unknown attribute {attribute}",
    )


def _filter_stage(spec: AttributeFilter) -> FilterStage:
    attribute_type = _resolve_attribute(spec.attribute, PROVIDER_ATTRIBUTES, "filters")
    value = spec.value

    def invalid(message: str) -> ValidationError:
        return ValidationError(
            f"{message} ({spec.attribute} {spec.operator.value})",
            field="filters",
            user_message=f"{spec.attribute}: {message}",
        )

    if spec.operator is FilterOperator.IN:
        if not isinstance(value, list | tuple) or not value:
            raise invalid("IN needs a non-empty list")
        for item in value:
            _check_scalar(item, attribute_type, invalid)
        value = tuple(value)
    elif spec.operator is FilterOperator.CONTAINS:
        if attribute_type not in (AttributeType.STRING, AttributeType.JSON) or not isinstance(
            value, str
        ):
            raise invalid("CONTAINS needs a text attribute and a string value")
    else:
        if value is None and spec.operator not in (FilterOperator.EQ, FilterOperator.NE):
            raise invalid("comparison with null")
        if value is not None:
            _check_scalar(value, attribute_type, invalid)
        if spec.operator.is_ordering and isinstance(value, bool):
            raise invalid("cannot order booleans")

    return FilterStage(spec.attribute, attribute_type, spec.operator, value)


def _check_scalar(value: Any, attribute_type: AttributeType, invalid) -> None:
    if isinstance(value, dict | list | tuple):
        raise invalid("value must be a scalar")
    if attribute_type is AttributeType.STRING and not isinstance(value, str):
        raise invalid("value must be a string")
    if attribute_type in (AttributeType.NUMBER, AttributeType.INTEGER) and (
        isinstance(value, bool) or not isinstance(value, int | float)
    ):
        raise invalid("value must be a number")


def _distance_stage(spec: DistanceSpec) -> DistanceStage:
    if spec.radius is None or spec.radius < 0:
        raise ValidationError(
            "Radius must not be negative",
            field="within",
            user_message="radius must be zero or greater",
        )
    try:
        center = Location(latitude=spec.latitude, longitude=spec.longitude)
    except ValidationError as e:
        raise ValidationError(e.message, field="within", user_message=e.message.lower()) from e
    return DistanceStage(center=center, radius_km=spec.unit.to_km(spec.radius))


def _sort_stage(key: SortKey) -> SortStage:
    attribute_type = _resolve_attribute(key.attribute, SORTABLE_ATTRIBUTES, "sort")
    return SortStage(key.attribute, attribute_type, key.direction)
