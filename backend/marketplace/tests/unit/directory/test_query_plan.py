"""Tests for directory query plan composition."""

import pytest

from marketplace.core.errors import ValidationError
from marketplace.modules.directory.domain.query_plan import (
    AttributeFilter,
    AttributeType,
    DistanceSpec,
    DistanceStage,
    FilterOperator,
    FilterStage,
    LimitStage,
    SortDirection,
    SortKey,
    SortStage,
    compose_query,
)
from marketplace.shared.value_objects import DistanceUnit


class TestComposeQuery:
    def test_no_specs_gives_empty_plan(self):
        plan = compose_query()

        assert plan.is_empty
        assert plan.distance is None
        assert plan.limit is None

    def test_stage_order_is_filter_distance_sort_limit(self):
        # Act
        plan = compose_query(
            filters=[
                AttributeFilter("city", FilterOperator.EQ, "Paris"),
                AttributeFilter("attributes.rating", FilterOperator.GTE, 4),
            ],
            sort=[SortKey("name", SortDirection.DESC), SortKey("id")],
            distance=DistanceSpec(48.85, 2.35, 10),
            limit=5,
        )

        # Assert
        kinds = [type(stage) for stage in plan.stages]
        assert kinds == [FilterStage, FilterStage, DistanceStage, SortStage, SortStage, LimitStage]
        assert plan.filters[1].attribute_type is AttributeType.JSON
        assert plan.filters[1].json_key == "rating"
        assert plan.sorts[0].direction is SortDirection.DESC
        assert plan.limit.count == 5

    def test_plan_is_immutable(self):
        plan = compose_query(limit=1)

        with pytest.raises(AttributeError):
            plan.stages = ()

    def test_miles_are_converted(self):
        plan = compose_query(distance=DistanceSpec(0, 0, 10, DistanceUnit.MI))

        assert plan.distance.radius_km == pytest.approx(16.09344)

    @pytest.mark.parametrize(
        ("spec", "field"),
        [
            (AttributeFilter("password", FilterOperator.EQ, "x"), "filters"),
            (AttributeFilter("attributes.", FilterOperator.EQ, "x"), "filters"),
            (AttributeFilter("city", FilterOperator.IN, "Paris"), "filters"),
            (AttributeFilter("city", FilterOperator.IN, []), "filters"),
            (AttributeFilter("latitude", FilterOperator.CONTAINS, "4"), "filters"),
            (AttributeFilter("latitude", FilterOperator.GT, "north"), "filters"),
            (AttributeFilter("city", FilterOperator.LT, None), "filters"),
            (AttributeFilter("attributes.verified", FilterOperator.GT, True), "filters"),
        ],
    )
    def test_invalid_filters(self, spec, field):
        with pytest.raises(ValidationError) as exc_info:
            compose_query(filters=[spec])

        assert exc_info.value.field == field

    def test_unknown_sort_attribute(self):
        with pytest.raises(ValidationError) as exc_info:
            compose_query(sort=[SortKey("password")])

        assert exc_info.value.field == "sort"
        assert exc_info.value.user_message == "unknown attribute password"

    @pytest.mark.parametrize(
        "distance",
        [DistanceSpec(91, 0, 1), DistanceSpec(0, -181, 1), DistanceSpec(0, 0, -1)],
    )
    def test_invalid_distance(self, distance):
        with pytest.raises(ValidationError) as exc_info:
            compose_query(distance=distance)

        assert exc_info.value.field == "within"

    @pytest.mark.parametrize("limit", [0, -3, True])
    def test_invalid_limit(self, limit):
        with pytest.raises(ValidationError):
            compose_query(limit=limit)

    def test_eq_null_is_allowed(self):
        plan = compose_query(filters=[AttributeFilter("name", FilterOperator.EQ, None)])

        assert plan.filters[0].value is None
