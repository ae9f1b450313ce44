"""Tests for the directory search service."""

from unittest.mock import AsyncMock

import pytest

from marketplace.core.errors import StoreError
from marketplace.modules.directory.application.directory_service import (
    SEARCH_FAILED,
    DirectoryService,
)
from marketplace.modules.directory.domain.query_plan import (
    AttributeFilter,
    DistanceSpec,
    FilterOperator,
)


@pytest.fixture
def executor():
    executor = AsyncMock()
    executor.execute.return_value = []
    return executor


class TestDirectoryService:
    @pytest.mark.asyncio
    async def test_valid_search_runs_plan(self, executor):
        result = await DirectoryService(executor).search(
            filters=[AttributeFilter("city", FilterOperator.EQ, "Paris")], limit=3
        )

        assert result.ok
        assert result.providers == []
        plan = executor.execute.await_args.args[0]
        assert plan.limit.count == 3

    @pytest.mark.asyncio
    async def test_invalid_spec_is_a_field_error(self, executor):
        result = await DirectoryService(executor).search(
            distance=DistanceSpec(latitude=0, longitude=0, radius=-5)
        )

        assert not result.ok
        assert result.errors[0].field == "within"
        assert result.errors[0].message == "radius must be zero or greater"
        executor.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_execution_failure_is_generic(self, executor):
        executor.execute.side_effect = StoreError(
            "Provider directory query failed", cause=RuntimeError("connection reset")
        )

        result = await DirectoryService(executor).search()

        assert result.errors == [SEARCH_FAILED]
        assert "connection reset" not in result.errors[0].message

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_generic(self, executor):
        executor.execute.side_effect = RuntimeError("boom")

        result = await DirectoryService(executor).search()

        assert result.errors == [SEARCH_FAILED]
        assert result.providers is None
