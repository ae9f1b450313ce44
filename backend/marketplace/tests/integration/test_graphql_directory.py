"""Provider directory search over the GraphQL endpoint."""

import pytest

from marketplace.modules.identity.infrastructure.models import ProviderModel

PROVIDERS = """
query Providers($filters: [FilterInput!], $sort: [SortInput!], $within: DistanceInput,
                $limit: Int) {
  providers(filters: $filters, sort: $sort, within: $within, limit: $limit) {
    errors { field message }
    providers { username name attributes }
  }
}
"""


@pytest.fixture
async def seeded(session_manager):
    async with session_manager.get_session() as db:
        db.add_all(
            [
                ProviderModel(
                    username="paris", email="paris@mail.com", password="x",
                    name="Paris Plumbing", city="Paris", latitude=48.8566, longitude=2.3522,
                    attributes={"trade": "plumber", "rating": 4.5},
                ),
                ProviderModel(
                    username="versailles", email="versailles@mail.com", password="x",
                    name="Versailles Electric", city="Versailles",
                    latitude=48.8049, longitude=2.1204,
                    attributes={"trade": "electrician", "rating": 3.9},
                ),
                ProviderModel(
                    username="london", email="london@mail.com", password="x",
                    name="London Locksmith", city="London",
                    latitude=51.5074, longitude=-0.1278,
                    attributes={"trade": "locksmith", "rating": 4.8},
                ),
            ]
        )


async def search(client, **variables) -> dict:
    response = await client.post("/graphql", json={"query": PROVIDERS, "variables": variables})
    assert response.status_code == 200
    payload = response.json()
    assert "errors" not in payload, payload
    return payload["data"]["providers"]


def usernames(result: dict) -> list[str]:
    return [provider["username"] for provider in result["providers"]]


@pytest.mark.integration
class TestProvidersQuery:
    @pytest.mark.asyncio
    async def test_no_arguments_lists_everyone(self, async_client, seeded):
        result = await search(async_client)

        assert result["errors"] is None
        assert sorted(usernames(result)) == ["london", "paris", "versailles"]

    @pytest.mark.asyncio
    async def test_filter_sort_and_limit(self, async_client, seeded):
        result = await search(
            async_client,
            filters=[{"attribute": "attributes.rating", "operator": "GTE", "value": 4}],
            sort=[{"attribute": "name", "direction": "DESC"}],
            limit=1,
        )

        assert usernames(result) == ["paris"]
        assert result["providers"][0]["attributes"]["trade"] == "plumber"

    @pytest.mark.asyncio
    async def test_within_radius(self, async_client, seeded):
        result = await search(
            async_client,
            within={"latitude": 48.8566, "longitude": 2.3522, "distance": 20},
            sort=[{"attribute": "name"}],
        )

        assert usernames(result) == ["paris", "versailles"]

    @pytest.mark.asyncio
    async def test_within_radius_in_miles(self, async_client, seeded):
        result = await search(
            async_client,
            within={"latitude": 48.8566, "longitude": 2.3522, "distance": 250, "unit": "MI"},
        )

        assert sorted(usernames(result)) == ["london", "paris", "versailles"]

    @pytest.mark.asyncio
    async def test_in_filter(self, async_client, seeded):
        result = await search(
            async_client,
            filters=[{"attribute": "city", "operator": "IN", "value": ["London", "Versailles"]}],
        )

        assert sorted(usernames(result)) == ["london", "versailles"]

    @pytest.mark.asyncio
    async def test_unknown_attribute_is_a_field_error(self, async_client, seeded):
        result = await search(
            async_client, filters=[{"attribute": "password", "value": "x"}]
        )

        assert result == {
            "errors": [{"field": "filters", "message": "unknown attribute password"}],
            "providers": None,
        }

    @pytest.mark.asyncio
    async def test_negative_radius_is_a_field_error(self, async_client, seeded):
        result = await search(
            async_client, within={"latitude": 0, "longitude": 0, "distance": -1}
        )

        assert result["errors"] == [
            {"field": "within", "message": "radius must be zero or greater"}
        ]
