"""
Geocoding adapters.

Turns a provider's postal address into coordinates. Lookups are best effort:
any failure is logged and reported as "not found" so registration can carry on
with empty coordinates.
"""

from typing import Any, Protocol

import httpx

from marketplace.core.config import GeocodingConfig
from marketplace.core.errors import GeocodingError, ValidationError
from marketplace.core.logging import get_logger
from marketplace.shared.value_objects import Location, PostalAddress

logger = get_logger(__name__)


class Geocoder(Protocol):
    async def resolve(self, address: PostalAddress) -> Location | None: ...


class NullGeocoder:
    """Geocoder used when geocoding is disabled; never finds anything."""

    async def resolve(self, address: PostalAddress) -> Location | None:
        return None


class MapQuestGeocoder:
    """MapQuest address geocoding over httpx."""

    ADDRESS_PATH = "/geocoding/v1/address"

    def __init__(self, config: GeocodingConfig, client: httpx.AsyncClient | None = None):
        self.config = config
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                headers={"Accept": "application/json"},
                timeout=httpx.Timeout(self.config.timeout),
            )
        return self._client

    async def resolve(self, address: PostalAddress) -> Location | None:
        """
        Geocode ``address``.

        Args:
            address: Provider postal address

        Returns:
            Location | None: Best match, or None on a miss or any failure
        """
        if address.is_empty:
            return None

        try:
            payload = await self._fetch(address.to_location_query())
            location = self._parse(payload)
        except GeocodingError as e:
            logger.warning("Geocoding failed", error=e.message)
            return None

        if location is None:
            logger.info("Address could not be geocoded", query=address.to_location_query())
        return location

    async def _fetch(self, query: str) -> dict[str, Any]:
        params = {"key": self.config.api_key, "maxResults": 1, "location": query}
        try:
            response = await self._get_client().get(self.ADDRESS_PATH, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise GeocodingError(
                f"Geocoding request returned {e.response.status_code}", cause=e
            ) from e
        except httpx.HTTPError as e:
            raise GeocodingError(f"Geocoding request failed: {e}", cause=e) from e
        except ValueError as e:
            raise GeocodingError("Geocoding response is not JSON", cause=e) from e

    def _parse(self, payload: dict[str, Any]) -> Location | None:
        try:
            lat_lng = payload["results"][0]["locations"][0]["latLng"]
            return Location(latitude=float(lat_lng["lat"]), longitude=float(lat_lng["lng"]))
        except (KeyError, IndexError, TypeError, ValueError, ValidationError):
            return None

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def create_geocoder(config: GeocodingConfig) -> Geocoder:
    if not config.enabled or not config.api_key:
        logger.info("Geocoding disabled")
        return NullGeocoder()
    return MapQuestGeocoder(config)
