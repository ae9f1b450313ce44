"""Location/GPS value objects."""

import math
from dataclasses import dataclass
from enum import Enum

from marketplace.core.errors import ValidationError

EARTH_RADIUS_KM = 6371.0088
KM_PER_MILE = 1.609344

# Slack added to bounding boxes so float rounding never drops a boundary point.
_BOX_EPSILON_DEG = 1e-9


class DistanceUnit(Enum):
    """Units accepted for search radii."""

    KM = "km"
    MI = "mi"

    def to_km(self, value: float) -> float:
        return value * KM_PER_MILE if self == DistanceUnit.MI else value


@dataclass(frozen=True)
class Location:
    """GPS coordinate pair in decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self):
        if not isinstance(self.latitude, int | float) or not -90 <= self.latitude <= 90:
            raise ValidationError(
                "Latitude must be between -90 and 90 degrees", field="latitude"
            )
        if not isinstance(self.longitude, int | float) or not -180 <= self.longitude <= 180:
            raise ValidationError(
                "Longitude must be between -180 and 180 degrees", field="longitude"
            )

    def distance_to(self, other: "Location") -> float:
        """Great-circle distance to ``other`` in kilometres (haversine)."""
        return haversine_km(self.latitude, self.longitude, other.latitude, other.longitude)


@dataclass(frozen=True)
class BoundingBox:
    """
    Latitude/longitude box enclosing every point within a radius of a centre.

    ``min_longitude``/``max_longitude`` are ``None`` when the circle reaches a
    pole or crosses the antimeridian; only the latitude band applies then.
    """

    min_latitude: float
    max_latitude: float
    min_longitude: float | None
    max_longitude: float | None

    @classmethod
    def around(cls, center: Location, radius_km: float) -> "BoundingBox":
        angular = radius_km / EARTH_RADIUS_KM
        lat = math.radians(center.latitude)

        min_lat = math.degrees(lat - angular) - _BOX_EPSILON_DEG
        max_lat = math.degrees(lat + angular) + _BOX_EPSILON_DEG

        # Spherical longitude half-width; the pole is inside the circle when
        # sin(angular) >= cos(lat).
        if min_lat <= -90 or max_lat >= 90 or math.sin(angular) >= math.cos(lat):
            return cls(max(min_lat, -90.0), min(max_lat, 90.0), None, None)

        delta_lon = math.degrees(math.asin(math.sin(angular) / math.cos(lat)))
        min_lon = center.longitude - delta_lon - _BOX_EPSILON_DEG
        max_lon = center.longitude + delta_lon + _BOX_EPSILON_DEG
        if min_lon < -180 or max_lon > 180:
            return cls(min_lat, max_lat, None, None)

        return cls(min_lat, max_lat, min_lon, max_lon)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points in kilometres.

    Args:
        lat1: Latitude of the first point in degrees
        lon1: Longitude of the first point in degrees
        lat2: Latitude of the second point in degrees
        lon2: Longitude of the second point in degrees

    Returns:
        float: Distance in kilometres
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = phi2 - phi1
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))
