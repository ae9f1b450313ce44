"""Shared value objects."""

from marketplace.shared.value_objects.address import PostalAddress
from marketplace.shared.value_objects.location import (
    EARTH_RADIUS_KM,
    BoundingBox,
    DistanceUnit,
    Location,
    haversine_km,
)

__all__ = [
    "EARTH_RADIUS_KM",
    "BoundingBox",
    "DistanceUnit",
    "Location",
    "PostalAddress",
    "haversine_km",
]
