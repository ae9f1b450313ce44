"""Tests for coordinates, great-circle distance and bounding boxes."""

import pytest

from marketplace.core.errors import ValidationError
from marketplace.shared.value_objects import (
    BoundingBox,
    DistanceUnit,
    Location,
    PostalAddress,
    haversine_km,
)

PARIS = Location(latitude=48.8566, longitude=2.3522)
LONDON = Location(latitude=51.5074, longitude=-0.1278)


class TestLocation:
    @pytest.mark.parametrize(("lat", "lon"), [(91, 0), (-90.5, 0), (0, 180.1), (0, -181)])
    def test_out_of_range(self, lat, lon):
        with pytest.raises(ValidationError):
            Location(latitude=lat, longitude=lon)

    def test_distance_paris_london(self):
        assert PARIS.distance_to(LONDON) == pytest.approx(343.5, abs=1.0)

    def test_distance_to_self_is_zero(self):
        assert haversine_km(10.0, 20.0, 10.0, 20.0) == 0.0

    def test_miles(self):
        assert DistanceUnit.MI.to_km(1) == pytest.approx(1.609344)
        assert DistanceUnit.KM.to_km(5) == 5


class TestBoundingBox:
    def test_contains_circle(self):
        box = BoundingBox.around(PARIS, 400)

        assert box.min_latitude <= LONDON.latitude <= box.max_latitude
        assert box.min_longitude <= LONDON.longitude <= box.max_longitude

    def test_zero_radius_contains_centre(self):
        box = BoundingBox.around(PARIS, 0)

        assert box.min_latitude <= PARIS.latitude <= box.max_latitude
        assert box.min_longitude <= PARIS.longitude <= box.max_longitude

    def test_pole_drops_longitude_bounds(self):
        box = BoundingBox.around(Location(latitude=89.9, longitude=0), 50)

        assert box.min_longitude is None
        assert box.max_latitude == 90.0

    def test_antimeridian_drops_longitude_bounds(self):
        box = BoundingBox.around(Location(latitude=0, longitude=179.9), 50)

        assert box.min_longitude is None
        assert box.max_longitude is None


class TestPostalAddress:
    def test_location_query_order_and_normalization(self):
        address = PostalAddress(country="FR", city="  Paris ", street="1  Rue de Rivoli")

        assert address.to_location_query() == "FR Paris 1 Rue de Rivoli"
        assert address.state is None

    def test_blank_address_is_empty(self):
        assert PostalAddress(country=" ", zipcode="").is_empty
