"""Great-circle geometry tests — pure tests for haversine, destinations and boxes.

Tests cover:
    - Zero and symmetric distances
    - The Bangalore reference pair lands near 1.1 km
    - destination_point() travels exactly the requested distance
    - bounding_box() encloses every point of the circle, or gives up at poles/antimeridian
    - require_valid_point() rejects non-finite and out-of-range points
"""

import math
import random

import pytest

from pulse.core.domain_types import GeoPoint
from pulse.core.errors import ValidationError
from pulse.core.geo import bounding_box, destination_point, haversine_km, require_valid_point

from tests.core.helpers import BANGALORE_DONOR, BANGALORE_HOSPITAL


def test_distance_to_self_is_zero():
    assert haversine_km(BANGALORE_DONOR, BANGALORE_DONOR) == 0.0


def test_distance_is_symmetric():
    a = GeoPoint(51.5074, -0.1278)
    b = GeoPoint(48.8566, 2.3522)
    assert haversine_km(a, b) == pytest.approx(haversine_km(b, a))


def test_bangalore_pair_is_about_one_km():
    distance = haversine_km(BANGALORE_HOSPITAL, BANGALORE_DONOR)
    assert 1.0 < distance < 1.2


def test_london_paris_distance():
    distance = haversine_km(GeoPoint(51.5074, -0.1278), GeoPoint(48.8566, 2.3522))
    assert distance == pytest.approx(343.5, abs=1.0)


def test_antipodal_points_do_not_overflow():
    distance = haversine_km(GeoPoint(0.0, 0.0), GeoPoint(0.0, 180.0))
    assert distance == pytest.approx(math.pi * 6371.0)


@pytest.mark.parametrize("bearing", [0, 45, 90, 135, 180, 270])
def test_destination_point_travels_requested_distance(bearing):
    target = destination_point(BANGALORE_HOSPITAL, bearing, 15.0)
    assert haversine_km(BANGALORE_HOSPITAL, target) == pytest.approx(15.0, abs=1e-6)


def test_destination_point_wraps_longitude():
    target = destination_point(GeoPoint(0.0, 179.99), 90, 50.0)
    assert -180.0 <= target.lng < -179.0


# --- Bounding box -------------------------------------------------------------

def test_bounding_box_contains_circle():
    rng = random.Random(11)
    for _ in range(200):
        center = GeoPoint(rng.uniform(-70, 70), rng.uniform(-170, 170))
        radius = rng.uniform(0.1, 200.0)
        box = bounding_box(center, radius)
        if box is None:
            continue
        min_lat, max_lat, min_lng, max_lng = box
        for _ in range(10):
            p = destination_point(center, rng.uniform(0, 360), rng.uniform(0, radius))
            assert min_lat - 1e-9 <= p.lat <= max_lat + 1e-9
            assert min_lng - 1e-9 <= p.lng <= max_lng + 1e-9


def test_bounding_box_none_near_pole():
    assert bounding_box(GeoPoint(89.95, 10.0), 15.0) is None


def test_bounding_box_none_across_antimeridian():
    assert bounding_box(GeoPoint(0.0, 179.95), 15.0) is None


def test_bounding_box_is_centered():
    min_lat, max_lat, min_lng, max_lng = bounding_box(BANGALORE_HOSPITAL, 15.0)
    assert (min_lat + max_lat) / 2 == pytest.approx(BANGALORE_HOSPITAL.lat)
    assert (min_lng + max_lng) / 2 == pytest.approx(BANGALORE_HOSPITAL.lng)


# --- Validation ---------------------------------------------------------------

@pytest.mark.parametrize("point", [
    GeoPoint(91.0, 0.0),
    GeoPoint(-90.5, 0.0),
    GeoPoint(0.0, 180.5),
    GeoPoint(float("nan"), 0.0),
    GeoPoint(0.0, float("inf")),
])
def test_require_valid_point_rejects(point):
    with pytest.raises(ValidationError) as exc:
        require_valid_point(point, "hospital_location")
    assert exc.value.fields == ["hospital_location"]


def test_require_valid_point_accepts_edges():
    point = GeoPoint(-90.0, 180.0)
    assert require_valid_point(point) is point
