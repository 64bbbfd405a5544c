"""Location Privacy Masker — jitters a donor's resting coordinate before it is stored.

Invariants:
    - Each axis offset is drawn uniformly from [-J/2, +J/2] degrees
    - Pure apart from the injected random source; no global generator
    - Applied once, at donor creation (core/donor.py), never to a stored point

Design Decisions:
    - Same degree jitter on both axes, so east-west distortion shrinks with latitude
    - Output latitude clamped and longitude wrapped so the result stays a valid GeoPoint
"""

import random

from pulse.core.domain_types import DEFAULT_JITTER_DEGREES, GeoPoint
from pulse.core.geo import require_valid_point


class LocationPrivacyMasker:
    """Adds bounded uniform noise to a coordinate."""

    def __init__(
        self,
        jitter_degrees: float = DEFAULT_JITTER_DEGREES,
        rng: random.Random | None = None,
    ):
        if jitter_degrees < 0:
            raise ValueError("jitter_degrees must be non-negative")
        self.jitter_degrees = jitter_degrees
        self._rng = rng or random.Random()

    def mask(self, point: GeoPoint) -> GeoPoint:
        require_valid_point(point, "home_location")
        half = self.jitter_degrees / 2
        lat = point.lat + self._rng.uniform(-half, half)
        lng = point.lng + self._rng.uniform(-half, half)
        return GeoPoint(_clamp_lat(lat), _wrap_lng(lng))


def _clamp_lat(lat: float) -> float:
    return max(-90.0, min(90.0, lat))


def _wrap_lng(lng: float) -> float:
    if -180.0 <= lng <= 180.0:
        return lng
    return (lng + 180.0) % 360.0 - 180.0
