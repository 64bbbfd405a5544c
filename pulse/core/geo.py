"""Great-circle geometry — haversine distance and query bounding boxes.

Invariants:
    - Distances in kilometers on a sphere of EARTH_RADIUS_KM
    - bounding_box() always contains every point within radius_km of the center
"""

import math

from pulse.core.domain_types import EARTH_RADIUS_KM, GeoPoint
from pulse.core.errors import ValidationError


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points in kilometers."""
    p1 = math.radians(a.lat)
    p2 = math.radians(b.lat)
    dlat = math.radians(b.lat - a.lat)
    dlng = math.radians(b.lng - a.lng)

    h = math.sin(dlat / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def destination_point(origin: GeoPoint, bearing_deg: float, distance_km: float) -> GeoPoint:
    """Point reached travelling distance_km from origin along an initial bearing."""
    delta = distance_km / EARTH_RADIUS_KM
    theta = math.radians(bearing_deg)
    p1 = math.radians(origin.lat)
    l1 = math.radians(origin.lng)

    p2 = math.asin(
        math.sin(p1) * math.cos(delta)
        + math.cos(p1) * math.sin(delta) * math.cos(theta)
    )
    l2 = l1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(p1),
        math.cos(delta) - math.sin(p1) * math.sin(p2),
    )
    lng = (math.degrees(l2) + 540.0) % 360.0 - 180.0
    return GeoPoint(math.degrees(p2), lng)


def bounding_box(
    center: GeoPoint, radius_km: float,
) -> tuple[float, float, float, float] | None:
    """(min_lat, max_lat, min_lng, max_lng) enclosing the query circle.

    Returns None when the circle touches a pole or crosses the antimeridian;
    callers must then scan everything.
    """
    delta = radius_km / EARTH_RADIUS_KM
    lat = math.radians(center.lat)
    min_lat = lat - delta
    max_lat = lat + delta
    if min_lat <= -math.pi / 2 or max_lat >= math.pi / 2:
        return None

    dlng = math.asin(min(1.0, math.sin(delta) / math.cos(lat)))
    min_lng = math.radians(center.lng) - dlng
    max_lng = math.radians(center.lng) + dlng
    if min_lng < -math.pi or max_lng > math.pi:
        return None

    return (
        math.degrees(min_lat), math.degrees(max_lat),
        math.degrees(min_lng), math.degrees(max_lng),
    )


def require_valid_point(point: GeoPoint, field: str = "location") -> GeoPoint:
    """Reject non-finite or out-of-range coordinates."""
    if not point.is_valid:
        raise ValidationError(
            f"{field} must be a finite latitude in [-90, 90] and longitude in [-180, 180]",
            fields=[field],
        )
    return point
