"""Matching Engine — ranks donors for one emergency request.

Invariants:
    - match() is read-only and safe to retry
    - Zero qualifying donors yields an empty list, never an error
    - Any failure inside the index surfaces as MatchError

Design Decisions:
    - Radius is a constructor parameter defaulting to DEFAULT_MATCH_RADIUS_KM
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from pulse.core.domain_types import (
    BloodGroup, DEFAULT_MATCH_RADIUS_KM, GeoPoint, RequestId,
)
from pulse.core.donor import Donor
from pulse.core.errors import ErrorContext, MatchError
from pulse.core.geo_index import GeoIndex, RankedDonor

if TYPE_CHECKING:
    from pulse.core.request_lifecycle import EmergencyRequest


@dataclass(frozen=True)
class Match:
    request_id: RequestId
    donor: Donor
    distance_km: float
    rank: int


class MatchingEngine:
    def __init__(self, index: GeoIndex, radius_km: float = DEFAULT_MATCH_RADIUS_KM):
        self.index = index
        self.radius_km = radius_km

    def search(
        self, point: GeoPoint, blood_group: BloodGroup, radius_km: float | None = None,
    ) -> list[RankedDonor]:
        """Stand-alone radius query, used by the matching query interface."""
        radius = self.radius_km if radius_km is None else radius_km
        try:
            return self.index.query(point, blood_group, radius)
        except Exception as e:
            raise MatchError(str(e)) from e

    def match(self, request: "EmergencyRequest") -> list[Match]:
        try:
            hits = self.search(request.hospital_location, request.blood_group)
        except MatchError as e:
            e.context = ErrorContext(request_id=str(request.id))
            raise
        return [
            Match(request.id, hit.donor, hit.distance_km, rank)
            for rank, hit in enumerate(hits, start=1)
        ]
