"""Geo Index — live set of donors answering radius + blood group queries.

Invariants:
    - query() results ascend by distance, ties broken by donor id
    - Only active donors with exactly the requested blood group are returned
    - Boundary inclusive: distance == radius_km is a hit
    - GridGeoIndex returns exactly what LinearGeoIndex returns for the same donors
    - Single-donor mutations are atomic; queries read a snapshot taken under the lock

Design Decisions:
    - LinearGeoIndex is the reference: full scan + haversine
    - GridGeoIndex only narrows the candidate set, then reuses the reference
      filter and ordering, so output equivalence holds by construction
    - No isolation between a query and a concurrent registration: a donor
      activating mid-query may or may not appear
"""

import math
import threading
from typing import NamedTuple, Protocol

from pulse.core.domain_types import (
    BloodGroup, DonorId, EARTH_RADIUS_KM, GeoIndexBackend, GeoPoint, LocationStrategy,
)
from pulse.core.donor import Donor
from pulse.core.errors import ResourceNotFoundError
from pulse.core.geo import bounding_box, haversine_km

KM_PER_DEGREE = EARTH_RADIUS_KM * math.pi / 180.0


class RankedDonor(NamedTuple):
    donor: Donor
    distance_km: float


class GeoIndex(Protocol):
    """Contract shared by every index implementation."""
    strategy: LocationStrategy

    def upsert(self, donor: Donor) -> None: ...
    def set_active(self, donor_id: DonorId, active: bool) -> Donor: ...
    def get(self, donor_id: DonorId) -> Donor | None: ...
    def active_donors(self) -> list[Donor]: ...
    def query(
        self, point: GeoPoint, blood_group: BloodGroup, radius_km: float,
    ) -> list[RankedDonor]: ...


class LinearGeoIndex:
    """Reference index: scans every donor."""

    def __init__(self, strategy: LocationStrategy = LocationStrategy.HOME_ONLY):
        self.strategy = strategy
        self._lock = threading.Lock()
        self._donors: dict[DonorId, Donor] = {}

    def __len__(self) -> int:
        return len(self._donors)

    def upsert(self, donor: Donor) -> None:
        with self._lock:
            previous = self._donors.get(donor.id)
            self._donors[donor.id] = donor
            self._on_upsert(previous, donor)

    def set_active(self, donor_id: DonorId, active: bool) -> Donor:
        with self._lock:
            current = self._donors.get(donor_id)
            if current is None:
                raise ResourceNotFoundError("Donor", str(donor_id))
            updated = current.with_active(active)
            self._donors[donor_id] = updated
            return updated

    def get(self, donor_id: DonorId) -> Donor | None:
        return self._donors.get(donor_id)

    def active_donors(self) -> list[Donor]:
        with self._lock:
            snapshot = list(self._donors.values())
        return [d for d in snapshot if d.active]

    def query(
        self, point: GeoPoint, blood_group: BloodGroup, radius_km: float,
    ) -> list[RankedDonor]:
        if radius_km < 0:
            return []
        with self._lock:
            candidates = self._candidates(point, radius_km)

        hits = []
        for donor in candidates:
            if not donor.active or donor.blood_group != blood_group:
                continue
            distance = min(haversine_km(point, p) for p in donor.points(self.strategy))
            if distance <= radius_km:
                hits.append(RankedDonor(donor, distance))
        hits.sort(key=lambda hit: (hit.distance_km, str(hit.donor.id)))
        return hits

    # --- Hooks (called with the lock held) ------------------------------------

    def _candidates(self, point: GeoPoint, radius_km: float) -> list[Donor]:
        return list(self._donors.values())

    def _on_upsert(self, previous: Donor | None, donor: Donor) -> None:
        pass


class GridGeoIndex(LinearGeoIndex):
    """Buckets donor points into lat/lng cells; scans only cells under the query box."""

    def __init__(
        self,
        strategy: LocationStrategy = LocationStrategy.HOME_ONLY,
        cell_km: float = 15.0,
    ):
        if cell_km <= 0:
            raise ValueError("cell_km must be positive")
        super().__init__(strategy)
        self.cell_degrees = cell_km / KM_PER_DEGREE
        self._cells: dict[tuple[int, int], set[DonorId]] = {}

    def _cell(self, lat: float, lng: float) -> tuple[int, int]:
        return (
            math.floor(lat / self.cell_degrees),
            math.floor(lng / self.cell_degrees),
        )

    def _cells_for(self, donor: Donor) -> set[tuple[int, int]]:
        return {self._cell(p.lat, p.lng) for p in donor.points(self.strategy)}

    def _on_upsert(self, previous: Donor | None, donor: Donor) -> None:
        if previous is not None:
            for key in self._cells_for(previous):
                bucket = self._cells.get(key)
                if bucket is not None:
                    bucket.discard(previous.id)
                    if not bucket:
                        del self._cells[key]
        for key in self._cells_for(donor):
            self._cells.setdefault(key, set()).add(donor.id)

    def _candidates(self, point: GeoPoint, radius_km: float) -> list[Donor]:
        box = bounding_box(point, radius_km)
        if box is None:
            return list(self._donors.values())

        # 1e-9 degree pad absorbs float rounding at cell edges
        min_lat, max_lat, min_lng, max_lng = box
        lat_lo, lng_lo = self._cell(min_lat - 1e-9, min_lng - 1e-9)
        lat_hi, lng_hi = self._cell(max_lat + 1e-9, max_lng + 1e-9)

        cell_count = (lat_hi - lat_lo + 1) * (lng_hi - lng_lo + 1)
        if cell_count > len(self._cells):
            ids = {
                donor_id
                for (i, j), bucket in self._cells.items()
                if lat_lo <= i <= lat_hi and lng_lo <= j <= lng_hi
                for donor_id in bucket
            }
        else:
            ids = set()
            for i in range(lat_lo, lat_hi + 1):
                for j in range(lng_lo, lng_hi + 1):
                    ids.update(self._cells.get((i, j), ()))
        return [self._donors[donor_id] for donor_id in ids]


def build_geo_index(
    backend: GeoIndexBackend,
    strategy: LocationStrategy = LocationStrategy.HOME_ONLY,
    cell_km: float = 15.0,
) -> LinearGeoIndex:
    if backend == GeoIndexBackend.GRID:
        return GridGeoIndex(strategy, cell_km)
    return LinearGeoIndex(strategy)
