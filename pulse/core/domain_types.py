"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - DonorId, RequestId wrap UUIDs — never use bare UUID in domain logic
    - GeoPoint latitude in [-90, 90], longitude in [-180, 180]
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType for identities: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

DonorId = NewType("DonorId", UUID)
RequestId = NewType("RequestId", UUID)


# ─── Constants ───────────────────────────────────────────────────

EARTH_RADIUS_KM = 6371.0
DEFAULT_MATCH_RADIUS_KM = 15.0
DEFAULT_JITTER_DEGREES = 0.005


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""
    lat: float
    lng: float

    @property
    def is_valid(self) -> bool:
        return (
            math.isfinite(self.lat) and math.isfinite(self.lng)
            and -90.0 <= self.lat <= 90.0
            and -180.0 <= self.lng <= 180.0
        )


# ─── Enums ───────────────────────────────────────────────────────

class BloodGroup(str, Enum):
    """The 8 canonical ABO/Rh groups. Matching uses exact equality only."""
    O_POS = "O+"
    O_NEG = "O-"
    A_POS = "A+"
    A_NEG = "A-"
    B_POS = "B+"
    B_NEG = "B-"
    AB_POS = "AB+"
    AB_NEG = "AB-"


class RequestStatus(str, Enum):
    """Emergency request lifecycle states — maps to DB `status` column."""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    MATCHED = "matched"
    BROADCASTED = "broadcasted"
    RESOLVED = "resolved"
    EXPIRED = "expired"


class LocationStrategy(str, Enum):
    """Which donor points a radius query measures against."""
    HOME_ONLY = "home_only"
    NEAREST_OF = "nearest_of"


class GeoIndexBackend(str, Enum):
    LINEAR = "linear"
    GRID = "grid"
