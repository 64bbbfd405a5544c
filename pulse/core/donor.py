"""Donor record — immutable snapshot of a registered donor.

Invariants:
    - home is always the masked coordinate; the raw home point is never kept
    - new_donor() is the only place masking happens
    - Records are frozen: activation flips replace the whole record
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from uuid import uuid4

from pulse.core.domain_types import BloodGroup, DonorId, GeoPoint, LocationStrategy
from pulse.core.errors import ValidationError
from pulse.core.geo import require_valid_point
from pulse.core.location_masker import LocationPrivacyMasker


@dataclass(frozen=True)
class Donor:
    id: DonorId
    name: str
    blood_group: BloodGroup
    phone: str
    home: GeoPoint
    office: GeoPoint | None = None
    active: bool = True
    age: int | None = None
    consent_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def points(self, strategy: LocationStrategy) -> tuple[GeoPoint, ...]:
        """Points a radius query measures against under the given strategy."""
        if strategy == LocationStrategy.NEAREST_OF and self.office is not None:
            return (self.home, self.office)
        return (self.home,)

    def with_active(self, active: bool) -> "Donor":
        return replace(self, active=active)


def new_donor(
    *,
    name: str,
    blood_group: BloodGroup,
    phone: str,
    raw_home: GeoPoint,
    masker: LocationPrivacyMasker,
    office: GeoPoint | None = None,
    age: int | None = None,
    consent_at: datetime | None = None,
) -> Donor:
    """Create a donor, masking the home coordinate exactly once.

    The office point is a daytime location and is stored as given.
    """
    missing = [
        label for label, value in (
            ("name", name.strip()), ("phone", phone.strip()), ("consent_at", consent_at),
        ) if not value
    ]
    if missing:
        raise ValidationError(
            f"Donor registration missing: {', '.join(missing)}", fields=missing,
        )
    if office is not None:
        require_valid_point(office, "office_location")

    return Donor(
        id=DonorId(uuid4()),
        name=name.strip(),
        blood_group=blood_group,
        phone=phone.strip(),
        home=masker.mask(raw_home),
        office=office,
        age=age,
        consent_at=consent_at,
    )
