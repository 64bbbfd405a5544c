"""Donor Registry — registers donors and keeps the geo index in step with storage.

Invariants:
    - Masking happens in core.donor.new_donor, before anything is persisted
    - Storage is written first, the live index second: a donor never appears in
      matches without a stored record
    - Donors are never deleted; deactivation removes them from matching
"""

import logging
from datetime import datetime

from pulse.core.domain_types import BloodGroup, DonorId, GeoPoint
from pulse.core.donor import Donor, new_donor
from pulse.core.errors import ResourceNotFoundError
from pulse.core.geo_index import GeoIndex
from pulse.core.location_masker import LocationPrivacyMasker
from pulse.core.repository_protocols import DonorRepository

logger = logging.getLogger(__name__)


class DonorRegistry:
    def __init__(
        self,
        repository: DonorRepository,
        index: GeoIndex,
        masker: LocationPrivacyMasker,
    ):
        self.repository = repository
        self.index = index
        self.masker = masker

    async def register(
        self,
        *,
        name: str,
        blood_group: BloodGroup,
        phone: str,
        raw_home: GeoPoint,
        consent_at: datetime | None,
        office: GeoPoint | None = None,
        age: int | None = None,
    ) -> Donor:
        donor = new_donor(
            name=name,
            blood_group=blood_group,
            phone=phone,
            raw_home=raw_home,
            masker=self.masker,
            office=office,
            age=age,
            consent_at=consent_at,
        )
        await self.repository.add(donor)
        self.index.upsert(donor)
        logger.info(
            f"Donor registered ({donor.blood_group.value})",
            extra={"donor_id": str(donor.id)},
        )
        return donor

    async def set_active(self, donor_id: DonorId, active: bool) -> Donor:
        stored = await self.repository.get(donor_id)
        if stored is None:
            raise ResourceNotFoundError("Donor", str(donor_id))
        await self.repository.set_active(donor_id, active)

        if self.index.get(donor_id) is None:
            updated = stored.with_active(active)
            self.index.upsert(updated)
        else:
            updated = self.index.set_active(donor_id, active)
        logger.info(
            f"Donor {'activated' if active else 'deactivated'}",
            extra={"donor_id": str(donor_id)},
        )
        return updated

    def live_donors(self) -> list[Donor]:
        """Active donors for the map feed (masked coordinates only)."""
        return self.index.active_donors()


async def warm_index(index: GeoIndex, repository: DonorRepository) -> int:
    """Load every active donor from storage into the index. Returns the count."""
    donors = await repository.list_active()
    for donor in donors:
        index.upsert(donor)
    logger.info(f"Geo index warmed with {len(donors)} active donors")
    return len(donors)
