"""Donor Routes — registration, activation toggles, and the live map feed.

Invariants:
    - Registration returns only the masked home point
    - Live feed exposes id, masked point and blood group; no names or phones
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status

from pulse.api.dependencies import get_donor_registry
from pulse.core.domain_types import DonorId, GeoPoint
from pulse.core.donor import Donor
from pulse.schemas.donor import DonorCreate, DonorResponse, LiveDonor
from pulse.services.donor_registry import DonorRegistry

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/donors", tags=["donors"])


def _to_response(donor: Donor) -> DonorResponse:
    return DonorResponse(
        id=donor.id,
        name=donor.name,
        blood_group=donor.blood_group,
        lat=donor.home.lat,
        lng=donor.home.lng,
        active=donor.active,
    )


@router.post(
    "", response_model=DonorResponse, status_code=status.HTTP_201_CREATED,
)
async def register_donor(
    body: DonorCreate, registry: DonorRegistry = Depends(get_donor_registry),
):
    """Register a donor. The home coordinate is masked before storage."""
    office = None
    if body.office_lat is not None and body.office_lng is not None:
        office = GeoPoint(body.office_lat, body.office_lng)
    donor = await registry.register(
        name=body.name,
        blood_group=body.blood_group,
        phone=body.phone,
        raw_home=GeoPoint(body.home_lat, body.home_lng),
        consent_at=body.consent_timestamp,
        office=office,
        age=body.age,
    )
    return _to_response(donor)


@router.get("/live", response_model=list[LiveDonor])
async def live_donors(registry: DonorRegistry = Depends(get_donor_registry)):
    return [
        LiveDonor(id=d.id, lat=d.home.lat, lng=d.home.lng, blood_group=d.blood_group)
        for d in registry.live_donors()
    ]


@router.post("/{donor_id}/deactivate", response_model=DonorResponse)
async def deactivate_donor(
    donor_id: UUID, registry: DonorRegistry = Depends(get_donor_registry),
):
    return _to_response(await registry.set_active(DonorId(donor_id), False))


@router.post("/{donor_id}/activate", response_model=DonorResponse)
async def activate_donor(
    donor_id: UUID, registry: DonorRegistry = Depends(get_donor_registry),
):
    return _to_response(await registry.set_active(DonorId(donor_id), True))
