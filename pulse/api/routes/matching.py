"""Matching Route — radius + blood group query against the live index."""

from fastapi import APIRouter, Depends

from pulse.api.dependencies import get_matching_engine
from pulse.core.domain_types import GeoPoint
from pulse.core.matching_engine import MatchingEngine
from pulse.schemas.matching import MatchQuery, MatchResult

router = APIRouter(prefix="/api/v1/matches", tags=["matching"])


@router.post("/search", response_model=list[MatchResult])
async def search_donors(
    body: MatchQuery, engine: MatchingEngine = Depends(get_matching_engine),
):
    """Ranked donors of the exact blood group within radius_km (default 15)."""
    hits = engine.search(GeoPoint(body.lat, body.lng), body.blood_group, body.radius_km)
    return [
        MatchResult(
            donor_display_handle=hit.donor.name,
            donor_contact_handle=hit.donor.phone,
            distance_km=round(hit.distance_km, 3),
        )
        for hit in hits
    ]
