"""Matching Schemas — the stand-alone radius query interface."""

from pydantic import BaseModel, Field

from pulse.core.domain_types import BloodGroup, DEFAULT_MATCH_RADIUS_KM


class MatchQuery(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    blood_group: BloodGroup
    radius_km: float = Field(DEFAULT_MATCH_RADIUS_KM, gt=0, le=500)


class MatchResult(BaseModel):
    donor_display_handle: str
    donor_contact_handle: str
    distance_km: float
