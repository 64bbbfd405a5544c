"""Donor Schemas — registration input and public donor views.

Invariants:
    - Coordinates range-checked at the boundary (lat [-90, 90], lng [-180, 180])
    - Office coordinates are all-or-nothing
    - DonorResponse never carries the raw home point (only the masked one exists)
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from pulse.core.domain_types import BloodGroup


class DonorCreate(BaseModel):
    """Donor write interface."""
    name: str = Field(min_length=1, max_length=100)
    age: int = Field(ge=18, le=65)
    blood_group: BloodGroup
    phone: str = Field(min_length=5, max_length=20, pattern=r"^\+?[0-9 ()-]+$")
    home_lat: float = Field(ge=-90, le=90)
    home_lng: float = Field(ge=-180, le=180)
    office_lat: float | None = Field(None, ge=-90, le=90)
    office_lng: float | None = Field(None, ge=-180, le=180)
    consent_timestamp: datetime

    @field_validator("name", "phone")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @model_validator(mode="after")
    def validate_office_pair(self):
        if (self.office_lat is None) != (self.office_lng is None):
            raise ValueError("office_lat and office_lng must be given together")
        return self


class DonorResponse(BaseModel):
    id: UUID
    name: str
    blood_group: BloodGroup
    lat: float
    lng: float
    active: bool


class LiveDonor(BaseModel):
    """Map feed entry: masked point and group only."""
    id: UUID
    lat: float
    lng: float
    blood_group: BloodGroup
