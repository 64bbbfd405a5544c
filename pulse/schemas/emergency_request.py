"""Emergency Request Schemas — draft creation, lifecycle responses, dispatch reports.

Invariants:
    - units_needed is a positive integer
    - Hospital coordinates are all-or-nothing on draft creation
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from pulse.core.domain_types import BloodGroup, RequestStatus
from pulse.core.request_lifecycle import EmergencyRequest
from pulse.services.notification_dispatcher import DispatchReport


class RequestCreate(BaseModel):
    patient_name: str = Field("", max_length=100)
    blood_group: BloodGroup
    units_needed: int = Field(1, ge=1, le=50)
    hospital_name: str = Field("", max_length=150)
    lat: float | None = Field(None, ge=-90, le=90)
    lng: float | None = Field(None, ge=-180, le=180)
    attendant_name: str = Field("", max_length=100)
    attendant_contact: str = Field("", max_length=20)

    @model_validator(mode="after")
    def validate_location_pair(self):
        if (self.lat is None) != (self.lng is None):
            raise ValueError("lat and lng must be given together")
        return self


class MatchView(BaseModel):
    rank: int
    donor_id: UUID
    donor_display_handle: str
    donor_contact_handle: str
    distance_km: float


class RequestResponse(BaseModel):
    id: UUID
    status: RequestStatus
    patient_name: str
    blood_group: BloodGroup
    units_needed: int
    hospital_name: str
    lat: float | None
    lng: float | None
    attendant_name: str
    attendant_contact: str
    proof_reference: str | None
    broadcast_count: int
    created_at: datetime
    closed_at: datetime | None
    matches: list[MatchView]

    @classmethod
    def from_domain(cls, request: EmergencyRequest) -> "RequestResponse":
        location = request.hospital_location
        return cls(
            id=request.id,
            status=request.status,
            patient_name=request.patient_name,
            blood_group=request.blood_group,
            units_needed=request.units_needed,
            hospital_name=request.hospital_name,
            lat=location.lat if location else None,
            lng=location.lng if location else None,
            attendant_name=request.attendant_name,
            attendant_contact=request.attendant_contact,
            proof_reference=request.proof_reference,
            broadcast_count=request.broadcast_count,
            created_at=request.created_at,
            closed_at=request.closed_at,
            matches=[
                MatchView(
                    rank=m.rank,
                    donor_id=m.donor.id,
                    donor_display_handle=m.donor.name,
                    donor_contact_handle=m.donor.phone,
                    distance_km=round(m.distance_km, 3),
                )
                for m in request.matches
            ],
        )


class DispatchRequest(BaseModel):
    broadcast: bool = False


class AlertView(BaseModel):
    kind: str
    recipient: str | None
    deep_link: str
    text: str


class DeliveryErrorView(BaseModel):
    code: str
    message: str
    recipient: str | None


class DispatchResponse(BaseModel):
    request: RequestResponse
    alerts: list[AlertView]
    delivery_errors: list[DeliveryErrorView]

    @classmethod
    def from_domain(
        cls, request: EmergencyRequest, report: DispatchReport,
    ) -> "DispatchResponse":
        return cls(
            request=RequestResponse.from_domain(request),
            alerts=[
                AlertView(
                    kind=p.kind.value, recipient=p.recipient,
                    deep_link=p.deep_link, text=p.text,
                )
                for p in report.payloads
            ],
            delivery_errors=[
                DeliveryErrorView(code=e.code, message=e.message, recipient=e.recipient)
                for e in report.failures
            ],
        )


class ExpiredBatch(BaseModel):
    expired: list[UUID]
