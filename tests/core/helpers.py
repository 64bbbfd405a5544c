"""Builders shared by core tests."""

from uuid import uuid4

from pulse.core.domain_types import BloodGroup, DonorId, GeoPoint
from pulse.core.donor import Donor
from pulse.core.request_lifecycle import EmergencyRequest

BANGALORE_DONOR = GeoPoint(12.9716, 77.5946)
BANGALORE_HOSPITAL = GeoPoint(12.9800, 77.6000)


def make_donor(
    lat: float = BANGALORE_DONOR.lat,
    lng: float = BANGALORE_DONOR.lng,
    blood_group: BloodGroup = BloodGroup.O_POS,
    active: bool = True,
    office: GeoPoint | None = None,
    name: str = "Donor",
    phone: str = "+91 98765 43210",
) -> Donor:
    return Donor(
        id=DonorId(uuid4()),
        name=name,
        blood_group=blood_group,
        phone=phone,
        home=GeoPoint(lat, lng),
        office=office,
        active=active,
    )


def complete_draft(**overrides) -> EmergencyRequest:
    fields = dict(
        blood_group=BloodGroup.O_POS,
        units_needed=2,
        patient_name="Asha Rao",
        hospital_name="St. John's Hospital",
        hospital_location=BANGALORE_HOSPITAL,
        attendant_name="Ravi Rao",
        attendant_contact="+91 90000 11111",
        proof_reference="https://storage.test/request-proofs/1700000000000-form.jpg",
    )
    fields.update(overrides)
    return EmergencyRequest(**fields)
