"""Alert Payloads — builds the outbound messages for a matched request.

Invariants:
    - Directed mode: exactly one payload per match, addressed to that donor's phone
    - Broadcast mode: exactly one payload with no recipient, for manual forwarding
    - Every payload embeds blood group, units, hospital, patient, attendant and proof URL
"""

import re
from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote

from pulse.core.matching_engine import Match
from pulse.core.request_lifecycle import EmergencyRequest

DEFAULT_DEEP_LINK_BASE = "https://wa.me"

ALERT_TEMPLATE = (
    "\U0001F6A8 *PULSE EMERGENCY ALERT* \U0001F6A8\n\n"
    "*Blood Needed:* {blood_group} ({units} Units)\n"
    "*Hospital:* {hospital}\n"
    "*Patient:* {patient}\n"
    "*Attendant:* {attendant} ({contact})\n\n"
    "\U0001F4C4 *Medical Proof:* {proof}\n\n"
    "{closing}"
)

DIRECTED_CLOSING = "You were identified as a nearby donor. Please help."
BROADCAST_CLOSING = "Please forward to anyone who can donate."


class AlertKind(str, Enum):
    DIRECTED = "directed"
    BROADCAST = "broadcast"


@dataclass(frozen=True)
class AlertPayload:
    kind: AlertKind
    text: str
    deep_link: str
    recipient: str | None = None
    donor_id: str | None = None
    distance_km: float | None = None


def render_alert_text(request: EmergencyRequest, directed: bool = True) -> str:
    return ALERT_TEMPLATE.format(
        blood_group=request.blood_group.value,
        units=request.units_needed,
        hospital=request.hospital_name,
        patient=request.patient_name,
        attendant=request.attendant_name or "Attendant",
        contact=request.attendant_contact,
        proof=request.proof_reference or "",
        closing=DIRECTED_CLOSING if directed else BROADCAST_CLOSING,
    )


def build_deep_link(text: str, phone: str | None = None, base: str = DEFAULT_DEEP_LINK_BASE) -> str:
    """wa.me-style link: {base}/{digits}?text=... or {base}/?text=... with no recipient."""
    target = normalize_phone(phone) if phone else ""
    return f"{base.rstrip('/')}/{target}?text={quote(text, safe='')}"


def normalize_phone(phone: str) -> str:
    return re.sub(r"\D", "", phone)


def build_alert_payloads(
    request: EmergencyRequest,
    matches: list[Match],
    broadcast: bool = False,
    deep_link_base: str = DEFAULT_DEEP_LINK_BASE,
) -> list[AlertPayload]:
    """Directed payloads per match, or a single broadcast payload."""
    if broadcast or not matches:
        text = render_alert_text(request, directed=False)
        return [
            AlertPayload(
                kind=AlertKind.BROADCAST,
                text=text,
                deep_link=build_deep_link(text, base=deep_link_base),
            ),
        ]

    text = render_alert_text(request, directed=True)
    return [
        AlertPayload(
            kind=AlertKind.DIRECTED,
            text=text,
            deep_link=build_deep_link(text, m.donor.phone, deep_link_base),
            recipient=m.donor.phone,
            donor_id=str(m.donor.id),
            distance_km=round(m.distance_km, 2),
        )
        for m in matches
    ]
