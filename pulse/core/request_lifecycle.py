"""Request Lifecycle — finite state machine for one emergency request.

States:
    draft -> submitted -> matched -> broadcasted -> resolved | expired

Invariants:
    - No transition skips a state; resolved and expired are terminal
    - draft -> submitted requires patient data, hospital location and a proof reference
    - submitted -> matched happens whatever the match outcome (including failure)
    - broadcasted -> broadcasted (re-dispatch) is allowed and changes nothing
    - A rejected transition leaves the request untouched

Design Decisions:
    - check_* functions are PURE and return an error dict or None (same shape as
      the API error envelope); advance() is the single mutating entry point and
      raises the typed error on rejection
    - EmergencyRequest is a plain mutable dataclass; the shell persists it
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4

from pulse.core.domain_types import BloodGroup, GeoPoint, RequestId, RequestStatus
from pulse.core.errors import ErrorContext, InvalidTransitionError, ValidationError
from pulse.core.matching_engine import Match


TRANSITIONS: dict[RequestStatus, frozenset[RequestStatus]] = {
    RequestStatus.DRAFT: frozenset({RequestStatus.SUBMITTED}),
    RequestStatus.SUBMITTED: frozenset({RequestStatus.MATCHED}),
    RequestStatus.MATCHED: frozenset({RequestStatus.BROADCASTED}),
    RequestStatus.BROADCASTED: frozenset({
        RequestStatus.BROADCASTED, RequestStatus.RESOLVED, RequestStatus.EXPIRED,
    }),
    RequestStatus.RESOLVED: frozenset(),
    RequestStatus.EXPIRED: frozenset(),
}

TERMINAL_STATES = frozenset({RequestStatus.RESOLVED, RequestStatus.EXPIRED})


@dataclass
class EmergencyRequest:
    """One plea for blood, from draft to resolution."""

    blood_group: BloodGroup
    units_needed: int
    patient_name: str = ""
    hospital_name: str = ""
    hospital_location: GeoPoint | None = None
    attendant_name: str = ""
    attendant_contact: str = ""
    proof_reference: str | None = None

    id: RequestId = field(default_factory=lambda: RequestId(uuid4()))
    status: RequestStatus = RequestStatus.DRAFT
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    closed_at: datetime | None = None
    broadcast_count: int = 0
    matches: list[Match] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    @property
    def missing_fields(self) -> list[str]:
        """Fields that must be present before the request may be submitted."""
        required = {
            "patient_name": self.patient_name.strip(),
            "hospital_name": self.hospital_name.strip(),
            "hospital_location": self.hospital_location,
            "attendant_contact": self.attendant_contact.strip(),
            "proof_reference": self.proof_reference,
        }
        missing = [name for name, value in required.items() if not value]
        if self.units_needed < 1:
            missing.append("units_needed")
        return missing


# --- Pure checks --------------------------------------------------------------

def check_allowed(request: EmergencyRequest, target: RequestStatus) -> dict | None:
    """Reject targets not reachable in one step from the current state."""
    if target not in TRANSITIONS[request.status]:
        return _error(
            "INVALID_TRANSITION",
            f"Cannot move request from '{request.status.value}' to '{target.value}'.",
        )
    return None


def check_submittable(request: EmergencyRequest) -> dict | None:
    """draft -> submitted: patient info, location and proof all attached."""
    missing = request.missing_fields
    if missing:
        error = _error(
            "VALIDATION_ERROR",
            f"Request cannot be submitted without: {', '.join(missing)}.",
        )
        error["fields"] = missing
        return error
    if not request.hospital_location.is_valid:
        error = _error("VALIDATION_ERROR", "Hospital location is out of range.")
        error["fields"] = ["hospital_location"]
        return error
    return None


def validate_transition(request: EmergencyRequest, target: RequestStatus) -> dict | None:
    """Run every guard for moving the request to target."""
    error = check_allowed(request, target)
    if error:
        return error
    if target == RequestStatus.SUBMITTED:
        return check_submittable(request)
    return None


# --- Transition ---------------------------------------------------------------

def require_transition(request: EmergencyRequest, target: RequestStatus) -> None:
    """Raise the typed error if target is not reachable now. Never mutates."""
    error = validate_transition(request, target)
    if error:
        context = ErrorContext(request_id=str(request.id), status=request.status.value)
        if error["error_code"] == "VALIDATION_ERROR":
            raise ValidationError(error["message"], error.get("fields"), context)
        raise InvalidTransitionError(request.status.value, target.value, context)


def advance(
    request: EmergencyRequest,
    target: RequestStatus,
    now: datetime | None = None,
) -> EmergencyRequest:
    """Apply one guarded transition in place. Raises on rejection, state unchanged."""
    require_transition(request, target)
    request.status = target
    if target in TERMINAL_STATES:
        request.closed_at = now or datetime.now(timezone.utc)
    return request


def record_matches(request: EmergencyRequest, matches: list[Match]) -> EmergencyRequest:
    """submitted -> matched, keeping the ranked list (possibly empty)."""
    advance(request, RequestStatus.MATCHED)
    request.matches = list(matches)
    return request


def record_broadcast(request: EmergencyRequest) -> EmergencyRequest:
    """matched -> broadcasted, or an idempotent re-broadcast."""
    advance(request, RequestStatus.BROADCASTED)
    request.broadcast_count += 1
    return request


# --- Helper -------------------------------------------------------------------

def _error(code: str, message: str) -> dict:
    return {
        "status": "error",
        "error_code": code,
        "message": message,
    }
