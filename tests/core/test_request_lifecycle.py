"""Request lifecycle tests — pure tests for the transition table and guards.

Tests cover:
    - Submission guard: proof, location and patient data required
    - No state skipped; terminal states accept nothing
    - Rejected transitions leave the request untouched
    - Re-broadcast is idempotent apart from the broadcast counter
"""

from datetime import datetime, timezone

import pytest

from pulse.core.domain_types import GeoPoint, RequestStatus
from pulse.core.errors import InvalidTransitionError, ValidationError
from pulse.core.request_lifecycle import (
    TERMINAL_STATES, TRANSITIONS, advance, check_allowed, record_broadcast,
    record_matches, require_transition, validate_transition,
)

from tests.core.helpers import complete_draft

ORDER = [
    RequestStatus.DRAFT,
    RequestStatus.SUBMITTED,
    RequestStatus.MATCHED,
    RequestStatus.BROADCASTED,
]


def _at(status: RequestStatus):
    request = complete_draft()
    request.status = status
    return request


# --- Submission guard ---------------------------------------------------------

def test_complete_draft_submits():
    request = advance(complete_draft(), RequestStatus.SUBMITTED)
    assert request.status == RequestStatus.SUBMITTED


def test_submit_without_proof_rejected():
    request = complete_draft(proof_reference=None)
    with pytest.raises(ValidationError) as exc:
        advance(request, RequestStatus.SUBMITTED)
    assert exc.value.fields == ["proof_reference"]
    assert request.status == RequestStatus.DRAFT


def test_submit_without_location_rejected():
    request = complete_draft(hospital_location=None)
    with pytest.raises(ValidationError) as exc:
        advance(request, RequestStatus.SUBMITTED)
    assert "hospital_location" in exc.value.fields
    assert request.status == RequestStatus.DRAFT


def test_submit_reports_every_missing_field():
    request = complete_draft(patient_name=" ", attendant_contact="", units_needed=0)
    error = validate_transition(request, RequestStatus.SUBMITTED)
    assert error["error_code"] == "VALIDATION_ERROR"
    assert error["fields"] == ["patient_name", "attendant_contact", "units_needed"]


def test_submit_with_out_of_range_location_rejected():
    request = complete_draft(hospital_location=GeoPoint(95.0, 0.0))
    with pytest.raises(ValidationError) as exc:
        advance(request, RequestStatus.SUBMITTED)
    assert exc.value.fields == ["hospital_location"]


def test_submit_only_once():
    request = advance(complete_draft(), RequestStatus.SUBMITTED)
    with pytest.raises(InvalidTransitionError):
        advance(request, RequestStatus.SUBMITTED)


# --- Transition table ---------------------------------------------------------

@pytest.mark.parametrize("current", ORDER[:-1])
def test_no_state_skipped(current):
    successor = ORDER[ORDER.index(current) + 1]
    assert TRANSITIONS[current] == {successor}


@pytest.mark.parametrize("status", sorted(TERMINAL_STATES, key=lambda s: s.value))
@pytest.mark.parametrize("target", list(RequestStatus))
def test_terminal_states_accept_nothing(status, target):
    request = _at(status)
    with pytest.raises(InvalidTransitionError):
        advance(request, target)
    assert request.status == status


@pytest.mark.parametrize("target", [
    RequestStatus.MATCHED, RequestStatus.BROADCASTED, RequestStatus.RESOLVED,
])
def test_draft_cannot_jump_ahead(target):
    request = complete_draft()
    with pytest.raises(InvalidTransitionError) as exc:
        advance(request, target)
    assert exc.value.http_status == 409
    assert request.status == RequestStatus.DRAFT


def test_matched_cannot_close_directly():
    request = _at(RequestStatus.MATCHED)
    for target in (RequestStatus.RESOLVED, RequestStatus.EXPIRED):
        with pytest.raises(InvalidTransitionError):
            advance(request, target)
    assert request.closed_at is None


def test_checks_are_pure():
    request = complete_draft(proof_reference=None)
    before = (request.status, request.proof_reference, request.closed_at)

    assert check_allowed(request, RequestStatus.MATCHED)["error_code"] == "INVALID_TRANSITION"
    assert validate_transition(request, RequestStatus.SUBMITTED) is not None
    with pytest.raises(ValidationError):
        require_transition(request, RequestStatus.SUBMITTED)

    assert (request.status, request.proof_reference, request.closed_at) == before


# --- Matching / broadcast / close ---------------------------------------------

def test_empty_match_list_still_matched():
    request = record_matches(_at(RequestStatus.SUBMITTED), [])
    assert request.status == RequestStatus.MATCHED
    assert request.matches == []


def test_rebroadcast_is_idempotent():
    request = record_broadcast(_at(RequestStatus.MATCHED))
    assert request.status == RequestStatus.BROADCASTED
    assert request.broadcast_count == 1

    record_broadcast(request)
    assert request.status == RequestStatus.BROADCASTED
    assert request.broadcast_count == 2


@pytest.mark.parametrize("target", [RequestStatus.RESOLVED, RequestStatus.EXPIRED])
def test_close_sets_closed_at(target):
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    request = advance(_at(RequestStatus.BROADCASTED), target, now=now)
    assert request.status == target
    assert request.is_terminal
    assert request.closed_at == now


def test_full_walk():
    request = complete_draft()
    advance(request, RequestStatus.SUBMITTED)
    record_matches(request, [])
    record_broadcast(request)
    advance(request, RequestStatus.RESOLVED)
    assert request.status == RequestStatus.RESOLVED
