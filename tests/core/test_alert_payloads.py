"""Alert payload tests — directed vs broadcast payloads and deep links."""

from urllib.parse import unquote

import pytest

from pulse.core.alert_payloads import (
    AlertKind, BROADCAST_CLOSING, DIRECTED_CLOSING, build_alert_payloads,
    build_deep_link, normalize_phone, render_alert_text,
)
from pulse.core.matching_engine import Match

from tests.core.helpers import complete_draft, make_donor


def _matches(request, phones):
    return [
        Match(request.id, make_donor(phone=phone), 1.0 + i, i + 1)
        for i, phone in enumerate(phones)
    ]


def test_text_carries_every_request_detail():
    request = complete_draft()
    text = render_alert_text(request)

    assert "O+ (2 Units)" in text
    assert "St. John's Hospital" in text
    assert "Asha Rao" in text
    assert "Ravi Rao (+91 90000 11111)" in text
    assert request.proof_reference in text
    assert text.endswith(DIRECTED_CLOSING)


def test_broadcast_text_asks_to_forward():
    assert render_alert_text(complete_draft(), directed=False).endswith(BROADCAST_CLOSING)


def test_one_directed_payload_per_match():
    request = complete_draft()
    matches = _matches(request, ["+91 98765 43210", "+91 91234 56789"])

    payloads = build_alert_payloads(request, matches)

    assert [p.kind for p in payloads] == [AlertKind.DIRECTED, AlertKind.DIRECTED]
    assert [p.recipient for p in payloads] == ["+91 98765 43210", "+91 91234 56789"]
    assert [p.donor_id for p in payloads] == [str(m.donor.id) for m in matches]
    assert payloads[0].deep_link.startswith("https://wa.me/919876543210?text=")
    assert payloads[1].distance_km == 2.0


def test_no_matches_falls_back_to_broadcast():
    payloads = build_alert_payloads(complete_draft(), [])

    assert len(payloads) == 1
    assert payloads[0].kind == AlertKind.BROADCAST
    assert payloads[0].recipient is None
    assert payloads[0].deep_link.startswith("https://wa.me/?text=")


def test_broadcast_flag_collapses_matches():
    request = complete_draft()
    payloads = build_alert_payloads(request, _matches(request, ["1", "2", "3"]), broadcast=True)
    assert len(payloads) == 1
    assert payloads[0].kind == AlertKind.BROADCAST


def test_deep_link_encodes_full_text():
    text = render_alert_text(complete_draft())
    link = build_deep_link(text, "+1 (555) 010-9999")
    prefix = "https://wa.me/15550109999?text="
    assert link.startswith(prefix)
    assert unquote(link[len(prefix):]) == text
    assert " " not in link and "\n" not in link


def test_custom_deep_link_base():
    link = build_deep_link("hi", "123", base="https://api.whatsapp.com/send/")
    assert link == "https://api.whatsapp.com/send/123?text=hi"


@pytest.mark.parametrize("raw,digits", [
    ("+91 98765 43210", "919876543210"),
    ("(555) 010-9999", "5550109999"),
    ("0044-20-7946-0000", "00442079460000"),
])
def test_normalize_phone(raw, digits):
    assert normalize_phone(raw) == digits
