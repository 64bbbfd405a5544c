"""Notification Dispatcher — best-effort emission and failure reporting."""

import pytest

from pulse.core.alert_payloads import AlertKind
from pulse.core.matching_engine import Match
from pulse.services.notification_dispatcher import NotificationDispatcher

from tests.core.helpers import complete_draft, make_donor


@pytest.fixture
def request_with_matches():
    request = complete_draft()
    request.matches = [
        Match(request.id, make_donor(phone=phone), 1.0 + i, i + 1)
        for i, phone in enumerate(["+91 90000 00001", "+91 90000 00002", "+91 90000 00003"])
    ]
    return request


async def test_emits_one_payload_per_match(channel, request_with_matches):
    report = await NotificationDispatcher(channel).dispatch(
        request_with_matches, request_with_matches.matches,
    )

    assert report.emitted == 3
    assert [p.recipient for p in channel.emitted] == [
        "+91 90000 00001", "+91 90000 00002", "+91 90000 00003",
    ]


async def test_failure_does_not_stop_remaining(channel, request_with_matches):
    channel.fail_for = {"+91 90000 00002"}

    report = await NotificationDispatcher(channel).dispatch(
        request_with_matches, request_with_matches.matches,
    )

    assert report.emitted == 2
    assert len(report.payloads) == 3
    assert [f.code for f in report.failures] == ["DISPATCH_ERROR"]
    assert report.failures[0].recipient == "+91 90000 00002"


async def test_broadcast_failure_reported(channel):
    channel.fail_for = {None}

    report = await NotificationDispatcher(channel).dispatch(complete_draft(), [])

    assert report.emitted == 0
    assert report.payloads[0].kind == AlertKind.BROADCAST
    assert len(report.failures) == 1


async def test_custom_deep_link_base(channel, request_with_matches):
    dispatcher = NotificationDispatcher(channel, "https://api.whatsapp.com/send")

    report = await dispatcher.dispatch(
        request_with_matches, request_with_matches.matches, broadcast=True,
    )

    assert report.payloads[0].deep_link.startswith("https://api.whatsapp.com/send/?text=")
