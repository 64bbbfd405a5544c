"""Notification Dispatcher — emits alert payloads over a one-way message channel.

Invariants:
    - Best-effort: no acknowledgement, no retry, no delivery confirmation
    - A failing payload never stops the remaining ones
    - Channel failures are returned in the report and logged, never raised
    - Lifecycle state is not touched here (request_pipeline records the broadcast)
"""

import logging
from dataclasses import dataclass, field

from pulse.core.alert_payloads import (
    AlertPayload, DEFAULT_DEEP_LINK_BASE, build_alert_payloads,
)
from pulse.core.errors import DispatchError, ErrorContext
from pulse.core.matching_engine import Match
from pulse.core.repository_protocols import MessageChannel
from pulse.core.request_lifecycle import EmergencyRequest

logger = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    payloads: list[AlertPayload] = field(default_factory=list)
    failures: list[DispatchError] = field(default_factory=list)

    @property
    def emitted(self) -> int:
        return len(self.payloads) - len(self.failures)


class NotificationDispatcher:
    def __init__(
        self, channel: MessageChannel, deep_link_base: str = DEFAULT_DEEP_LINK_BASE,
    ):
        self.channel = channel
        self.deep_link_base = deep_link_base

    async def dispatch(
        self,
        request: EmergencyRequest,
        matches: list[Match],
        broadcast: bool = False,
    ) -> DispatchReport:
        payloads = build_alert_payloads(
            request, matches, broadcast=broadcast, deep_link_base=self.deep_link_base,
        )
        report = DispatchReport(payloads=payloads)
        for payload in payloads:
            try:
                await self.channel.emit(payload)
            except DispatchError as e:
                e.context = ErrorContext(request_id=str(request.id), donor_id=payload.donor_id)
                report.failures.append(e)
                logger.warning(
                    f"Alert emit failed: {e.message}",
                    extra={
                        "request_id": str(request.id),
                        "recipient": payload.recipient,
                        "error_code": e.code,
                    },
                )
        logger.info(
            f"Dispatched {report.emitted}/{len(payloads)} alert(s)",
            extra={"request_id": str(request.id)},
        )
        return report
