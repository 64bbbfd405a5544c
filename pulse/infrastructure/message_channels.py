"""Message Channels — one-way outbound emitters for alert payloads.

Invariants:
    - emit() returning means the payload was handed off, never that it was delivered
    - No retries, no acknowledgements
    - Transport failures raise DispatchError

Design Decisions:
    - DeepLinkChannel only logs: the caller opens the returned deep links itself
    - WebhookChannel POSTs the payload JSON through httpx and ignores the response body
"""

import logging
from dataclasses import asdict

import httpx

from pulse.core.alert_payloads import AlertPayload
from pulse.core.errors import DispatchError

logger = logging.getLogger(__name__)


class DeepLinkChannel:
    async def emit(self, payload: AlertPayload) -> None:
        logger.info(
            f"Alert link ready ({payload.kind.value})",
            extra={"recipient": payload.recipient, "donor_id": payload.donor_id},
        )


class WebhookChannel:
    """Forwards payloads to an HTTP endpoint (e.g. a messaging gateway)."""

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def emit(self, payload: AlertPayload) -> None:
        body = {**asdict(payload), "kind": payload.kind.value}
        try:
            response = await self._client.post(self.url, json=body)
        except httpx.HTTPError as e:
            raise DispatchError(str(e), recipient=payload.recipient) from e
        if response.status_code >= 500:
            raise DispatchError(
                f"HTTP {response.status_code}", recipient=payload.recipient,
            )

    async def aclose(self) -> None:
        await self._client.aclose()
