"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Async methods: every implementation does IO
"""

from typing import Protocol

from pulse.core.alert_payloads import AlertPayload
from pulse.core.domain_types import DonorId, RequestId
from pulse.core.donor import Donor
from pulse.core.matching_engine import Match
from pulse.core.request_lifecycle import EmergencyRequest


class DonorRepository(Protocol):
    """Contract for donor persistence."""
    async def add(self, donor: Donor) -> None: ...
    async def set_active(self, donor_id: DonorId, active: bool) -> None: ...
    async def get(self, donor_id: DonorId) -> Donor | None: ...
    async def list_active(self) -> list[Donor]: ...


class RequestRepository(Protocol):
    """Contract for emergency request persistence."""
    async def add(self, request: EmergencyRequest) -> None: ...
    async def save_state(self, request: EmergencyRequest) -> None: ...
    async def save_matched(self, request: EmergencyRequest, matches: list[Match]) -> None: ...
    async def get(self, request_id: RequestId) -> EmergencyRequest | None: ...
    async def list_by_status(self, status: str) -> list[EmergencyRequest]: ...


class ProofStore(Protocol):
    """Write-once object store for proof-of-need images."""
    async def upload(self, filename: str, content: bytes, content_type: str) -> str:
        """Store content and return its stable public reference."""
        ...


class MessageChannel(Protocol):
    """One-way outbound channel. emit() returning means handed off, not delivered."""
    async def emit(self, payload: AlertPayload) -> None: ...
