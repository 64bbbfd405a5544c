"""Request Pipeline — drives one emergency request from draft to resolution.

Invariants:
    - Drafts live in memory only; nothing is persisted before the proof exists
    - Proof upload succeeds before the request row is written (no submitted
      request references a missing proof)
    - StorageError during upload or insert aborts the attempt; the draft stays a draft
    - MatchError is logged and replaced by an empty match list; the request
      still reaches matched
    - Dispatch failures are reported, never rolled back; re-dispatch is allowed
    - Submit takes the draft out of the drafts dict before the insert (put back
      on StorageError); a second submit of the same draft is a rejected transition
    - Match rows and the matched status are written in one transaction; a retry
      replaces any rows left by an earlier attempt

Design Decisions:
    - Follows read state -> pure check (core.request_lifecycle) -> IO -> record
    - Submission works on a copy of the draft so a failed insert leaves the
      draft exactly as it was
    - Drafts dict injected by the caller (one per process, see api/dependencies.py)
"""

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from pulse.core.domain_types import BloodGroup, GeoPoint, RequestId, RequestStatus
from pulse.core.errors import ErrorContext, MatchError, ResourceNotFoundError, StorageError
from pulse.core.geo import require_valid_point
from pulse.core.matching_engine import Match, MatchingEngine
from pulse.core.repository_protocols import ProofStore, RequestRepository
from pulse.core.request_lifecycle import (
    EmergencyRequest, advance, record_broadcast, record_matches, require_transition,
)
from pulse.services.notification_dispatcher import DispatchReport, NotificationDispatcher

logger = logging.getLogger(__name__)


class RequestPipeline:
    def __init__(
        self,
        repository: RequestRepository,
        proof_store: ProofStore,
        engine: MatchingEngine,
        dispatcher: NotificationDispatcher,
        drafts: dict[RequestId, EmergencyRequest],
        ttl_hours: int = 24,
    ):
        self.repository = repository
        self.proof_store = proof_store
        self.engine = engine
        self.dispatcher = dispatcher
        self.drafts = drafts
        self.ttl = timedelta(hours=ttl_hours)

    # --- Draft --------------------------------------------------------------

    def create_draft(
        self,
        *,
        blood_group: BloodGroup,
        units_needed: int,
        patient_name: str = "",
        hospital_name: str = "",
        hospital_location: GeoPoint | None = None,
        attendant_name: str = "",
        attendant_contact: str = "",
    ) -> EmergencyRequest:
        if hospital_location is not None:
            require_valid_point(hospital_location, "hospital_location")
        draft = EmergencyRequest(
            blood_group=blood_group,
            units_needed=units_needed,
            patient_name=patient_name.strip(),
            hospital_name=hospital_name.strip(),
            hospital_location=hospital_location,
            attendant_name=attendant_name.strip(),
            attendant_contact=attendant_contact.strip(),
        )
        self.drafts[draft.id] = draft
        logger.info("Draft request created", extra={"request_id": str(draft.id)})
        return draft

    def get_draft(self, request_id: RequestId) -> EmergencyRequest:
        draft = self.drafts.get(request_id)
        if draft is None:
            raise ResourceNotFoundError("Draft request", str(request_id))
        return draft

    def abandon_draft(self, request_id: RequestId) -> None:
        """Drop a draft. Any proof already uploaded stays behind as an orphan."""
        self.get_draft(request_id)
        self.drafts.pop(request_id, None)
        logger.info("Draft abandoned", extra={"request_id": str(request_id)})

    async def attach_proof(
        self, request_id: RequestId, filename: str, content: bytes, content_type: str,
    ) -> EmergencyRequest:
        draft = self.get_draft(request_id)
        reference = await self.proof_store.upload(filename, content, content_type)
        draft.proof_reference = reference
        logger.info("Proof attached", extra={"request_id": str(request_id)})
        return draft

    # --- Submit -> Match ----------------------------------------------------

    async def submit(self, request_id: RequestId) -> EmergencyRequest:
        """draft -> submitted (persisted) -> matched."""
        draft = self.drafts.get(request_id)
        if draft is None:
            # No draft: already submitted, or unknown
            require_transition(await self.get(request_id), RequestStatus.SUBMITTED)
        submitted = advance(replace(draft, matches=[]), RequestStatus.SUBMITTED)

        self.drafts.pop(request_id, None)
        try:
            await self.repository.add(submitted)
        except StorageError:
            self.drafts[request_id] = draft
            raise
        logger.info(
            "Request submitted",
            extra={"request_id": str(request_id), "status": submitted.status.value},
        )
        return await self._run_matching(submitted)

    async def rematch(self, request_id: RequestId) -> EmergencyRequest:
        """Retry matching for a request left in submitted."""
        request = await self.get(request_id)
        return await self._run_matching(request)

    async def _run_matching(self, request: EmergencyRequest) -> EmergencyRequest:
        require_transition(request, RequestStatus.MATCHED)
        matches: list[Match] = []
        try:
            matches = self.engine.match(request)
        except MatchError as e:
            logger.warning(
                f"Matching failed, continuing with no matches: {e.message}",
                extra={"request_id": str(request.id), "error_code": e.code},
            )

        record_matches(request, matches)
        await self.repository.save_matched(request, matches)
        logger.info(
            "Request matched",
            extra={"request_id": str(request.id), "match_count": len(matches)},
        )
        return request

    # --- Broadcast ----------------------------------------------------------

    async def dispatch(
        self, request_id: RequestId, broadcast: bool = False,
    ) -> tuple[EmergencyRequest, DispatchReport]:
        """matched -> broadcasted; repeated calls re-broadcast without a state change."""
        request = await self.get(request_id)
        require_transition(request, RequestStatus.BROADCASTED)

        report = await self.dispatcher.dispatch(request, request.matches, broadcast=broadcast)
        record_broadcast(request)
        await self.repository.save_state(request)
        return request, report

    # --- Close --------------------------------------------------------------

    async def resolve(self, request_id: RequestId) -> EmergencyRequest:
        return await self._close(request_id, RequestStatus.RESOLVED)

    async def expire(self, request_id: RequestId) -> EmergencyRequest:
        return await self._close(request_id, RequestStatus.EXPIRED)

    async def _close(self, request_id: RequestId, target: RequestStatus) -> EmergencyRequest:
        request = await self.get(request_id)
        advance(request, target)
        await self.repository.save_state(request)
        logger.info(
            f"Request {target.value}",
            extra={"request_id": str(request_id), "status": target.value},
        )
        return request

    async def expire_stale(self, now: datetime | None = None) -> list[RequestId]:
        """Expire broadcasted requests older than the configured TTL."""
        now = now or datetime.now(timezone.utc)
        cutoff = now - self.ttl
        expired = []
        for request in await self.repository.list_by_status(RequestStatus.BROADCASTED.value):
            if request.created_at > cutoff:
                continue
            advance(request, RequestStatus.EXPIRED, now=now)
            await self.repository.save_state(request)
            expired.append(request.id)
        if expired:
            logger.info(f"Expired {len(expired)} stale request(s)")
        return expired

    # --- Read ---------------------------------------------------------------

    async def get(self, request_id: RequestId) -> EmergencyRequest:
        """Draft or persisted request."""
        draft = self.drafts.get(request_id)
        if draft is not None:
            return draft
        request = await self.repository.get(request_id)
        if request is None:
            raise ResourceNotFoundError(
                "Request", str(request_id), ErrorContext(request_id=str(request_id)),
            )
        return request
