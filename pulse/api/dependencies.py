"""API Dependencies — process-wide runtime and per-request service wiring.

Invariants:
    - One Runtime per process, built on startup by init_runtime()
    - The geo index and the drafts dict are shared by every request
    - Services get a fresh DB session per HTTP request (via get_db)

Design Decisions:
    - Module-level runtime singleton, same pattern as infrastructure.database.db_manager;
      tests replace it wholesale with fakes
    - Drafts are in-memory: single-process uvicorn, drafts lost on restart
"""

import random
from dataclasses import dataclass, field

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pulse.config import Settings
from pulse.core.domain_types import RequestId
from pulse.core.geo_index import GeoIndex, build_geo_index
from pulse.core.location_masker import LocationPrivacyMasker
from pulse.core.matching_engine import MatchingEngine
from pulse.core.repository_protocols import MessageChannel, ProofStore
from pulse.core.request_lifecycle import EmergencyRequest
from pulse.infrastructure.database import get_db
from pulse.infrastructure.message_channels import DeepLinkChannel, WebhookChannel
from pulse.infrastructure.proof_store import HttpProofStore, LocalProofStore
from pulse.infrastructure.repositories import SqlDonorRepository, SqlRequestRepository
from pulse.services.donor_registry import DonorRegistry
from pulse.services.notification_dispatcher import NotificationDispatcher
from pulse.services.request_pipeline import RequestPipeline


@dataclass
class Runtime:
    settings: Settings
    index: GeoIndex
    masker: LocationPrivacyMasker
    proof_store: ProofStore
    channel: MessageChannel
    drafts: dict[RequestId, EmergencyRequest] = field(default_factory=dict)

    async def aclose(self) -> None:
        for resource in (self.proof_store, self.channel):
            aclose = getattr(resource, "aclose", None)
            if aclose is not None:
                await aclose()


runtime: Runtime | None = None


def build_proof_store(settings: Settings) -> ProofStore:
    if settings.proof_store_backend == "http":
        return HttpProofStore(
            settings.object_storage_url,
            settings.object_storage_key,
            settings.object_storage_bucket,
        )
    return LocalProofStore(settings.proof_store_dir, settings.proof_public_base_url)


def build_message_channel(settings: Settings) -> MessageChannel:
    if settings.message_channel == "webhook":
        return WebhookChannel(settings.webhook_url, settings.webhook_timeout_seconds)
    return DeepLinkChannel()


def init_runtime(settings: Settings) -> Runtime:
    global runtime
    runtime = Runtime(
        settings=settings,
        index=build_geo_index(
            settings.geo_index_backend,
            settings.location_strategy,
            settings.geo_index_cell_km,
        ),
        masker=LocationPrivacyMasker(settings.jitter_degrees, random.Random()),
        proof_store=build_proof_store(settings),
        channel=build_message_channel(settings),
    )
    return runtime


def get_runtime() -> Runtime:
    if not runtime:
        raise RuntimeError("Runtime not initialized")
    return runtime


def get_matching_engine(rt: Runtime = Depends(get_runtime)) -> MatchingEngine:
    return MatchingEngine(rt.index, rt.settings.match_radius_km)


def get_donor_registry(
    rt: Runtime = Depends(get_runtime), db: AsyncSession = Depends(get_db),
) -> DonorRegistry:
    return DonorRegistry(SqlDonorRepository(db), rt.index, rt.masker)


def get_request_pipeline(
    rt: Runtime = Depends(get_runtime),
    engine: MatchingEngine = Depends(get_matching_engine),
    db: AsyncSession = Depends(get_db),
) -> RequestPipeline:
    return RequestPipeline(
        repository=SqlRequestRepository(db),
        proof_store=rt.proof_store,
        engine=engine,
        dispatcher=NotificationDispatcher(rt.channel, rt.settings.deep_link_base),
        drafts=rt.drafts,
        ttl_hours=rt.settings.request_ttl_hours,
    )
