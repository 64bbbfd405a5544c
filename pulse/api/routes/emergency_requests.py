"""Emergency Request Routes — draft, proof, submit, dispatch, resolve, expire.

Invariants:
    - Proof upload must precede submit; submit runs matching in the same call
    - Dispatch responses always include the emitted alerts and any delivery errors
    - Routes hold no lifecycle logic; RequestPipeline does

Design Decisions:
    - Proof accepted as multipart upload (images or PDF), capped by proof_max_bytes
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile, status

from pulse.api.dependencies import Runtime, get_request_pipeline, get_runtime
from pulse.core.domain_types import GeoPoint, RequestId
from pulse.core.errors import ValidationError
from pulse.schemas.emergency_request import (
    DispatchRequest, DispatchResponse, ExpiredBatch, RequestCreate, RequestResponse,
)
from pulse.services.request_pipeline import RequestPipeline

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/requests", tags=["requests"])

ALLOWED_PROOF_TYPES = ("image/", "application/pdf")


@router.post(
    "", response_model=RequestResponse, status_code=status.HTTP_201_CREATED,
)
async def create_request(
    body: RequestCreate, pipeline: RequestPipeline = Depends(get_request_pipeline),
):
    """Open a draft. Nothing is persisted until submit."""
    location = GeoPoint(body.lat, body.lng) if body.lat is not None else None
    draft = pipeline.create_draft(
        blood_group=body.blood_group,
        units_needed=body.units_needed,
        patient_name=body.patient_name,
        hospital_name=body.hospital_name,
        hospital_location=location,
        attendant_name=body.attendant_name,
        attendant_contact=body.attendant_contact,
    )
    return RequestResponse.from_domain(draft)


@router.put("/{request_id}/proof", response_model=RequestResponse)
async def upload_proof(
    request_id: UUID,
    file: UploadFile = File(...),
    pipeline: RequestPipeline = Depends(get_request_pipeline),
    rt: Runtime = Depends(get_runtime),
):
    content_type = file.content_type or "application/octet-stream"
    if not content_type.startswith(ALLOWED_PROOF_TYPES):
        raise ValidationError(
            f"Unsupported proof type '{content_type}'", fields=["file"],
        )
    content = await file.read()
    if not content:
        raise ValidationError("Proof file is empty", fields=["file"])
    if len(content) > rt.settings.proof_max_bytes:
        raise ValidationError("Proof file too large", fields=["file"])

    draft = await pipeline.attach_proof(
        RequestId(request_id), file.filename or "proof", content, content_type,
    )
    return RequestResponse.from_domain(draft)


@router.post("/{request_id}/submit", response_model=RequestResponse)
async def submit_request(
    request_id: UUID, pipeline: RequestPipeline = Depends(get_request_pipeline),
):
    """Persist the draft and run matching. Zero matches is a normal outcome."""
    return RequestResponse.from_domain(await pipeline.submit(RequestId(request_id)))


@router.post("/{request_id}/match", response_model=RequestResponse)
async def rematch_request(
    request_id: UUID, pipeline: RequestPipeline = Depends(get_request_pipeline),
):
    return RequestResponse.from_domain(await pipeline.rematch(RequestId(request_id)))


@router.post("/{request_id}/dispatch", response_model=DispatchResponse)
async def dispatch_request(
    request_id: UUID,
    body: DispatchRequest | None = None,
    pipeline: RequestPipeline = Depends(get_request_pipeline),
):
    broadcast = body.broadcast if body else False
    request, report = await pipeline.dispatch(RequestId(request_id), broadcast=broadcast)
    return DispatchResponse.from_domain(request, report)


@router.post("/{request_id}/resolve", response_model=RequestResponse)
async def resolve_request(
    request_id: UUID, pipeline: RequestPipeline = Depends(get_request_pipeline),
):
    return RequestResponse.from_domain(await pipeline.resolve(RequestId(request_id)))


@router.post("/{request_id}/expire", response_model=RequestResponse)
async def expire_request(
    request_id: UUID, pipeline: RequestPipeline = Depends(get_request_pipeline),
):
    return RequestResponse.from_domain(await pipeline.expire(RequestId(request_id)))


@router.get("/{request_id}", response_model=RequestResponse)
async def get_request(
    request_id: UUID, pipeline: RequestPipeline = Depends(get_request_pipeline),
):
    return RequestResponse.from_domain(await pipeline.get(RequestId(request_id)))


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def abandon_request(
    request_id: UUID, pipeline: RequestPipeline = Depends(get_request_pipeline),
):
    """Abandon a draft. Uploaded proofs are left for external cleanup."""
    pipeline.abandon_draft(RequestId(request_id))


@router.post("/expire-stale", response_model=ExpiredBatch)
async def expire_stale_requests(
    pipeline: RequestPipeline = Depends(get_request_pipeline),
):
    """Expire broadcasted requests older than request_ttl_hours."""
    return ExpiredBatch(expired=await pipeline.expire_stale())
