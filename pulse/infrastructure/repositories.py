"""SQL Repositories — async SQLAlchemy implementations of the core repository protocols.

Invariants:
    - Every write commits before returning; a failed write rolls back
    - SQLAlchemy failures surface as DatabaseError (a StorageError)
    - ORM rows never leave this module; callers get core dataclasses

Design Decisions:
    - Mapping functions (_to_donor, _to_request) kept beside the queries that need them
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pulse.core.domain_types import (
    BloodGroup, DonorId, GeoPoint, RequestId, RequestStatus,
)
from pulse.core.donor import Donor
from pulse.core.errors import DatabaseError, ErrorContext
from pulse.core.matching_engine import Match
from pulse.core.request_lifecycle import EmergencyRequest
from pulse.models.donor import Donor as DonorModel
from pulse.models.emergency_request import EmergencyRequest as RequestModel
from pulse.models.request_match import RequestMatch as MatchModel

logger = logging.getLogger(__name__)


class _SqlRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def _writing(self, operation: str, context: ErrorContext | None = None) -> AsyncIterator[None]:
        try:
            yield
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"DB {operation} failed: {e}")
            raise DatabaseError(str(e.__class__.__name__), operation, context) from e


class SqlDonorRepository(_SqlRepository):
    """Donor persistence."""

    async def add(self, donor: Donor) -> None:
        async with self._writing("insert donor", ErrorContext(donor_id=str(donor.id))):
            self.db.add(DonorModel(
                id=donor.id,
                name=donor.name,
                age=donor.age,
                blood_group=donor.blood_group.value,
                phone_number=donor.phone,
                latitude=donor.home.lat,
                longitude=donor.home.lng,
                office_latitude=donor.office.lat if donor.office else None,
                office_longitude=donor.office.lng if donor.office else None,
                is_active=donor.active,
                consent_timestamp=donor.consent_at,
                created_at=donor.created_at,
            ))

    async def set_active(self, donor_id: DonorId, active: bool) -> None:
        async with self._writing("update donor", ErrorContext(donor_id=str(donor_id))):
            await self.db.execute(
                update(DonorModel)
                .where(DonorModel.id == donor_id)
                .values(is_active=active),
            )

    async def get(self, donor_id: DonorId) -> Donor | None:
        row = await self.db.get(DonorModel, donor_id)
        return _to_donor(row) if row else None

    async def list_active(self) -> list[Donor]:
        result = await self.db.execute(
            select(DonorModel).where(DonorModel.is_active.is_(True)),
        )
        return [_to_donor(row) for row in result.scalars().all()]


class SqlRequestRepository(_SqlRepository):
    """Emergency request persistence, including the match audit trail."""

    async def add(self, request: EmergencyRequest) -> None:
        context = ErrorContext(request_id=str(request.id))
        async with self._writing("insert request", context):
            self.db.add(RequestModel(
                id=request.id,
                patient_name=request.patient_name,
                blood_group=request.blood_group.value,
                units_needed=request.units_needed,
                hospital_name=request.hospital_name,
                latitude=request.hospital_location.lat,
                longitude=request.hospital_location.lng,
                attendant_name=request.attendant_name,
                contact_number=request.attendant_contact,
                request_proof_url=request.proof_reference,
                status=request.status.value,
                broadcast_count=request.broadcast_count,
                created_at=request.created_at,
            ))

    async def save_state(self, request: EmergencyRequest) -> None:
        context = ErrorContext(request_id=str(request.id), status=request.status.value)
        async with self._writing("update request", context):
            await self.db.execute(
                update(RequestModel)
                .where(RequestModel.id == request.id)
                .values(
                    status=request.status.value,
                    broadcast_count=request.broadcast_count,
                    closed_at=request.closed_at,
                ),
            )

    async def save_matched(self, request: EmergencyRequest, matches: list[Match]) -> None:
        """Replace the match audit rows and record the new status in one transaction."""
        context = ErrorContext(request_id=str(request.id), status=request.status.value)
        async with self._writing("record matches", context):
            await self.db.execute(
                delete(MatchModel).where(MatchModel.request_id == request.id),
            )
            for m in matches:
                self.db.add(MatchModel(
                    request_id=request.id,
                    donor_id=m.donor.id,
                    distance_km=m.distance_km,
                    rank=m.rank,
                ))
            await self.db.execute(
                update(RequestModel)
                .where(RequestModel.id == request.id)
                .values(status=request.status.value),
            )

    async def get(self, request_id: RequestId) -> EmergencyRequest | None:
        result = await self.db.execute(
            select(RequestModel)
            .where(RequestModel.id == request_id)
            .execution_options(populate_existing=True),
        )
        row = result.scalar_one_or_none()
        return _to_request(row) if row else None

    async def list_by_status(self, status: str) -> list[EmergencyRequest]:
        result = await self.db.execute(
            select(RequestModel)
            .where(RequestModel.status == status)
            .order_by(RequestModel.created_at)
            .execution_options(populate_existing=True),
        )
        return [_to_request(row) for row in result.scalars().all()]


# --- Mapping ------------------------------------------------------------------

def _aware(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo on DateTime(timezone=True); stored values are UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_donor(row: DonorModel) -> Donor:
    office = None
    if row.office_latitude is not None and row.office_longitude is not None:
        office = GeoPoint(row.office_latitude, row.office_longitude)
    return Donor(
        id=DonorId(row.id),
        name=row.name,
        blood_group=BloodGroup(row.blood_group),
        phone=row.phone_number,
        home=GeoPoint(row.latitude, row.longitude),
        office=office,
        active=row.is_active,
        age=row.age,
        consent_at=_aware(row.consent_timestamp),
        created_at=_aware(row.created_at),
    )


def _to_request(row: RequestModel) -> EmergencyRequest:
    request_id = RequestId(row.id)
    return EmergencyRequest(
        id=request_id,
        patient_name=row.patient_name,
        blood_group=BloodGroup(row.blood_group),
        units_needed=row.units_needed,
        hospital_name=row.hospital_name,
        hospital_location=GeoPoint(row.latitude, row.longitude),
        attendant_name=row.attendant_name,
        attendant_contact=row.contact_number,
        proof_reference=row.request_proof_url,
        status=RequestStatus(row.status),
        created_at=_aware(row.created_at),
        closed_at=_aware(row.closed_at),
        broadcast_count=row.broadcast_count,
        matches=[
            Match(request_id, _to_donor(m.donor), m.distance_km, m.rank)
            for m in row.matches
        ],
    )
