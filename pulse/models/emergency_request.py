"""EmergencyRequest ORM — persisted once the proof is uploaded (status >= submitted).

Invariants:
    - latitude/longitude are the exact hospital coordinate
    - request_proof_url is non-nullable: no stored request lacks a proof
    - status mirrors core RequestStatus values
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from pulse.db.base import Base


class EmergencyRequest(Base):
    __tablename__ = "emergency_requests"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    patient_name: Mapped[str] = mapped_column(String(100), nullable=False)
    blood_group: Mapped[str] = mapped_column(String(3), nullable=False)
    units_needed: Mapped[int] = mapped_column(Integer, nullable=False)
    hospital_name: Mapped[str] = mapped_column(String(150), nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    attendant_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    contact_number: Mapped[str] = mapped_column(String(20), nullable=False)
    request_proof_url: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="submitted", index=True,
    )
    broadcast_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    matches: Mapped[list["RequestMatch"]] = relationship(
        "RequestMatch", back_populates="request",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="RequestMatch.rank",
    )
