"""Donor ORM — registered donors with their masked home coordinate.

Invariants:
    - latitude/longitude hold the masked home point, never the raw one
    - office_latitude/office_longitude are optional and unmasked
    - is_active is the only column mutated after insert
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from pulse.db.base import Base


class Donor(Base):
    __tablename__ = "donors"
    __table_args__ = (
        Index("ix_donors_active_blood_group", "is_active", "blood_group"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    blood_group: Mapped[str] = mapped_column(String(3), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(20), nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    office_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    office_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    consent_timestamp: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
