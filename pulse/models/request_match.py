"""RequestMatch ORM — audit row for one ranked donor of one request.

Invariants:
    - (request_id, rank) unique; rank starts at 1 in ascending distance order
    - distance_km is the masked-home-to-hospital distance at match time
"""

import uuid

from sqlalchemy import Float, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from pulse.db.base import Base


class RequestMatch(Base):
    __tablename__ = "request_matches"
    __table_args__ = (
        UniqueConstraint("request_id", "rank", name="uq_request_matches_rank"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    request_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("emergency_requests.id", ondelete="CASCADE"),
        nullable=False,
    )
    donor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("donors.id"), nullable=False,
    )
    distance_km: Mapped[float] = mapped_column(Float, nullable=False)
    rank: Mapped[int] = mapped_column(Integer, nullable=False)

    request: Mapped["EmergencyRequest"] = relationship(
        "EmergencyRequest", back_populates="matches",
    )
    donor: Mapped["Donor"] = relationship("Donor", lazy="selectin")
