"""Initial schema — donors, emergency_requests, request_matches.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "donors",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("age", sa.Integer, nullable=True),
        sa.Column("blood_group", sa.String(3), nullable=False),
        sa.Column("phone_number", sa.String(20), nullable=False),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("office_latitude", sa.Float, nullable=True),
        sa.Column("office_longitude", sa.Float, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("consent_timestamp", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_donors_active_blood_group", "donors", ["is_active", "blood_group"],
    )

    op.create_table(
        "emergency_requests",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("patient_name", sa.String(100), nullable=False),
        sa.Column("blood_group", sa.String(3), nullable=False),
        sa.Column("units_needed", sa.Integer, nullable=False),
        sa.Column("hospital_name", sa.String(150), nullable=False),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("attendant_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("contact_number", sa.String(20), nullable=False),
        sa.Column("request_proof_url", sa.Text, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="submitted"),
        sa.Column("broadcast_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_emergency_requests_status", "emergency_requests", ["status"],
    )

    op.create_table(
        "request_matches",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "request_id", UUID(as_uuid=True),
            sa.ForeignKey("emergency_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("donor_id", UUID(as_uuid=True), sa.ForeignKey("donors.id"), nullable=False),
        sa.Column("distance_km", sa.Float, nullable=False),
        sa.Column("rank", sa.Integer, nullable=False),
        sa.UniqueConstraint("request_id", "rank", name="uq_request_matches_rank"),
    )


def downgrade() -> None:
    op.drop_table("request_matches")
    op.drop_index("ix_emergency_requests_status", table_name="emergency_requests")
    op.drop_table("emergency_requests")
    op.drop_index("ix_donors_active_blood_group", table_name="donors")
    op.drop_table("donors")
