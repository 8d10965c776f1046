"""create_clients_and_consultations

Revision ID: 3f1b9c2d7a40
Revises:
Create Date: 2026-10-12 14:03:51.208113

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1b9c2d7a40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

consultation_status = postgresql.ENUM(
    "photo_uploaded",
    "preview_generated",
    "awaiting_approval",
    "approved",
    "revision_requested",
    "cancelled",
    name="consultation_status",
    create_type=False,
)
preview_status = postgresql.ENUM(
    "idle",
    "generating",
    "done",
    "failed",
    name="preview_status",
    create_type=False,
)


def upgrade() -> None:
    """Create clients and consultations tables."""
    consultation_status.create(op.get_bind(), checkfirst=True)
    preview_status.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "clients",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("stylist_id", sa.Uuid(), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_clients_stylist_id"), "clients", ["stylist_id"], unique=False)

    op.create_table(
        "consultations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("stylist_id", sa.Uuid(), nullable=False),
        sa.Column("client_id", sa.Uuid(), nullable=False),
        sa.Column("status", consultation_status, nullable=False),
        # Intake answers
        sa.Column("service_type", sa.String(length=50), nullable=True),
        sa.Column("hair_texture", sa.String(length=50), nullable=True),
        sa.Column("desired_length", sa.String(length=50), nullable=True),
        sa.Column("face_shape", sa.String(length=50), nullable=True),
        sa.Column("maintenance_level", sa.String(length=50), nullable=True),
        sa.Column("lifestyle", sa.String(length=50), nullable=True),
        sa.Column("inspiration_notes", sa.String(), nullable=True),
        sa.Column("estimated_price", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("appointment_date", sa.DateTime(), nullable=True),
        # Written by the generate-preview-image edge function
        sa.Column("original_image_url", sa.String(), nullable=True),
        sa.Column("preview_image_url", sa.String(), nullable=True),
        sa.Column("preview_status", preview_status, nullable=False, server_default="idle"),
        sa.Column("preview_generated_at", sa.DateTime(), nullable=True),
        # Written by the generate-recommendation edge function
        sa.Column("ai_recommendation", sa.String(), nullable=True),
        sa.Column("ai_generated_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_consultations_stylist_id"), "consultations", ["stylist_id"], unique=False
    )
    op.create_index(
        op.f("ix_consultations_client_id"), "consultations", ["client_id"], unique=False
    )
    op.create_index(op.f("ix_consultations_status"), "consultations", ["status"], unique=False)
    op.create_index(
        op.f("ix_consultations_appointment_date"),
        "consultations",
        ["appointment_date"],
        unique=False,
    )


def downgrade() -> None:
    """Drop clients and consultations tables."""
    op.drop_index(op.f("ix_consultations_appointment_date"), table_name="consultations")
    op.drop_index(op.f("ix_consultations_status"), table_name="consultations")
    op.drop_index(op.f("ix_consultations_client_id"), table_name="consultations")
    op.drop_index(op.f("ix_consultations_stylist_id"), table_name="consultations")
    op.drop_table("consultations")
    op.drop_index(op.f("ix_clients_stylist_id"), table_name="clients")
    op.drop_table("clients")

    preview_status.drop(op.get_bind(), checkfirst=True)
    consultation_status.drop(op.get_bind(), checkfirst=True)
