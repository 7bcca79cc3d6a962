"""Initial migration - create appointments table.

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        "appointments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("national_id", sa.String(length=32), nullable=False),
        sa.Column("service", sa.Text(), nullable=False),
        sa.Column("preferred_date", sa.Date(), nullable=False),
        sa.Column("preferred_time", sa.String(length=5), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), server_default="pending", nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'rejected', 'completed', 'deleted')",
            name="appointments_status_check",
        ),
        sa.CheckConstraint("updated_at >= created_at", name="appointments_updated_after_created"),
        sa.PrimaryKeyConstraint("id"),
    )

    # One active booking per slot
    op.create_index(
        "uq_appointments_active_slot",
        "appointments",
        ["preferred_date", "preferred_time"],
        unique=True,
        postgresql_where=sa.text("status IN ('pending', 'confirmed')"),
        sqlite_where=sa.text("status IN ('pending', 'confirmed')"),
    )
    op.create_index(
        "ix_appointments_status_created",
        "appointments",
        ["status", "created_at"],
    )
    op.create_index(
        "ix_appointments_patient_lookup",
        "appointments",
        ["name", "phone", "national_id"],
    )


def downgrade() -> None:
    """Downgrade database schema."""
    # Drop indexes
    op.drop_index("ix_appointments_patient_lookup", table_name="appointments")
    op.drop_index("ix_appointments_status_created", table_name="appointments")
    op.drop_index("uq_appointments_active_slot", table_name="appointments")

    # Drop table
    op.drop_table("appointments")
