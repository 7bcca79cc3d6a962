"""Appointments table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Index,
    MetaData,
    String,
    Table,
    Text,
    Uuid,
    func,
)

from app.schemas.appointments import ACTIVE_STATUSES, AppointmentStatus

# Metadata for all tables
metadata = MetaData()

# Statuses that hold a slot, in a stable order for the index DDL
ACTIVE_STATUS_VALUES = sorted(status.value for status in ACTIVE_STATUSES)
STATUS_VALUES = ", ".join(f"'{status.value}'" for status in AppointmentStatus)

# Appointments table
appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Patient identity
    Column("name", Text, nullable=False),
    Column("phone", String(32), nullable=False),
    Column("email", Text, nullable=False),
    Column("national_id", String(32), nullable=False),
    # Booking details
    Column("service", Text, nullable=False),
    Column("preferred_date", Date, nullable=False),
    Column("preferred_time", String(5), nullable=False),
    Column("message", Text, nullable=True),
    # Status management
    Column("status", String(16), nullable=False, server_default="pending"),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    # Constraints
    CheckConstraint(
        f"status IN ({STATUS_VALUES})",
        name="appointments_status_check",
    ),
    CheckConstraint("updated_at >= created_at", name="appointments_updated_after_created"),
)

Index(
    "uq_appointments_active_slot",
    appointments.c.preferred_date,
    appointments.c.preferred_time,
    unique=True,
    postgresql_where=appointments.c.status.in_(ACTIVE_STATUS_VALUES),
    sqlite_where=appointments.c.status.in_(ACTIVE_STATUS_VALUES),
)
Index("ix_appointments_status_created", appointments.c.status, appointments.c.created_at)
Index(
    "ix_appointments_patient_lookup",
    appointments.c.name,
    appointments.c.phone,
    appointments.c.national_id,
)
