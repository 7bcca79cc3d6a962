"""Admin sessions table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import Column, DateTime, Index, MetaData, Table, Text, Uuid, func

metadata = MetaData()

# One row per signed-in back office session; removed on logout or expiry
admin_sessions = Table(
    "admin_sessions",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("admin_email", Text, nullable=False),
    Column("admin_name", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("expires_at", DateTime(timezone=True), nullable=False),
)

Index("ix_admin_sessions_expires_at", admin_sessions.c.expires_at)
