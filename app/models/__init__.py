"""Database models."""

from app.models.admin_sessions import admin_sessions
from app.models.appointments import appointments

__all__ = [
    "admin_sessions",
    "appointments",
]
