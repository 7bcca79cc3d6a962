"""Admin session schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class AdminLoginRequest(BaseModel):
    """Back office login credentials."""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AdminContext(BaseModel):
    """
    Authorization context for one admin session.

    Passed explicitly to every mutating appointment operation.
    """

    session_id: UUID
    email: str
    name: str
    expires_at: datetime


class AdminSessionResponse(BaseModel):
    """Issued session token."""

    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    email: str
    name: str
