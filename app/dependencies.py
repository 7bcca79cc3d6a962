"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import UnauthorizedException
from app.database import get_db
from app.schemas.admin import AdminContext
from app.services.admin_auth_service import AdminAuthService
from app.services.appointment_service import AppointmentService

# Security
security = HTTPBearer(auto_error=False)


async def get_admin_context(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AdminContext:
    """
    Resolve the bearer token into an admin authorization context.

    Args:
        credentials: Bearer token credentials
        db: Database session

    Returns:
        Context for the signed-in admin

    Raises:
        HTTPException: If the token is missing, invalid or expired
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return await AdminAuthService(db).validate(credentials.credentials)
    except UnauthorizedException as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_appointment_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AppointmentService:
    """Build the appointment service for the request's session."""
    return AppointmentService(db)


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentAdmin = Annotated[AdminContext, Depends(get_admin_context)]
Appointments = Annotated[AppointmentService, Depends(get_appointment_service)]
