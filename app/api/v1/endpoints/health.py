"""Health check endpoints."""

from datetime import date

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.config import settings
from app.core.clock import clinic_today
from app.database import check_database_connection

router = APIRouter()


class HealthResponse(BaseModel):
    """Liveness response."""

    status: str
    version: str
    environment: str


class DetailedHealthResponse(HealthResponse):
    """Readiness response including the record store."""

    database: str
    clinic_timezone: str
    clinic_today: date


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Liveness check",
)
async def health_check() -> HealthResponse:
    """Report that the process is up; does not touch the database."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    tags=["Health"],
    summary="Readiness check",
    responses={503: {"model": DetailedHealthResponse}},
)
async def detailed_health_check() -> JSONResponse:
    """
    Check the record store and report the clinic's current date.

    Returns:
        200 when the database answers, 503 otherwise
    """
    db_healthy = await check_database_connection()
    body = DetailedHealthResponse(
        status="healthy" if db_healthy else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database="healthy" if db_healthy else "unhealthy",
        clinic_timezone=settings.clinic_timezone,
        clinic_today=clinic_today(),
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if db_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(mode="json"),
    )


@router.get("/ping", tags=["Health"], summary="Simple ping")
async def ping() -> dict[str, str]:
    """Return pong."""
    return {"message": "pong"}
