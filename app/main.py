"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from app.api.v1.router import api_router
from app.config import settings
from app.core.clock import clinic_today
from app.core.exceptions import StoreException
from app.database import AsyncSessionLocal, check_database_connection, engine
from app.middleware.error_handler import register_exception_handlers
from app.middleware.logging import LoggingMiddleware, configure_logging
from app.schemas.appointments import SLOT_CATALOG
from app.services.admin_auth_service import AdminAuthService

configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Verifies the record store, clears admin sessions that expired while
    the service was down, and disposes the connection pool on shutdown.
    """
    logger.info(
        "application_startup",
        environment=settings.environment,
        clinic_timezone=settings.clinic_timezone,
        clinic_today=clinic_today().isoformat(),
    )

    if await check_database_connection():
        logger.info("database_connected")
        try:
            async with AsyncSessionLocal() as session:
                removed = await AdminAuthService(session).purge_expired()
        except StoreException as e:
            # Serve requests anyway; sessions still expire on validation
            logger.error("expired_admin_sessions_purge_failed", error=e.message)
        else:
            logger.info("expired_admin_sessions_purged", count=removed)
    else:
        logger.error("database_connection_failed")

    yield

    logger.info("application_shutdown")
    await engine.dispose()
    logger.info("database_connections_closed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Appointment booking and back office API for a single-practitioner clinic",
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
    openapi_url=None if settings.is_production else "/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(LoggingMiddleware)

register_exception_handlers(app)

app.include_router(api_router, prefix=settings.api_v1_prefix)

# Request count/latency per route; booking and triage volume show up per handler
Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    excluded_handlers=["/docs", "/redoc", "/openapi.json", "/metrics"],
).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/", tags=["Root"])
async def root() -> dict[str, object]:
    """Service banner with the clinic's booking parameters."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
        "clinic_timezone": settings.clinic_timezone,
        "slots": list(SLOT_CATALOG),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
