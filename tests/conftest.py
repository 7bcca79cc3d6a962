import os
from collections.abc import AsyncGenerator, Callable
from datetime import date, timedelta
from uuid import uuid4

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from passlib.context import CryptContext

# Load environment variables from .env file
load_dotenv()

ADMIN_EMAIL = "doctor@example.com"
ADMIN_PASSWORD = "correct-horse-battery-staple"

# Tests run against an in-memory SQLite database unless TEST_DATABASE_URL is set
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL") or "sqlite+aiosqlite:///:memory:"

# Settings are read at import time, so configure them before importing the app
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-development-only")
os.environ["ADMIN_EMAIL"] = ADMIN_EMAIL
os.environ["ADMIN_PASSWORD_HASH"] = CryptContext(schemes=["bcrypt"]).hash(ADMIN_PASSWORD)
os.environ.setdefault("LOG_FORMAT", "console")

from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import MetaData  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool  # noqa: E402

from app.core.clock import clinic_today, utcnow  # noqa: E402
from app.database import get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.admin_sessions import metadata as admin_sessions_metadata  # noqa: E402
from app.models.appointments import metadata as appointments_metadata  # noqa: E402
from app.schemas.admin import AdminContext  # noqa: E402
from app.schemas.appointments import AppointmentCreate  # noqa: E402
from app.services.appointment_service import AppointmentService  # noqa: E402

# Combine all metadata
metadata = MetaData()
for table in appointments_metadata.tables.values():
    table.to_metadata(metadata)
for table in admin_sessions_metadata.tables.values():
    table.to_metadata(metadata)

# Fixed clinic date used by service-level scenarios
SCENARIO_TODAY = date(2025, 3, 1)


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh database for one test."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        # One shared connection keeps the in-memory database alive
        engine = create_async_engine(
            TEST_DATABASE_URL,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def service(db_session: AsyncSession) -> AppointmentService:
    """Appointment service whose clinic date is fixed to 2025-03-01."""
    return AppointmentService(db_session, today=lambda: SCENARIO_TODAY)


@pytest.fixture
def admin_context() -> AdminContext:
    """Authorization context for service-level admin operations."""
    return AdminContext(
        session_id=uuid4(),
        email=ADMIN_EMAIL,
        name="Admin",
        expires_at=utcnow() + timedelta(hours=1),
    )


@pytest.fixture
def make_booking() -> Callable[..., AppointmentCreate]:
    """Factory for booking requests with sensible patient defaults."""

    def _make(preferred_date: date, preferred_time: str, **overrides: str) -> AppointmentCreate:
        data = {
            "name": "Aylin Demir",
            "phone": "+905551112233",
            "email": "aylin@example.com",
            "national_id": "12345678901",
            "service": "General Consultation",
            "message": "Knee pain after running",
            "preferred_date": preferred_date,
            "preferred_time": preferred_time,
        }
        data.update(overrides)
        return AppointmentCreate(**data)

    return _make


@pytest.fixture
def future_date() -> date:
    """A bookable date relative to the real clinic clock."""
    return clinic_today() + timedelta(days=3)


@pytest.fixture
def sample_appointment_data(future_date: date) -> dict:
    """Sample booking payload for HTTP tests."""
    return {
        "name": "Elvin Aliyev",
        "phone": "+994501234567",
        "email": "elvin@example.com",
        "national_id": "AZE1234567",
        "service": "Sports Injuries",
        "message": "Shoulder pain",
        "preferred_date": future_date.isoformat(),
        "preferred_time": "10:00",
    }


@pytest_asyncio.fixture
async def admin_headers(client: AsyncClient) -> dict:
    """Log in through the API and return bearer headers."""
    response = await client.post(
        "/api/v1/admin/login",
        json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}
