"""Tests for the row store wrapper."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from app.core.exceptions import StoreException
from app.core.record_store import RecordStore
from app.models.appointments import appointments


@pytest.fixture
def failing_session() -> AsyncMock:
    """Session whose every statement fails at the driver."""
    session = AsyncMock()
    session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("connection lost"))
    return session


@pytest.mark.asyncio
async def test_select_failure_raises_store_error(failing_session: AsyncMock):
    """Test driver errors surface as StoreException and roll back."""
    store = RecordStore(failing_session)

    with pytest.raises(StoreException) as exc_info:
        await store.select_where(appointments)

    assert exc_info.value.status_code == 503
    assert "appointments" in exc_info.value.message
    failing_session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_failure_does_not_commit(failing_session: AsyncMock):
    """Test a failed update leaves nothing committed."""
    store = RecordStore(failing_session)

    with pytest.raises(StoreException):
        await store.update_where(appointments, uuid4(), {"status": "confirmed"})

    failing_session.commit.assert_not_awaited()
    failing_session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_delete_failure_raises_store_error(failing_session: AsyncMock):
    """Test delete errors are wrapped the same way."""
    with pytest.raises(StoreException):
        await RecordStore(failing_session).delete_where(appointments, uuid4())


@pytest.mark.asyncio
async def test_get_by_id_missing_returns_none(db_session):
    """Test a missing row reads as None rather than an error."""
    assert await RecordStore(db_session).get_by_id(appointments, uuid4()) is None


@pytest.mark.asyncio
async def test_delete_missing_returns_false(db_session):
    """Test deleting an unknown id reports that nothing was removed."""
    assert await RecordStore(db_session).delete_where(appointments, uuid4()) is False
