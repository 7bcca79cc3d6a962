"""Tests for the appointment status workflow."""

from datetime import date, timedelta
from uuid import uuid4

import pytest

from app.core.clock import utcnow
from app.core.exceptions import (
    InvalidTransitionException,
    NotFoundException,
    SlotConflictException,
    UnauthorizedException,
    ValidationException,
)
from app.schemas.admin import AdminContext
from app.schemas.appointments import (
    AppointmentConfirm,
    AppointmentReschedule,
    AppointmentStatus,
    HistoryFilters,
)
from app.services.appointment_service import AppointmentService

DAY = date(2025, 3, 10)
NEXT_DAY = date(2025, 3, 11)


@pytest.fixture
async def pending(service: AppointmentService, make_booking):
    """A pending appointment on 2025-03-10 at 10:00."""
    return await service.create_appointment(make_booking(DAY, "10:00"))


@pytest.fixture
async def confirmed(service: AppointmentService, admin_context, pending):
    """A confirmed appointment on 2025-03-10 at 10:00."""
    return await service.confirm_appointment(pending.id, admin_context)


@pytest.mark.asyncio
class TestTransitions:
    """Allowed moves through the status table."""

    async def test_confirm_pending(self, service, admin_context, pending):
        """Test quick confirmation keeps date and time."""
        result = await service.confirm_appointment(pending.id, admin_context)

        assert result.status == AppointmentStatus.CONFIRMED
        assert (result.preferred_date, result.preferred_time) == (DAY, "10:00")
        assert result.updated_at > pending.updated_at

    async def test_confirm_keeps_slot_blocked(self, service, confirmed):
        """Test a confirmed appointment still holds its slot."""
        assert "10:00" not in await service.get_available_slots(DAY)

    async def test_reject_pending_frees_slot(self, service, admin_context, pending):
        """Test rejection is terminal and releases the slot."""
        result = await service.reject_appointment(pending.id, admin_context)

        assert result.status == AppointmentStatus.REJECTED
        assert "10:00" in await service.get_available_slots(DAY)

    async def test_complete_confirmed(self, service, admin_context, confirmed):
        """Test completing leaves the pending queue, stays in history and bumps updated_at."""
        result = await service.complete_appointment(confirmed.id, admin_context)

        assert result.status == AppointmentStatus.COMPLETED
        assert result.updated_at > confirmed.updated_at
        assert result.created_at <= result.updated_at

        pending_ids = [a.id for a in await service.list_pending()]
        history_ids = [a.id for a in await service.list_history(HistoryFilters())]
        assert confirmed.id not in pending_ids
        assert confirmed.id in history_ids

    async def test_delete_confirmed_is_soft(self, service, admin_context, confirmed):
        """Test deletion keeps the row but removes it from the calendar."""
        result = await service.delete_appointment(confirmed.id, admin_context)

        assert result.status == AppointmentStatus.DELETED
        assert (await service.get_appointment(confirmed.id)).status == AppointmentStatus.DELETED
        assert confirmed.id not in [a.id for a in await service.calendar_feed()]
        assert "10:00" in await service.get_available_slots(DAY)


@pytest.mark.asyncio
class TestRejectedMoves:
    """Moves the status table forbids."""

    async def test_complete_pending_not_allowed(self, service, admin_context, pending):
        """Test pending appointments cannot skip confirmation."""
        with pytest.raises(InvalidTransitionException):
            await service.complete_appointment(pending.id, admin_context)

    async def test_delete_pending_not_allowed(self, service, admin_context, pending):
        """Test pending appointments are rejected, not deleted."""
        with pytest.raises(InvalidTransitionException):
            await service.delete_appointment(pending.id, admin_context)

    async def test_confirm_twice_not_allowed(self, service, admin_context, confirmed):
        """Test confirmed appointments cannot be confirmed again."""
        with pytest.raises(InvalidTransitionException):
            await service.confirm_appointment(confirmed.id, admin_context)

    @pytest.mark.parametrize("final", ["reject", "complete", "delete"])
    async def test_terminal_statuses_never_return(
        self,
        service,
        admin_context,
        make_booking,
        final,
    ):
        """Test no operation moves a terminal appointment again."""
        appointment = await service.create_appointment(make_booking(DAY, "14:30"))
        if final == "reject":
            await service.reject_appointment(appointment.id, admin_context)
        else:
            await service.confirm_appointment(appointment.id, admin_context)
            if final == "complete":
                await service.complete_appointment(appointment.id, admin_context)
            else:
                await service.delete_appointment(appointment.id, admin_context)

        operations = [
            service.confirm_appointment,
            service.reject_appointment,
            service.complete_appointment,
            service.delete_appointment,
        ]
        for operation in operations:
            with pytest.raises(InvalidTransitionException):
                await operation(appointment.id, admin_context)

        with pytest.raises(InvalidTransitionException):
            await service.reschedule_appointment(
                appointment.id,
                admin_context,
                AppointmentReschedule(preferred_date=NEXT_DAY, preferred_time="09:00"),
            )

        current = await service.get_appointment(appointment.id)
        assert current.status != AppointmentStatus.PENDING
        assert current.status.is_terminal

    async def test_unknown_id_is_not_found(self, service, admin_context):
        """Test operations on missing rows raise NotFound."""
        with pytest.raises(NotFoundException):
            await service.confirm_appointment(uuid4(), admin_context)
        with pytest.raises(NotFoundException):
            await service.purge_appointment(uuid4(), admin_context)
        with pytest.raises(NotFoundException):
            await service.get_appointment(uuid4())

    async def test_expired_context_is_refused(self, service, pending):
        """Test an expired admin context cannot mutate appointments."""
        expired = AdminContext(
            session_id=uuid4(),
            email="doctor@example.com",
            name="Admin",
            expires_at=utcnow() - timedelta(minutes=1),
        )
        with pytest.raises(UnauthorizedException):
            await service.confirm_appointment(pending.id, expired)


@pytest.mark.asyncio
class TestRescheduling:
    """Date and time changes re-check availability."""

    async def test_confirm_with_new_slot_moves_booking(self, service, admin_context, pending):
        """Test confirming into a new slot frees the old one and occupies the new one."""
        result = await service.confirm_appointment(
            pending.id,
            admin_context,
            AppointmentConfirm(preferred_date=NEXT_DAY, preferred_time="09:00"),
        )

        assert result.status == AppointmentStatus.CONFIRMED
        assert (result.preferred_date, result.preferred_time) == (NEXT_DAY, "09:00")
        assert "10:00" in await service.get_available_slots(DAY)
        assert "09:00" not in await service.get_available_slots(NEXT_DAY)

    async def test_confirm_into_taken_slot_conflicts(
        self,
        service,
        admin_context,
        make_booking,
        pending,
    ):
        """Test confirming into another appointment's slot is refused."""
        await service.create_appointment(make_booking(NEXT_DAY, "09:00"))

        with pytest.raises(SlotConflictException):
            await service.confirm_appointment(
                pending.id,
                admin_context,
                AppointmentConfirm(preferred_date=NEXT_DAY, preferred_time="09:00"),
            )

        unchanged = await service.get_appointment(pending.id)
        assert unchanged.status == AppointmentStatus.PENDING
        assert unchanged.preferred_date == DAY

    async def test_confirm_with_only_new_time(self, service, admin_context, pending):
        """Test a partial reschedule keeps the original date."""
        result = await service.confirm_appointment(
            pending.id,
            admin_context,
            AppointmentConfirm(preferred_time="16:00"),
        )
        assert (result.preferred_date, result.preferred_time) == (DAY, "16:00")

    async def test_reschedule_confirmed(self, service, admin_context, confirmed):
        """Test editing a confirmed appointment keeps its status."""
        result = await service.reschedule_appointment(
            confirmed.id,
            admin_context,
            AppointmentReschedule(preferred_date=NEXT_DAY, preferred_time="11:00"),
        )

        assert result.status == AppointmentStatus.CONFIRMED
        assert (result.preferred_date, result.preferred_time) == (NEXT_DAY, "11:00")
        assert result.updated_at > confirmed.updated_at

    async def test_reschedule_to_own_slot_is_allowed(self, service, admin_context, confirmed):
        """Test the appointment does not conflict with itself."""
        result = await service.reschedule_appointment(
            confirmed.id,
            admin_context,
            AppointmentReschedule(preferred_date=DAY, preferred_time="10:00"),
        )
        assert result.preferred_time == "10:00"

    async def test_reschedule_into_taken_slot_conflicts(
        self,
        service,
        admin_context,
        make_booking,
        confirmed,
    ):
        """Test rescheduling into an occupied slot is refused."""
        await service.create_appointment(make_booking(DAY, "10:30"))

        with pytest.raises(SlotConflictException):
            await service.reschedule_appointment(
                confirmed.id,
                admin_context,
                AppointmentReschedule(preferred_date=DAY, preferred_time="10:30"),
            )

    async def test_reschedule_into_past_is_invalid(self, service, admin_context, confirmed):
        """Test appointments cannot be moved before today."""
        with pytest.raises(ValidationException):
            await service.reschedule_appointment(
                confirmed.id,
                admin_context,
                AppointmentReschedule(preferred_date=date(2025, 2, 20), preferred_time="09:00"),
            )


@pytest.mark.asyncio
async def test_purge_removes_row(service, admin_context, pending):
    """Test purge hard deletes the appointment."""
    await service.purge_appointment(pending.id, admin_context)

    with pytest.raises(NotFoundException):
        await service.get_appointment(pending.id)
    assert "10:00" in await service.get_available_slots(DAY)
