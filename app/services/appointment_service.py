"""Appointment service for business logic."""

import calendar
from collections.abc import Callable
from datetime import date, datetime, timedelta
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.clock import as_utc, clinic_today, utcnow
from app.core.exceptions import (
    ConflictException,
    InvalidTransitionException,
    NotFoundException,
    SlotConflictException,
    UnauthorizedException,
    ValidationException,
)
from app.core.record_store import RecordStore
from app.models.appointments import appointments
from app.schemas.admin import AdminContext
from app.schemas.appointments import (
    SLOT_CATALOG,
    AppointmentConfirm,
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatsResponse,
    HistoryDateFilter,
    HistoryFilters,
    StatusLookupRequest,
)
from app.services import calendar_service

logger = structlog.get_logger()

SEARCHABLE_FIELDS = ("name", "phone", "email", "national_id", "service")


class AppointmentService:
    """Service for booking, triaging and reporting appointments."""

    def __init__(self, db: AsyncSession, today: Callable[[], date] | None = None):
        """
        Initialize service with database session.

        Args:
            db: Database session
            today: Clock returning the clinic's current date
        """
        self.store = RecordStore(db)
        self.today = today or clinic_today

    async def get_available_slots(self, preferred_date: date) -> list[str]:
        """
        List free slots for a date, in catalog order.

        Past dates have no free slots.
        """
        if preferred_date < self.today():
            return []

        taken = await self._taken_slots(preferred_date)
        return [slot for slot in SLOT_CATALOG if slot not in taken]

    async def _taken_slots(
        self,
        preferred_date: date,
        exclude_id: UUID | None = None,
    ) -> set[str]:
        conditions = [
            appointments.c.preferred_date == preferred_date,
            appointments.c.status.in_([s.value for s in AppointmentStatus if s.is_active]),
        ]
        if exclude_id is not None:
            conditions.append(appointments.c.id != exclude_id)

        rows = await self.store.select_where(appointments, *conditions)
        return {row["preferred_time"] for row in rows}

    async def _ensure_slot_free(
        self,
        preferred_date: date,
        preferred_time: str,
        exclude_id: UUID | None = None,
    ) -> None:
        if preferred_date < self.today():
            raise ValidationException("Appointment date cannot be in the past")
        if preferred_time not in SLOT_CATALOG:
            raise ValidationException(f"Unknown time slot: {preferred_time}")

        taken = await self._taken_slots(preferred_date, exclude_id=exclude_id)
        if preferred_time in taken:
            logger.info(
                "slot_conflict",
                preferred_date=preferred_date.isoformat(),
                preferred_time=preferred_time,
            )
            raise SlotConflictException()

    async def create_appointment(self, data: AppointmentCreate) -> AppointmentResponse:
        """
        Book a pending appointment.

        Args:
            data: Patient booking request

        Returns:
            Created appointment

        Raises:
            ValidationException: If the date is in the past
            SlotConflictException: If the slot is already held
        """
        await self._ensure_slot_free(data.preferred_date, data.preferred_time)

        now = utcnow()
        values = {
            **data.model_dump(),
            "status": AppointmentStatus.PENDING.value,
            "created_at": now,
            "updated_at": now,
        }

        try:
            row = await self.store.insert(appointments, values)
        except ConflictException:
            # Another booking won the slot between the check and the insert
            logger.info(
                "slot_conflict",
                preferred_date=data.preferred_date.isoformat(),
                preferred_time=data.preferred_time,
                stage="insert",
            )
            raise SlotConflictException()

        logger.info(
            "appointment_created",
            appointment_id=str(row["id"]),
            preferred_date=data.preferred_date.isoformat(),
            preferred_time=data.preferred_time,
        )
        return AppointmentResponse.model_validate(row)

    async def lookup_status(self, data: StatusLookupRequest) -> AppointmentResponse:
        """
        Find a patient's most recent appointment.

        Raises:
            NotFoundException: If no appointment matches all three fields
        """
        rows = await self.store.select_where(
            appointments,
            appointments.c.name == data.name.strip(),
            appointments.c.phone == data.phone.strip(),
            appointments.c.national_id == data.national_id.strip(),
            order_by=[appointments.c.created_at.desc()],
            limit=1,
        )
        if not rows:
            raise NotFoundException("No appointment found with the provided information")

        return AppointmentResponse.model_validate(rows[0])

    async def get_appointment(self, appointment_id: UUID) -> AppointmentResponse:
        """Get appointment by ID."""
        return AppointmentResponse.model_validate(await self._get_row(appointment_id))

    async def confirm_appointment(
        self,
        appointment_id: UUID,
        context: AdminContext,
        data: AppointmentConfirm | None = None,
    ) -> AppointmentResponse:
        """
        Confirm a pending appointment, optionally moving it to another slot.

        Raises:
            SlotConflictException: If the new slot is held by another appointment
        """
        self._require_admin(context)
        current = await self._get_row(appointment_id)
        self._check_transition(AppointmentStatus(current["status"]), AppointmentStatus.CONFIRMED)

        patch: dict[str, Any] = {}
        if data is not None:
            new_date = data.preferred_date or current["preferred_date"]
            new_time = data.preferred_time or current["preferred_time"]
            if (new_date, new_time) != (current["preferred_date"], current["preferred_time"]):
                await self._ensure_slot_free(new_date, new_time, exclude_id=appointment_id)
                patch = {"preferred_date": new_date, "preferred_time": new_time}

        return await self._transition(current, AppointmentStatus.CONFIRMED, context, patch)

    async def reject_appointment(
        self,
        appointment_id: UUID,
        context: AdminContext,
    ) -> AppointmentResponse:
        """Reject a pending appointment, releasing its slot."""
        self._require_admin(context)
        current = await self._get_row(appointment_id)
        return await self._transition(current, AppointmentStatus.REJECTED, context)

    async def complete_appointment(
        self,
        appointment_id: UUID,
        context: AdminContext,
    ) -> AppointmentResponse:
        """Mark a confirmed appointment as completed."""
        self._require_admin(context)
        current = await self._get_row(appointment_id)
        return await self._transition(current, AppointmentStatus.COMPLETED, context)

    async def delete_appointment(
        self,
        appointment_id: UUID,
        context: AdminContext,
    ) -> AppointmentResponse:
        """Soft delete a confirmed appointment; the row stays queryable."""
        self._require_admin(context)
        current = await self._get_row(appointment_id)
        return await self._transition(current, AppointmentStatus.DELETED, context)

    async def reschedule_appointment(
        self,
        appointment_id: UUID,
        context: AdminContext,
        data: AppointmentReschedule,
    ) -> AppointmentResponse:
        """
        Move an appointment to another slot without changing its status.

        Raises:
            InvalidTransitionException: If the appointment is in a terminal status
            SlotConflictException: If the new slot is held by another appointment
        """
        self._require_admin(context)
        current = await self._get_row(appointment_id)
        status = AppointmentStatus(current["status"])
        if status.is_terminal:
            raise InvalidTransitionException(
                f"Cannot reschedule an appointment that is {status.value}"
            )

        await self._ensure_slot_free(
            data.preferred_date,
            data.preferred_time,
            exclude_id=appointment_id,
        )

        row = await self._write(
            current,
            {
                "preferred_date": data.preferred_date,
                "preferred_time": data.preferred_time,
            },
        )
        logger.info(
            "appointment_rescheduled",
            appointment_id=str(appointment_id),
            preferred_date=data.preferred_date.isoformat(),
            preferred_time=data.preferred_time,
            admin=context.email,
        )
        return AppointmentResponse.model_validate(row)

    async def purge_appointment(self, appointment_id: UUID, context: AdminContext) -> None:
        """
        Permanently remove an appointment row.

        Raises:
            NotFoundException: If appointment not found
        """
        self._require_admin(context)
        removed = await self.store.delete_where(appointments, appointment_id)
        if not removed:
            raise NotFoundException("Appointment not found")

        logger.info("appointment_purged", appointment_id=str(appointment_id), admin=context.email)

    async def list_pending(self) -> list[AppointmentResponse]:
        """Pending queue, newest request first."""
        rows = await self.store.select_where(
            appointments,
            appointments.c.status == AppointmentStatus.PENDING.value,
            order_by=[appointments.c.created_at.desc(), appointments.c.id],
        )
        return [AppointmentResponse.model_validate(row) for row in rows]

    async def calendar_feed(self) -> list[AppointmentResponse]:
        """Confirmed and completed appointments in date order."""
        rows = await self._calendar_rows()
        return [AppointmentResponse.model_validate(row) for row in rows]

    async def calendar_by_date(self) -> dict[date, list[AppointmentResponse]]:
        """Calendar feed grouped by date."""
        return calendar_service.group_by_date(await self.calendar_feed())

    async def calendar_month(self, year: int, month: int) -> list[dict[str, Any]]:
        """
        Month grid for the calendar view.

        Raises:
            ValidationException: If month is outside 1-12 or year is out of range
        """
        if not 1 <= month <= 12:
            raise ValidationException("Month must be between 1 and 12")
        if not date.min.year <= year <= date.max.year:
            raise ValidationException(f"Year must be between {date.min.year} and {date.max.year}")

        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        rows = await self._calendar_rows(
            appointments.c.preferred_date >= first,
            appointments.c.preferred_date <= last,
        )
        feed = [AppointmentResponse.model_validate(row) for row in rows]
        return calendar_service.month_grid(year, month, feed, self.today())

    async def upcoming_appointments(
        self,
        from_date: date | None = None,
        horizon_days: int | None = None,
        limit: int | None = None,
    ) -> list[AppointmentResponse]:
        """Next confirmed or completed appointments from ``from_date`` (default today)."""
        return calendar_service.upcoming(
            await self.calendar_feed(),
            from_date=from_date or self.today(),
            horizon_days=horizon_days or settings.upcoming_horizon_days,
            limit=limit or settings.upcoming_limit,
        )

    async def list_history(self, filters: HistoryFilters) -> list[AppointmentResponse]:
        """
        Every non-pending appointment, most recently updated first.

        Args:
            filters: Text search, status and date window filters

        Returns:
            Filtered appointments
        """
        rows = await self.store.select_where(
            appointments,
            appointments.c.status != AppointmentStatus.PENDING.value,
            order_by=[appointments.c.updated_at.desc()],
        )

        if filters.search:
            term = filters.search.strip().lower()
            rows = [
                row
                for row in rows
                if any(term in str(row[field]).lower() for field in SEARCHABLE_FIELDS)
            ]

        if filters.status:
            rows = [row for row in rows if row["status"] == filters.status.value]

        if filters.date_range != HistoryDateFilter.ALL:
            in_range = self._date_range_predicate(filters.date_range)
            rows = [row for row in rows if in_range(row["preferred_date"])]

        return [AppointmentResponse.model_validate(row) for row in rows]

    async def get_stats(self) -> AppointmentStatsResponse:
        """Count appointments per status."""
        counts = await self.store.count_by(appointments, "status")
        by_status = {status: counts.get(status.value, 0) for status in AppointmentStatus}
        return AppointmentStatsResponse(total=sum(by_status.values()), by_status=by_status)

    async def _get_row(self, appointment_id: UUID) -> dict[str, Any]:
        row = await self.store.get_by_id(appointments, appointment_id)
        if row is None:
            raise NotFoundException("Appointment not found")
        return row

    async def _calendar_rows(self, *conditions: Any) -> list[dict[str, Any]]:
        return await self.store.select_where(
            appointments,
            appointments.c.status.in_(
                [AppointmentStatus.CONFIRMED.value, AppointmentStatus.COMPLETED.value]
            ),
            *conditions,
            order_by=[appointments.c.preferred_date.asc(), appointments.c.preferred_time.asc()],
        )

    async def _transition(
        self,
        current: dict[str, Any],
        target: AppointmentStatus,
        context: AdminContext,
        patch: dict[str, Any] | None = None,
    ) -> AppointmentResponse:
        status = AppointmentStatus(current["status"])
        self._check_transition(status, target)

        row = await self._write(current, {"status": target.value, **(patch or {})})
        logger.info(
            "appointment_status_changed",
            appointment_id=str(current["id"]),
            old_status=status.value,
            new_status=target.value,
            admin=context.email,
        )
        return AppointmentResponse.model_validate(row)

    async def _write(self, current: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
        """Apply a patch only if the row still has the status it was read with."""
        values = {**patch, "updated_at": self._next_updated_at(current)}
        try:
            row = await self.store.update_where(
                appointments,
                current["id"],
                values,
                appointments.c.status == current["status"],
            )
        except ConflictException:
            raise SlotConflictException()

        if row is None:
            if await self.store.get_by_id(appointments, current["id"]) is None:
                raise NotFoundException("Appointment not found")
            raise ConflictException("Appointment was changed by another request")
        return row

    @staticmethod
    def _next_updated_at(current: dict[str, Any]) -> datetime:
        # Keep updated_at strictly increasing even within one clock tick
        previous = as_utc(current["updated_at"])
        now = utcnow()
        if now <= previous:
            return previous + timedelta(microseconds=1)
        return now

    @staticmethod
    def _check_transition(status: AppointmentStatus, target: AppointmentStatus) -> None:
        if not status.can_transition_to(target):
            raise InvalidTransitionException(
                f"Cannot change appointment from {status.value} to {target.value}"
            )

    @staticmethod
    def _require_admin(context: AdminContext) -> None:
        if as_utc(context.expires_at) <= utcnow():
            raise UnauthorizedException("Admin session expired")

    def _date_range_predicate(self, date_range: HistoryDateFilter) -> Callable[[date], bool]:
        today = self.today()
        if date_range == HistoryDateFilter.TODAY:
            return lambda d: d == today
        if date_range == HistoryDateFilter.WEEK:
            week_ago = today - timedelta(days=7)
            return lambda d: d >= week_ago
        if date_range == HistoryDateFilter.MONTH:
            month_ago = _one_month_before(today)
            return lambda d: d >= month_ago
        if date_range == HistoryDateFilter.UPCOMING:
            return lambda d: d >= today
        if date_range == HistoryDateFilter.PAST:
            return lambda d: d < today
        return lambda d: True


def _one_month_before(day: date) -> date:
    year, month = (day.year, day.month - 1) if day.month > 1 else (day.year - 1, 12)
    return day.replace(year=year, month=month, day=min(day.day, calendar.monthrange(year, month)[1]))
