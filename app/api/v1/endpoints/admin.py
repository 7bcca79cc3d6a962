"""Admin-only endpoints for the appointment back office."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Body, Path, Query, status

from app.dependencies import Appointments, CurrentAdmin, DatabaseSession
from app.schemas.admin import AdminContext, AdminLoginRequest, AdminSessionResponse
from app.schemas.appointments import (
    AppointmentConfirm,
    AppointmentListResponse,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatsResponse,
    AppointmentStatus,
    CalendarDay,
    CalendarFeedResponse,
    CalendarMonthResponse,
    HistoryDateFilter,
    HistoryFilters,
)
from app.services.admin_auth_service import AdminAuthService

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post(
    "/login",
    response_model=AdminSessionResponse,
    summary="Admin login",
)
async def login(data: AdminLoginRequest, db: DatabaseSession) -> AdminSessionResponse:
    """
    Open an admin session.

    Args:
        data: Login credentials
        db: Database session

    Returns:
        Bearer token and session expiry
    """
    return await AdminAuthService(db).login(data.email, data.password)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Admin logout",
)
async def logout(admin: CurrentAdmin, db: DatabaseSession) -> None:
    """Close the current admin session."""
    await AdminAuthService(db).logout(admin)


@router.get("/me", response_model=AdminContext, summary="Current admin session")
async def me(admin: CurrentAdmin) -> AdminContext:
    """Return the signed-in admin."""
    return admin


@router.get(
    "/stats",
    response_model=AppointmentStatsResponse,
    summary="Dashboard statistics",
)
async def get_stats(admin: CurrentAdmin, service: Appointments) -> AppointmentStatsResponse:
    """Count appointments per status."""
    return await service.get_stats()


@router.get(
    "/appointments/pending",
    response_model=AppointmentListResponse,
    summary="Pending appointment queue",
)
async def list_pending(admin: CurrentAdmin, service: Appointments) -> AppointmentListResponse:
    """
    List pending requests, newest first.

    Args:
        admin: Authenticated admin
        service: Appointment service

    Returns:
        Pending appointments
    """
    items = await service.list_pending()
    return AppointmentListResponse(total=len(items), items=items)


@router.get(
    "/appointments/calendar",
    response_model=CalendarFeedResponse,
    summary="Calendar feed",
)
async def calendar_feed(admin: CurrentAdmin, service: Appointments) -> CalendarFeedResponse:
    """
    Confirmed and completed appointments grouped by date.

    Args:
        admin: Authenticated admin
        service: Appointment service

    Returns:
        Appointments keyed by date, dates ascending
    """
    days = await service.calendar_by_date()
    return CalendarFeedResponse(
        total=sum(len(items) for items in days.values()),
        days=days,
    )


@router.get(
    "/appointments/calendar/{year}/{month}",
    response_model=CalendarMonthResponse,
    summary="Calendar month grid",
)
async def calendar_month(
    year: Annotated[int, Path(ge=1, le=9999)],
    month: Annotated[int, Path(ge=1, le=12)],
    admin: CurrentAdmin,
    service: Appointments,
) -> CalendarMonthResponse:
    """One cell per day of the month with its confirmed and completed appointments."""
    cells = await service.calendar_month(year, month)
    return CalendarMonthResponse(
        year=year,
        month=month,
        days=[CalendarDay(**cell) for cell in cells],
    )


@router.get(
    "/appointments/upcoming",
    response_model=AppointmentListResponse,
    summary="Upcoming appointments",
)
async def list_upcoming(
    admin: CurrentAdmin,
    service: Appointments,
    from_date: date | None = Query(None),
    horizon_days: int | None = Query(None, ge=1, le=365),
    limit: int | None = Query(None, ge=1, le=100),
) -> AppointmentListResponse:
    """Next confirmed appointments inside the horizon window."""
    items = await service.upcoming_appointments(from_date, horizon_days, limit)
    return AppointmentListResponse(total=len(items), items=items)


@router.get(
    "/appointments/history",
    response_model=AppointmentListResponse,
    summary="Appointment history",
)
async def list_history(
    admin: CurrentAdmin,
    service: Appointments,
    search: str | None = Query(None, description="Search name, phone, email, ID or service"),
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    date_range: HistoryDateFilter = Query(HistoryDateFilter.ALL),
) -> AppointmentListResponse:
    """
    Every non-pending appointment, most recently updated first.

    Args:
        admin: Authenticated admin
        service: Appointment service
        search: Free-text search
        status_filter: Filter by status
        date_range: Date window filter

    Returns:
        Matching appointments
    """
    filters = HistoryFilters(search=search, status=status_filter, date_range=date_range)
    items = await service.list_history(filters)
    return AppointmentListResponse(total=len(items), items=items)


@router.get(
    "/appointments/{appointment_id}",
    response_model=AppointmentResponse,
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    admin: CurrentAdmin,
    service: Appointments,
) -> AppointmentResponse:
    """Get a specific appointment by ID."""
    return await service.get_appointment(appointment_id)


@router.post(
    "/appointments/{appointment_id}/confirm",
    response_model=AppointmentResponse,
    summary="Confirm appointment",
)
async def confirm_appointment(
    appointment_id: UUID,
    admin: CurrentAdmin,
    service: Appointments,
    data: AppointmentConfirm | None = Body(None),
) -> AppointmentResponse:
    """
    Confirm a pending appointment, optionally moving it to a new date and time.

    Args:
        appointment_id: Appointment ID
        admin: Authenticated admin
        service: Appointment service
        data: Optional new date and time

    Returns:
        Confirmed appointment
    """
    return await service.confirm_appointment(appointment_id, admin, data)


@router.post(
    "/appointments/{appointment_id}/reject",
    response_model=AppointmentResponse,
    summary="Reject appointment",
)
async def reject_appointment(
    appointment_id: UUID,
    admin: CurrentAdmin,
    service: Appointments,
) -> AppointmentResponse:
    """Reject a pending appointment."""
    return await service.reject_appointment(appointment_id, admin)


@router.post(
    "/appointments/{appointment_id}/complete",
    response_model=AppointmentResponse,
    summary="Mark appointment completed",
)
async def complete_appointment(
    appointment_id: UUID,
    admin: CurrentAdmin,
    service: Appointments,
) -> AppointmentResponse:
    """Mark a confirmed appointment as completed."""
    return await service.complete_appointment(appointment_id, admin)


@router.patch(
    "/appointments/{appointment_id}",
    response_model=AppointmentResponse,
    summary="Reschedule appointment",
)
async def reschedule_appointment(
    appointment_id: UUID,
    data: AppointmentReschedule,
    admin: CurrentAdmin,
    service: Appointments,
) -> AppointmentResponse:
    """Move an appointment to another date and time."""
    return await service.reschedule_appointment(appointment_id, admin, data)


@router.delete(
    "/appointments/{appointment_id}",
    response_model=AppointmentResponse,
    summary="Cancel appointment",
)
async def delete_appointment(
    appointment_id: UUID,
    admin: CurrentAdmin,
    service: Appointments,
) -> AppointmentResponse:
    """Soft delete a confirmed appointment; it leaves the calendar."""
    return await service.delete_appointment(appointment_id, admin)


@router.delete(
    "/appointments/{appointment_id}/purge",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Permanently delete appointment",
)
async def purge_appointment(
    appointment_id: UUID,
    admin: CurrentAdmin,
    service: Appointments,
) -> None:
    """Remove an appointment row from the store."""
    await service.purge_appointment(appointment_id, admin)
