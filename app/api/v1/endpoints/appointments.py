"""Public appointment endpoints."""

from datetime import date

from fastapi import APIRouter, Query, status

from app.dependencies import Appointments
from app.schemas.appointments import (
    AppointmentCreate,
    AppointmentResponse,
    AvailableSlotsResponse,
    StatusLookupRequest,
    StatusLookupResponse,
)

router = APIRouter()


@router.get(
    "/slots",
    response_model=AvailableSlotsResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List free slots for a date",
)
async def get_available_slots(
    service: Appointments,
    preferred_date: date = Query(..., alias="date"),
) -> AvailableSlotsResponse:
    """
    List the time slots still free on a date.

    Args:
        service: Appointment service
        preferred_date: Date to check (YYYY-MM-DD)

    Returns:
        Free slots in catalog order; empty for past dates
    """
    slots = await service.get_available_slots(preferred_date)
    return AvailableSlotsResponse(preferred_date=preferred_date, slots=slots)


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Appointments"],
    summary="Request an appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    service: Appointments,
) -> AppointmentResponse:
    """
    Submit a booking request; it starts as pending.

    Args:
        data: Booking request
        service: Appointment service

    Returns:
        Created appointment

    Raises:
        HTTPException: 409 if the slot was taken, 422 if the date is in the past
    """
    return await service.create_appointment(data)


@router.post(
    "/status",
    response_model=StatusLookupResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Check appointment status",
)
async def lookup_status(
    data: StatusLookupRequest,
    service: Appointments,
) -> StatusLookupResponse:
    """
    Return the latest appointment matching name, phone and national ID.

    Args:
        data: Patient identity fields
        service: Appointment service

    Returns:
        Appointment summary
    """
    appointment = await service.lookup_status(data)
    return StatusLookupResponse.model_validate(appointment.model_dump())
