"""Appointment schemas for request/response validation."""

from datetime import date, datetime
from enum import Enum
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, Field, field_validator

# Fixed half-hour slots, lunch break between 11:30 and 14:00
SLOT_CATALOG: tuple[str, ...] = (
    "09:00",
    "09:30",
    "10:00",
    "10:30",
    "11:00",
    "11:30",
    "14:00",
    "14:30",
    "15:00",
    "15:30",
    "16:00",
    "16:30",
)


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    COMPLETED = "completed"
    DELETED = "deleted"

    @property
    def is_active(self) -> bool:
        """Whether an appointment in this status holds its slot."""
        return self in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition is possible."""
        return not TRANSITIONS[self]

    def can_transition_to(self, target: "AppointmentStatus") -> bool:
        """Check the transition table."""
        return target in TRANSITIONS[self]


ACTIVE_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED})

TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.REJECTED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.DELETED}
    ),
    AppointmentStatus.REJECTED: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.DELETED: frozenset(),
}


class HistoryDateFilter(str, Enum):
    """Date windows offered by the admin history view."""

    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    UPCOMING = "upcoming"
    PAST = "past"


def validate_slot(v: str) -> str:
    """Ensure a time label belongs to the slot catalog."""
    if v not in SLOT_CATALOG:
        raise ValueError(f"Time must be one of: {', '.join(SLOT_CATALOG)}")
    return v


SlotLabel = Annotated[str, AfterValidator(validate_slot)]


class AppointmentBase(BaseModel):
    """Base appointment schema with patient and booking fields."""

    name: str = Field(..., min_length=1, max_length=200)
    phone: str = Field(..., min_length=1, max_length=32)
    email: str = Field(..., min_length=1, max_length=254)
    national_id: str = Field(..., min_length=1, max_length=32)
    service: str = Field(..., min_length=1, max_length=200)
    message: str | None = Field(None, max_length=2000)

    @field_validator("name", "phone", "email", "national_id", "service")
    @classmethod
    def not_blank(cls, v: str) -> str:
        """Reject values that are only whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("Field is required")
        return v


class AppointmentCreate(AppointmentBase):
    """Schema for a patient booking request."""

    preferred_date: date
    preferred_time: SlotLabel


class AppointmentReschedule(BaseModel):
    """Schema for moving an appointment to another slot."""

    preferred_date: date
    preferred_time: SlotLabel


class AppointmentConfirm(BaseModel):
    """Schema for confirming, optionally with a new date and time."""

    preferred_date: date | None = None
    preferred_time: SlotLabel | None = None


class AppointmentResponse(AppointmentBase):
    """Schema for appointment response."""

    id: UUID
    preferred_date: date
    preferred_time: str
    status: AppointmentStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AppointmentListResponse(BaseModel):
    """Schema for appointment list response."""

    total: int
    items: list[AppointmentResponse]


class AvailableSlotsResponse(BaseModel):
    """Free slots for one date."""

    preferred_date: date
    slots: list[str]


class StatusLookupRequest(BaseModel):
    """Patient self-service status check."""

    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    national_id: str = Field(..., min_length=1)


class StatusLookupResponse(BaseModel):
    """Latest appointment found for a patient."""

    id: UUID
    name: str
    service: str
    preferred_date: date
    preferred_time: str
    status: AppointmentStatus
    created_at: datetime


class HistoryFilters(BaseModel):
    """Filters for the admin history view."""

    search: str | None = None
    status: AppointmentStatus | None = None
    date_range: HistoryDateFilter = HistoryDateFilter.ALL


class CalendarDay(BaseModel):
    """One day cell of a month grid."""

    day: date
    is_today: bool
    is_past: bool
    appointments: list[AppointmentResponse]


class CalendarMonthResponse(BaseModel):
    """Month grid of confirmed and completed appointments."""

    year: int
    month: int
    days: list[CalendarDay]


class CalendarFeedResponse(BaseModel):
    """Confirmed and completed appointments grouped by date."""

    total: int
    days: dict[date, list[AppointmentResponse]]


class AppointmentStatsResponse(BaseModel):
    """Dashboard counters."""

    total: int
    by_status: dict[AppointmentStatus, int]
