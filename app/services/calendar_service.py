"""Calendar aggregation over the confirmed/completed feed."""

import calendar
from collections.abc import Iterable, Sequence
from datetime import date
from typing import Any

from app.schemas.appointments import AppointmentResponse


def group_by_date(
    appointments: Iterable[AppointmentResponse],
) -> dict[date, list[AppointmentResponse]]:
    """
    Group appointments by their preferred date.

    Order within a day follows the input order.
    """
    grouped: dict[date, list[AppointmentResponse]] = {}
    for appointment in appointments:
        grouped.setdefault(appointment.preferred_date, []).append(appointment)
    return grouped


def upcoming(
    appointments: Iterable[AppointmentResponse],
    from_date: date,
    horizon_days: int = 7,
    limit: int = 5,
) -> list[AppointmentResponse]:
    """
    Select the next appointments inside a window starting at ``from_date``.

    Args:
        appointments: Appointments to choose from
        from_date: First day of the window
        horizon_days: Window length in days
        limit: Maximum number of appointments returned

    Returns:
        Appointments sorted by date and time, truncated to ``limit``
    """
    # Day offsets avoid date overflow near date.max
    in_window = [
        a for a in appointments if 0 <= (a.preferred_date - from_date).days < horizon_days
    ]
    in_window.sort(key=lambda a: (a.preferred_date, a.preferred_time))
    return in_window[:limit]


def month_grid(
    year: int,
    month: int,
    appointments: Sequence[AppointmentResponse],
    today: date,
) -> list[dict[str, Any]]:
    """Build one cell per day of the month with that day's appointments."""
    by_date = group_by_date(appointments)
    _, days_in_month = calendar.monthrange(year, month)

    cells = []
    for day_number in range(1, days_in_month + 1):
        day = date(year, month, day_number)
        cells.append(
            {
                "day": day,
                "is_today": day == today,
                "is_past": day < today,
                "appointments": by_date.get(day, []),
            }
        )
    return cells
