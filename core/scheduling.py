"""
Appointment slot rules: weekly availability windows and double-booking.

Everything here is pure; the controllers fetch doctors and appointments and
hand them in. Datetimes are naive and already expressed in the clinic
timezone (see :func:`to_clinic_time`).
"""
from datetime import datetime, timedelta
from typing import Iterable, Optional, Tuple
from zoneinfo import ZoneInfo

from core.config import CLINIC_TIMEZONE

DAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

# Statuses that still occupy the doctor's calendar
ACTIVE_STATUSES = ("scheduled", "confirmed", "in_progress")


def to_clinic_time(value: datetime, tz_name: str = CLINIC_TIMEZONE) -> datetime:
    """Aware datetimes are converted to the clinic zone; naive ones are taken as already local."""
    if value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)


def clinic_now(tz_name: str = CLINIC_TIMEZONE) -> datetime:
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


def slot_bounds(start: datetime, duration_minutes: int) -> Tuple[datetime, datetime]:
    return start, start + timedelta(minutes=duration_minutes)


def day_name(value: datetime) -> str:
    return DAY_NAMES[value.weekday()]


def clock_time(value: datetime) -> str:
    return value.strftime("%H:%M")


def _window_fields(window) -> Tuple[str, str, str, bool]:
    if isinstance(window, dict):
        get = window.get
    else:
        def get(key, default=None):
            return getattr(window, key, default)
    return (
        str(get("day_of_week", "")).lower(),
        get("start_time", ""),
        get("end_time", ""),
        bool(get("is_available", True)),
    )


def is_slot_available(availability: Iterable, proposed_start: datetime, duration_minutes: int) -> bool:
    """
    True when one active window on the start's weekday contains the whole slot.

    The start must fall in ``[window.start, window.end)`` and the end in
    ``(window.start, window.end]``. Times compare as zero-padded ``HH:MM``
    strings. A slot running past midnight never fits, because windows are
    confined to one day.
    """
    start, end = slot_bounds(proposed_start, duration_minutes)
    if end.date() != start.date():
        return False

    day = day_name(start)
    slot_start = clock_time(start)
    slot_end = clock_time(end)

    for window in availability or ():
        window_day, window_start, window_end, is_available = _window_fields(window)
        if window_day != day or not is_available:
            continue
        if window_start <= slot_start < window_end and window_start < slot_end <= window_end:
            return True
    return False


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap of [a_start, a_end) and [b_start, b_end)."""
    return a_start < b_end and a_end > b_start


def find_conflict(appointments: Iterable, start: datetime, end: datetime,
                  exclude_uid: Optional[str] = None):
    """First active appointment overlapping ``[start, end)``, or None."""
    for appointment in appointments:
        if exclude_uid is not None and appointment.uid == exclude_uid:
            continue
        if appointment.status not in ACTIVE_STATUSES:
            continue
        existing_start, existing_end = slot_bounds(appointment.appointment_date, appointment.duration)
        if overlaps(existing_start, existing_end, start, end):
            return appointment
    return None
