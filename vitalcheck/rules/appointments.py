import datetime as dt
from collections.abc import Iterable, Mapping
from enum import Enum

from vitalcheck.domain.models import AppointmentStatus
from vitalcheck.rules.timestamps import parse_instant, utc_now, whole_minutes_between

DEFAULT_CONFLICT_WINDOW_MINUTES = 30

INVALID_PREFERRED_TIME = "Preferred time is invalid"
PREFERRED_TIME_IN_PAST = "Appointments cannot be scheduled in the past"

_ACTIVE_STATUSES = frozenset({AppointmentStatus.PENDING.value, AppointmentStatus.APPROVED.value})


def validate_appointment_date(preferred_time: str, now: dt.datetime | None = None) -> str | None:
    """Return an error message unless ``preferred_time`` is strictly after ``now``.

    ``now`` defaults to the current UTC instant. A time equal to ``now``
    counts as in the past.
    """
    preferred = parse_instant(preferred_time)
    if preferred is None:
        return INVALID_PREFERRED_TIME

    reference = parse_instant(now) if now is not None else utc_now()
    if reference is None or preferred <= reference:
        return PREFERRED_TIME_IN_PAST
    return None


def _appointment_field(appointment: object, name: str) -> object:
    if isinstance(appointment, Mapping):
        return appointment.get(name)
    return getattr(appointment, name, None)


def _status_value(status: object) -> object:
    return status.value if isinstance(status, Enum) else status


def has_appointment_conflict(
    existing_appointments: Iterable[object],
    new_preferred_time: str,
    window_minutes: int = DEFAULT_CONFLICT_WINDOW_MINUTES,
) -> bool:
    """Whether any active appointment sits within ``window_minutes`` of the new time.

    Existing appointments are models or mappings with ``preferred_time`` and
    ``status``. Only pending and approved ones count. An unparseable new time
    never conflicts; unparseable existing times are skipped.
    """
    target = parse_instant(new_preferred_time)
    if target is None:
        return False

    for appointment in existing_appointments:
        status = _status_value(_appointment_field(appointment, "status"))
        if not isinstance(status, str) or status not in _ACTIVE_STATUSES:
            continue
        existing = parse_instant(_appointment_field(appointment, "preferred_time"))
        if existing is None:
            continue
        if abs(whole_minutes_between(existing, target)) < window_minutes:
            return True
    return False
