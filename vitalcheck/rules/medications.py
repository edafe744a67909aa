import datetime as dt
from collections.abc import Mapping
from enum import Enum

from vitalcheck.domain.models import MedicationFrequency, MedicationSchedule
from vitalcheck.rules.tables import ALLOWED_FREQUENCIES, TIME_OF_DAY_PATTERN
from vitalcheck.rules.timestamps import parse_instant


def _schedule_parts(schedule: object) -> tuple[object, object]:
    if schedule is None:
        return None, None
    if isinstance(schedule, Mapping):
        return schedule.get("frequency"), schedule.get("times")
    return getattr(schedule, "frequency", None), getattr(schedule, "times", None)


def is_valid_medication_schedule(
    schedule: MedicationSchedule | Mapping[str, object] | None,
) -> bool:
    """Check a schedule's shape.

    Every frequency except "as-needed" needs at least one time. Times must
    look like ``HH:MM``; the check is lexical, so ``"99:99"`` passes.
    """
    frequency, times = _schedule_parts(schedule)
    if isinstance(frequency, Enum):
        frequency = frequency.value
    if not isinstance(frequency, str) or frequency not in ALLOWED_FREQUENCIES:
        return False

    if times is None:
        times = ()
    if not isinstance(times, (list, tuple)):
        return False

    if frequency != MedicationFrequency.AS_NEEDED.value and not times:
        return False

    return all(isinstance(t, str) and TIME_OF_DAY_PATTERN.fullmatch(t) for t in times)


def validate_medication_input(
    name: str | None,
    dose: str | None,
    schedule: MedicationSchedule | Mapping[str, object] | None,
    start_date: str | dt.date | None,
    end_date: str | dt.date | None = None,
) -> list[str]:
    """Return every problem with a medication entry, in a fixed order."""
    errors: list[str] = []
    if not (name or "").strip():
        errors.append("Medication name is required")
    if not (dose or "").strip():
        errors.append("Dose is required")
    if not is_valid_medication_schedule(schedule):
        errors.append("Schedule is invalid")
    if not start_date:
        errors.append("Start date is required")

    if start_date and end_date:
        start = parse_instant(start_date)
        end = parse_instant(end_date)
        # Dates that do not parse are not reported here.
        if start is not None and end is not None and end < start:
            errors.append("End date must be after start date")
    return errors
