import math
from collections.abc import Mapping
from numbers import Real

from vitalcheck.domain.models import VitalReading, VitalSeverity
from vitalcheck.rules.tables import VITAL_RANGES

SYSTOLIC_NOT_ABOVE_DIASTOLIC = "Systolic pressure must be higher than diastolic pressure"
DIASTOLIC_NOT_BELOW_SYSTOLIC = "Diastolic pressure must be lower than systolic pressure"


def is_within_range(value: float, minimum: float, maximum: float) -> bool:
    return math.isfinite(value) and minimum <= value <= maximum


def _to_number(raw: object) -> float | None:
    """Coerce a form value to a float. ``None`` means "not a number"."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, Real):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw)
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(value) else value


def parse_vital_values(values: Mapping[str, object]) -> dict[str, float]:
    """The numeric value of every vital that parses. Empty or non-numeric fields are left out."""
    numbers: dict[str, float] = {}
    for key in VITAL_RANGES:
        raw = values.get(key)
        value = None if raw is None or raw == "" else _to_number(raw)
        if value is not None:
            numbers[key] = value
    return numbers


def validate_vital_form(values: Mapping[str, object]) -> dict[str, str]:
    """Check a vitals form and return field -> error message.

    Every vital is mandatory. ``None``, ``""`` or a missing key count as
    empty. An empty result means the form is valid.
    """
    errors: dict[str, str] = {}
    numbers: dict[str, float] = {}

    for key, vital_range in VITAL_RANGES.items():
        raw = values.get(key)
        if raw is None or raw == "":
            errors[key] = f"{vital_range.label} is required"
            continue

        value = _to_number(raw)
        if value is None:
            errors[key] = f"{vital_range.label} must be a number"
            continue

        numbers[key] = value
        if not is_within_range(value, vital_range.min, vital_range.max):
            errors[key] = (
                f"{vital_range.label} must be between {vital_range.min} and {vital_range.max}"
            )

    systolic = numbers.get("bp_sys")
    diastolic = numbers.get("bp_dia")
    if systolic is not None and diastolic is not None and systolic <= diastolic:
        errors["bp_sys"] = SYSTOLIC_NOT_ABOVE_DIASTOLIC
        errors["bp_dia"] = DIASTOLIC_NOT_BELOW_SYSTOLIC

    return errors


def classify_severity(reading: VitalReading) -> VitalSeverity:
    """Band a vital snapshot as low, medium or high.

    Rule based and not clinical grade. Values outside the validator's
    ranges still classify by the same thresholds.
    """
    temperature = reading.temperature
    heart_rate = reading.heart_rate
    systolic = reading.bp_sys
    diastolic = reading.bp_dia
    spo2 = reading.spo2

    if (
        temperature >= 38.5
        or spo2 < 92
        or systolic >= 180
        or diastolic >= 110
        or heart_rate >= 120
        or heart_rate <= 45
    ):
        return VitalSeverity.HIGH

    if (
        37.5 <= temperature < 38.5
        or 92 <= spo2 < 95
        or 140 <= systolic < 180
        or 90 <= diastolic < 110
        or 100 <= heart_rate < 120
        or 45 < heart_rate < 55
    ):
        return VitalSeverity.MEDIUM

    return VitalSeverity.LOW
