import re
from typing import NamedTuple

from vitalcheck.domain.models import MedicationFrequency


class VitalRange(NamedTuple):
    min: int
    max: int
    label: str


# Insertion order is the order errors are reported in.
VITAL_RANGES: dict[str, VitalRange] = {
    "temperature": VitalRange(30, 45, "Temperature (°C)"),
    "heart_rate": VitalRange(30, 220, "Heart Rate (bpm)"),
    "bp_sys": VitalRange(40, 250, "Systolic BP (mmHg)"),
    "bp_dia": VitalRange(30, 150, "Diastolic BP (mmHg)"),
    "spo2": VitalRange(50, 100, "SpO₂ (%)"),
}

ALLOWED_FREQUENCIES: frozenset[str] = frozenset(f.value for f in MedicationFrequency)

# Lexical only: "25:61" matches.
TIME_OF_DAY_PATTERN = re.compile(r"\d{2}:\d{2}", re.ASCII)
