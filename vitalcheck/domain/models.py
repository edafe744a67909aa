from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class VitalSeverity(str, Enum):
    """Display band for a vital-sign snapshot."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AppointmentStatus(str, Enum):
    """Lifecycle states of an appointment request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class MedicationFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    AS_NEEDED = "as-needed"


class NotificationType(str, Enum):
    APPOINTMENT = "appointment"
    MEDICATION = "medication"
    VISIT = "visit"
    GENERAL = "general"


class UserRole(str, Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    ADMIN = "admin"


class Record(BaseModel):
    """Base for stored records: snake_case in Python, camelCase in documents."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the document shape, without the ``id`` field."""
        return self.model_dump(by_alias=True, mode="json", exclude={"id"}, exclude_none=True)


class AppUser(Record):
    uid: str
    email: str
    name: str
    role: UserRole = UserRole.PATIENT


class PatientProfile(Record):
    """A patient's demographic profile."""

    id: str = ""
    user_id: str
    name: str
    dob: str | None = None
    gender: str | None = None
    contact: str | None = None


class VitalReading(Record):
    """One snapshot of vital signs, already checked by the vital validator."""

    temperature: float
    heart_rate: float
    bp_sys: float
    bp_dia: float
    spo2: float
    notes: str | None = None


class VitalRecord(VitalReading):
    """A stored vital-sign reading."""

    id: str = ""
    patient_id: str
    timestamp: str


class AnnotatedVital(Record):
    record: VitalRecord
    severity: VitalSeverity


class SymptomEntry(Record):
    id: str = ""
    patient_id: str
    text: str
    tags: tuple[str, ...] = ()
    timestamp: str


class AppointmentRequest(Record):
    """A patient's request for an appointment with a doctor."""

    patient_id: str
    doctor_id: str
    preferred_time: str
    reason: str


class Appointment(AppointmentRequest):
    """A stored appointment."""

    id: str = ""
    status: AppointmentStatus = AppointmentStatus.PENDING
    created_at: str | None = None
    updated_at: str | None = None
    notes: str | None = None


class AppointmentWithPatient(Appointment):
    patient: PatientProfile | None = None


class MedicationSchedule(Record):
    """When a medication is taken.

    ``frequency`` is kept as a raw string so that unrecognised values reach
    the schedule validator instead of failing model construction.
    """

    frequency: str
    times: tuple[str, ...] = ()


class MedicationRecord(Record):
    """A medication as entered by a patient."""

    patient_id: str
    name: str
    dose: str
    schedule: MedicationSchedule
    start_date: str = ""
    end_date: str | None = None
    notes: str | None = None


class Medication(MedicationRecord):
    id: str


class ReminderPayload(Record):
    medication_id: str
    name: str
    dose: str
    due_at: str


class GeneratedReminder(Record):
    """A medication reminder produced by the reminder generator, not yet stored."""

    user_id: str
    type: NotificationType = NotificationType.MEDICATION
    payload: ReminderPayload


class Notification(Record):
    """A stored notification shown to a user."""

    id: str = ""
    user_id: str
    type: NotificationType
    payload: dict[str, Any]
    read: bool = False
    created_at: str


class PatientHistory(Record):
    """Everything a doctor sees when inspecting a patient."""

    patient_id: str
    vitals: tuple[AnnotatedVital, ...] = ()
    symptoms: tuple[SymptomEntry, ...] = ()
    medications: tuple[Medication, ...] = ()
    appointments: tuple[Appointment, ...] = ()
