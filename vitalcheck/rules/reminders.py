import datetime as dt

from vitalcheck.domain.models import (
    GeneratedReminder,
    MedicationFrequency,
    MedicationRecord,
    ReminderPayload,
)


def map_medication_notifications(
    medication_id: str,
    medication: MedicationRecord,
    date: dt.date | str,
) -> list[GeneratedReminder]:
    """Expand a medication's schedule into the reminders due on ``date``.

    One reminder per scheduled time, due at ``<date>T<time>``. "monthly"
    expands the same way as "daily".
    """
    frequency = medication.schedule.frequency
    if frequency == MedicationFrequency.WEEKLY.value:
        # TODO: align weekly reminders to the weekday of start_date.
        return []
    if frequency == MedicationFrequency.AS_NEEDED.value:
        return []

    day = date.isoformat() if isinstance(date, dt.date) else date
    return [
        GeneratedReminder(
            user_id=medication.patient_id,
            payload=ReminderPayload(
                medication_id=medication_id,
                name=medication.name,
                dose=medication.dose,
                due_at=f"{day}T{time}",
            ),
        )
        for time in medication.schedule.times
    ]
