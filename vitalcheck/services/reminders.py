import datetime as dt
from collections.abc import Sequence

from loguru import logger
from pydantic import ValidationError

from vitalcheck.domain.models import GeneratedReminder, MedicationRecord, Notification
from vitalcheck.rules.reminders import map_medication_notifications
from vitalcheck.rules.timestamps import format_instant, local_today, utc_now
from vitalcheck.services.base import MEDICATIONS, NOTIFICATIONS, Clock, guarded
from vitalcheck.store.ports import DocumentStoreProtocol, QueryFilter


class ReminderSweepService:
    """Daily job turning medication schedules into unread notifications."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        *,
        frequencies: Sequence[str] = ("daily", "weekly"),
        timezone: str = "America/New_York",
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._frequencies = list(frequencies)
        self._timezone = timezone
        self._clock = clock

    async def run(self, today: dt.date | None = None) -> int:
        """Generate and store today's reminders. Returns how many were created."""
        logger.info("Running reminder sweep")
        day = today or local_today(self._timezone)

        documents = await guarded(
            "Medication sweep query",
            self._store.query(
                MEDICATIONS,
                [QueryFilter(field="schedule.frequency", op="in", value=self._frequencies)],
            ),
        )

        reminders: list[GeneratedReminder] = []
        for document in documents:
            try:
                medication = MedicationRecord.model_validate(document.data)
            except ValidationError as exc:
                logger.warning("Skipping malformed medication {}: {}", document.id, exc)
                continue
            reminders.extend(map_medication_notifications(document.id, medication, day))

        if not reminders:
            logger.info("No reminders generated today.")
            return 0

        created_at = format_instant(self._clock())
        notifications = [
            Notification(
                user_id=reminder.user_id,
                type=reminder.type,
                payload=reminder.payload.to_document(),
                read=False,
                created_at=created_at,
            ).to_document()
            for reminder in reminders
        ]
        await guarded("Reminder batch write", self._store.batch_add(NOTIFICATIONS, notifications))
        logger.info("Created {} reminders.", len(notifications))
        return len(notifications)
