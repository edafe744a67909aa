import asyncio

from loguru import logger

from vitalcheck.domain.exceptions import (
    AppointmentConflictError,
    AppointmentDateError,
    StoreUnavailableError,
)
from vitalcheck.domain.models import (
    AppUser,
    Appointment,
    AppointmentRequest,
    AppointmentStatus,
    AppointmentWithPatient,
    Notification,
    NotificationType,
    PatientProfile,
)
from vitalcheck.rules.appointments import (
    DEFAULT_CONFLICT_WINDOW_MINUTES,
    has_appointment_conflict,
    validate_appointment_date,
)
from vitalcheck.rules.text import anonymize_email
from vitalcheck.rules.timestamps import format_instant, utc_now
from vitalcheck.services.base import (
    APPOINTMENTS,
    NOTIFICATIONS,
    PATIENTS,
    USERS,
    Clock,
    from_document,
    guarded,
)
from vitalcheck.store.ports import DocumentStoreProtocol, QueryFilter

_ACTIVE = [AppointmentStatus.APPROVED.value, AppointmentStatus.PENDING.value]


class AppointmentService:
    """Appointment requests, triage and doctor dashboards."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        *,
        conflict_window_minutes: int = DEFAULT_CONFLICT_WINDOW_MINUTES,
        max_concurrency: int = 8,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._window = conflict_window_minutes
        self._max_concurrency = max_concurrency
        self._clock = clock

    async def request_appointment(self, request: AppointmentRequest) -> str:
        """Validate and store a new pending appointment, returning its id.

        Raises:
            AppointmentDateError: If the preferred time is invalid or not in the future.
            AppointmentConflictError: If the doctor has an active appointment too close by.
            StoreUnavailableError: If the store fails.
        """
        logger.info(
            "Appointment requested: doctor={}, preferred_time={}",
            request.doctor_id,
            request.preferred_time,
        )

        now = self._clock()
        date_error = validate_appointment_date(request.preferred_time, now=now)
        if date_error:
            raise AppointmentDateError(date_error, preferred_time=request.preferred_time)

        documents = await guarded(
            "Conflict lookup",
            self._store.query(
                APPOINTMENTS,
                [
                    QueryFilter(field="doctorId", value=request.doctor_id),
                    QueryFilter(field="status", op="in", value=_ACTIVE),
                ],
                order_by="preferredTime",
            ),
        )
        existing = [
            {"preferred_time": d.data.get("preferredTime"), "status": d.data.get("status")}
            for d in documents
        ]
        if has_appointment_conflict(existing, request.preferred_time, self._window):
            logger.info("Appointment request rejected: conflict for doctor={}", request.doctor_id)
            raise AppointmentConflictError(request.preferred_time, doctor_id=request.doctor_id)

        appointment = Appointment(
            **request.model_dump(),
            status=AppointmentStatus.PENDING,
            created_at=format_instant(now),
        )
        appointment_id = await guarded(
            "Appointment write", self._store.add(APPOINTMENTS, appointment.to_document())
        )
        logger.info("Appointment created: id={}", appointment_id)

        try:
            await self.notify_doctor(appointment_id, appointment)
        except StoreUnavailableError as exc:
            logger.warning("Doctor notification for appointment {} failed: {}", appointment_id, exc)
        return appointment_id

    async def notify_doctor(self, appointment_id: str, appointment: Appointment) -> str:
        """Create the doctor's in-app notification for a new appointment."""
        notification = Notification(
            user_id=appointment.doctor_id,
            type=NotificationType.APPOINTMENT,
            payload={
                "appointmentId": appointment_id,
                "patientId": appointment.patient_id,
                "preferredTime": appointment.preferred_time,
                "reason": appointment.reason,
            },
            created_at=format_instant(self._clock()),
        )
        return await guarded(
            "Notification write", self._store.add(NOTIFICATIONS, notification.to_document())
        )

    async def update_status(
        self, appointment_id: str, status: AppointmentStatus, notes: str | None = None
    ) -> None:
        """Record a doctor's triage decision.

        Raises:
            DocumentNotFoundError: If the appointment does not exist.
        """
        logger.info("Updating appointment {} to {}", appointment_id, status.value)
        await guarded(
            "Appointment status update",
            self._store.update(
                APPOINTMENTS,
                appointment_id,
                {
                    "status": status.value,
                    "notes": notes,
                    "updatedAt": format_instant(self._clock()),
                },
            ),
        )

    async def list_for_patient(self, patient_id: str) -> list[Appointment]:
        return await self._list("patientId", patient_id)

    async def list_for_doctor(self, doctor_id: str) -> list[Appointment]:
        return await self._list("doctorId", doctor_id)

    async def _list(self, field: str, value: str) -> list[Appointment]:
        documents = await guarded(
            "Appointment listing",
            self._store.query(
                APPOINTMENTS,
                [QueryFilter(field=field, value=value)],
                order_by="createdAt",
                descending=True,
            ),
        )
        return [from_document(Appointment, d) for d in documents]

    async def doctor_appointments_with_patient(
        self, doctor_id: str
    ) -> list[AppointmentWithPatient]:
        """A doctor's appointments, each with the patient's profile resolved."""
        appointments = await self.list_for_doctor(doctor_id)
        if not appointments:
            return []

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def lookup(patient_id: str) -> PatientProfile | None:
            async with semaphore:
                document = await guarded(
                    "Patient lookup", self._store.get(PATIENTS, patient_id)
                )
            return from_document(PatientProfile, document) if document else None

        profiles = await asyncio.gather(*(lookup(a.patient_id) for a in appointments))
        logger.debug("Resolved {} patient profile(s) for doctor {}", len(profiles), doctor_id)

        return [
            AppointmentWithPatient.model_validate({**appointment.model_dump(), "patient": profile})
            for appointment, profile in zip(appointments, profiles)
        ]

    async def search_patients_by_contact(self, term: str) -> list[AppUser]:
        """Case-insensitive substring match on user name or email."""
        lower = term.lower()
        documents = await guarded("User search", self._store.query(USERS))
        users = [from_document(AppUser, d, id_field="uid") for d in documents]
        matches = [u for u in users if lower in u.name.lower() or lower in u.email.lower()]
        logger.info("User search matched {} of {} user(s)", len(matches), len(users))
        logger.debug("User search matches: {}", [anonymize_email(u.email) for u in matches])
        return matches
