import pytest
from loguru import logger

from vitalcheck.domain.exceptions import (
    AppointmentConflictError,
    AppointmentDateError,
    DocumentNotFoundError,
    StoreUnavailableError,
)
from vitalcheck.domain.models import AppointmentRequest, AppointmentStatus, NotificationType
from vitalcheck.services.factory import Services
from vitalcheck.store.adapters.memory import InMemoryDocumentStore

# Fixtures (store, services) provided by tests/conftest.py; the clock is 2025-01-01T08:00Z.


def _request(
    preferred_time: str = "2025-01-02T09:00:00Z", doctor_id: str = "d1"
) -> AppointmentRequest:
    return AppointmentRequest(
        patient_id="p1", doctor_id=doctor_id, preferred_time=preferred_time, reason="Checkup"
    )


async def _seed_appointment(
    store: InMemoryDocumentStore,
    doc_id: str,
    *,
    preferred_time: str,
    status: str = "approved",
    doctor_id: str = "d1",
    patient_id: str = "p1",
    created_at: str = "2024-12-01T00:00:00.000Z",
) -> None:
    await store.set(
        "appointments",
        doc_id,
        {
            "patientId": patient_id,
            "doctorId": doctor_id,
            "preferredTime": preferred_time,
            "reason": "Existing",
            "status": status,
            "createdAt": created_at,
        },
    )


class TestRequestAppointment:
    @pytest.mark.asyncio
    async def test_creates_pending_appointment(
        self, services: Services, store: InMemoryDocumentStore
    ) -> None:
        appointment_id = await services.appointments.request_appointment(_request())

        stored = store.collections["appointments"][appointment_id]
        assert stored == {
            "patientId": "p1",
            "doctorId": "d1",
            "preferredTime": "2025-01-02T09:00:00Z",
            "reason": "Checkup",
            "status": "pending",
            "createdAt": "2025-01-01T08:00:00.000Z",
        }

    @pytest.mark.asyncio
    async def test_notifies_doctor(self, services: Services, store: InMemoryDocumentStore) -> None:
        appointment_id = await services.appointments.request_appointment(_request())

        (notification,) = store.collections["notifications"].values()
        assert notification == {
            "userId": "d1",
            "type": NotificationType.APPOINTMENT.value,
            "payload": {
                "appointmentId": appointment_id,
                "patientId": "p1",
                "preferredTime": "2025-01-02T09:00:00Z",
                "reason": "Checkup",
            },
            "read": False,
            "createdAt": "2025-01-01T08:00:00.000Z",
        }

    @pytest.mark.asyncio
    async def test_rejects_past_time_before_any_write(
        self, services: Services, store: InMemoryDocumentStore
    ) -> None:
        with pytest.raises(AppointmentDateError, match="past"):
            await services.appointments.request_appointment(_request("2000-01-01T09:00:00Z"))

        assert store.collections.get("appointments", {}) == {}

    @pytest.mark.asyncio
    async def test_rejects_invalid_time(self, services: Services) -> None:
        with pytest.raises(AppointmentDateError, match="invalid"):
            await services.appointments.request_appointment(_request("next tuesday"))

    @pytest.mark.asyncio
    async def test_rejects_conflict(self, services: Services, store: InMemoryDocumentStore) -> None:
        await _seed_appointment(store, "a1", preferred_time="2025-01-02T09:15:00Z")

        with pytest.raises(AppointmentConflictError, match="conflicts") as exc_info:
            await services.appointments.request_appointment(_request())

        assert exc_info.value.doctor_id == "d1"
        assert list(store.collections["appointments"]) == ["a1"]

    @pytest.mark.asyncio
    async def test_ignores_other_doctors_and_inactive_appointments(
        self, services: Services, store: InMemoryDocumentStore
    ) -> None:
        await _seed_appointment(store, "a1", preferred_time="2025-01-02T09:00:00Z", doctor_id="d2")
        await _seed_appointment(
            store, "a2", preferred_time="2025-01-02T09:00:00Z", status="rejected"
        )
        await _seed_appointment(
            store, "a3", preferred_time="2025-01-02T09:10:00Z", status="completed"
        )

        appointment_id = await services.appointments.request_appointment(_request())

        assert appointment_id in store.collections["appointments"]

    @pytest.mark.asyncio
    async def test_skips_incomplete_stored_appointments(
        self, services: Services, store: InMemoryDocumentStore
    ) -> None:
        await store.set(
            "appointments",
            "legacy",
            {"doctorId": "d1", "preferredTime": "2025-01-03T09:00:00Z", "status": "approved"},
        )
        await store.set(
            "appointments",
            "broken",
            {"doctorId": "d1", "preferredTime": 1735808400, "status": "pending"},
        )

        appointment_id = await services.appointments.request_appointment(_request())

        assert appointment_id in store.collections["appointments"]

    @pytest.mark.asyncio
    async def test_incomplete_stored_appointment_still_conflicts(
        self, services: Services, store: InMemoryDocumentStore
    ) -> None:
        await store.set(
            "appointments",
            "legacy",
            {"doctorId": "d1", "preferredTime": "2025-01-02T09:20:00Z", "status": "approved"},
        )

        with pytest.raises(AppointmentConflictError):
            await services.appointments.request_appointment(_request())

    @pytest.mark.asyncio
    async def test_wraps_store_failure(
        self, services: Services, store: InMemoryDocumentStore
    ) -> None:
        store.error = RuntimeError("connection reset")

        with pytest.raises(StoreUnavailableError, match="Conflict lookup failed"):
            await services.appointments.request_appointment(_request())


class TestUpdateStatus:
    @pytest.mark.asyncio
    async def test_records_decision(self, services: Services, store: InMemoryDocumentStore) -> None:
        await _seed_appointment(
            store, "a1", preferred_time="2025-01-02T09:00:00Z", status="pending"
        )

        await services.appointments.update_status("a1", AppointmentStatus.APPROVED, "See you then")

        stored = store.collections["appointments"]["a1"]
        assert stored["status"] == "approved"
        assert stored["notes"] == "See you then"
        assert stored["updatedAt"] == "2025-01-01T08:00:00.000Z"

    @pytest.mark.asyncio
    async def test_missing_appointment(self, services: Services) -> None:
        with pytest.raises(DocumentNotFoundError):
            await services.appointments.update_status("nope", AppointmentStatus.REJECTED)


class TestListings:
    @pytest.mark.asyncio
    async def test_lists_newest_first(
        self, services: Services, store: InMemoryDocumentStore
    ) -> None:
        await _seed_appointment(
            store, "old", preferred_time="2025-02-01T09:00:00Z", created_at="2024-12-01T00:00:00Z"
        )
        await _seed_appointment(
            store, "new", preferred_time="2025-03-01T09:00:00Z", created_at="2024-12-05T00:00:00Z"
        )

        for_patient = await services.appointments.list_for_patient("p1")
        for_doctor = await services.appointments.list_for_doctor("d1")

        assert [a.id for a in for_patient] == ["new", "old"]
        assert [a.id for a in for_doctor] == ["new", "old"]
        assert for_patient[0].status == AppointmentStatus.APPROVED

    @pytest.mark.asyncio
    async def test_doctor_view_resolves_patients(
        self, services: Services, store: InMemoryDocumentStore
    ) -> None:
        await store.set("patients", "p1", {"userId": "p1", "name": "Ana Lopez"})
        await _seed_appointment(store, "a1", preferred_time="2025-02-01T09:00:00Z")
        await _seed_appointment(
            store, "a2", preferred_time="2025-02-02T09:00:00Z", patient_id="ghost"
        )

        rows = await services.appointments.doctor_appointments_with_patient("d1")

        by_id = {row.id: row for row in rows}
        assert by_id["a1"].patient is not None
        assert by_id["a1"].patient.name == "Ana Lopez"
        assert by_id["a1"].patient.id == "p1"
        assert by_id["a2"].patient is None

    @pytest.mark.asyncio
    async def test_doctor_view_empty(self, services: Services) -> None:
        assert await services.appointments.doctor_appointments_with_patient("d1") == []

    @pytest.mark.asyncio
    async def test_search_by_contact(
        self, services: Services, store: InMemoryDocumentStore
    ) -> None:
        await store.set(
            "users", "u1", {"email": "ana@example.org", "name": "Ana", "role": "patient"}
        )
        await store.set("users", "u2", {"email": "bo@clinic.org", "name": "Bo", "role": "doctor"})

        by_name = await services.appointments.search_patients_by_contact("ANA")
        by_email = await services.appointments.search_patients_by_contact("clinic")

        assert [u.uid for u in by_name] == ["u1"]
        assert [u.uid for u in by_email] == ["u2"]

    @pytest.mark.asyncio
    async def test_search_logs_masked_emails(
        self, services: Services, store: InMemoryDocumentStore
    ) -> None:
        await store.set(
            "users", "u1", {"email": "ana.lopez@example.org", "name": "Ana", "role": "patient"}
        )
        messages: list[str] = []
        sink_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")

        try:
            await services.appointments.search_patients_by_contact("ana")
        finally:
            logger.remove(sink_id)

        logged = "\n".join(messages)
        assert "a***z@example.org" in logged
        assert "ana.lopez@example.org" not in logged
