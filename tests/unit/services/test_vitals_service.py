import pytest

from vitalcheck.domain.exceptions import StoreUnavailableError, ValidationFailedError
from vitalcheck.domain.models import VitalSeverity
from vitalcheck.services.factory import Services
from vitalcheck.store.adapters.memory import InMemoryDocumentStore

FORM = {"temperature": "37.2", "heart_rate": 80, "bp_sys": 120, "bp_dia": 80, "spo2": 98}


class TestLogVitals:
    @pytest.mark.asyncio
    async def test_stores_reading(self, services: Services, store: InMemoryDocumentStore) -> None:
        vital_id = await services.vitals.log_vitals("p1", {**FORM, "notes": "after walk"})

        assert store.collections["vitals"][vital_id] == {
            "temperature": 37.2,
            "heartRate": 80.0,
            "bpSys": 120.0,
            "bpDia": 80.0,
            "spo2": 98.0,
            "notes": "after walk",
            "patientId": "p1",
            "timestamp": "2025-01-01T08:00:00.000Z",
        }

    @pytest.mark.asyncio
    async def test_keeps_supplied_timestamp(
        self, services: Services, store: InMemoryDocumentStore
    ) -> None:
        vital_id = await services.vitals.log_vitals("p1", FORM, timestamp="2024-12-31T20:00:00Z")

        assert store.collections["vitals"][vital_id]["timestamp"] == "2024-12-31T20:00:00Z"

    @pytest.mark.asyncio
    async def test_stores_parsed_numbers(
        self, services: Services, store: InMemoryDocumentStore
    ) -> None:
        vital_id = await services.vitals.log_vitals("p1", {**FORM, "temperature": "٣٧"})

        assert store.collections["vitals"][vital_id]["temperature"] == 37.0

    @pytest.mark.asyncio
    async def test_rejects_non_text_notes(
        self, services: Services, store: InMemoryDocumentStore
    ) -> None:
        with pytest.raises(ValidationFailedError) as exc_info:
            await services.vitals.log_vitals("p1", {**FORM, "notes": 42})

        assert set(exc_info.value.errors) == {"notes"}
        assert "vitals" not in store.collections

    @pytest.mark.asyncio
    async def test_rejects_invalid_form(
        self, services: Services, store: InMemoryDocumentStore
    ) -> None:
        with pytest.raises(ValidationFailedError, match="Systolic pressure") as exc_info:
            await services.vitals.log_vitals("p1", {**FORM, "bp_sys": 80})

        assert set(exc_info.value.errors) == {"bp_sys", "bp_dia"}
        assert "vitals" not in store.collections

    @pytest.mark.asyncio
    async def test_wraps_store_failure(
        self, services: Services, store: InMemoryDocumentStore
    ) -> None:
        store.error = OSError("disk full")

        with pytest.raises(StoreUnavailableError, match="Vitals write failed: disk full"):
            await services.vitals.log_vitals("p1", FORM)


class TestFetchRecent:
    @pytest.mark.asyncio
    async def test_newest_first_and_limited(
        self, services: Services, store: InMemoryDocumentStore
    ) -> None:
        for day in range(1, 13):
            await services.vitals.log_vitals("p1", FORM, timestamp=f"2024-12-{day:02d}T08:00:00Z")
        await services.vitals.log_vitals("p2", FORM, timestamp="2024-12-31T08:00:00Z")

        recent = await services.vitals.fetch_recent("p1")

        assert len(recent) == 10
        assert recent[0].timestamp == "2024-12-12T08:00:00Z"
        assert all(r.patient_id == "p1" for r in recent)

    @pytest.mark.asyncio
    async def test_annotate_classifies_each_reading(self, services: Services) -> None:
        await services.vitals.log_vitals("p1", {**FORM, "temperature": 39})
        await services.vitals.log_vitals(
            "p1", {**FORM, "spo2": 99}, timestamp="2024-12-01T00:00:00Z"
        )

        annotated = services.vitals.annotate(await services.vitals.list_for_patient("p1"))

        assert [a.severity for a in annotated] == [VitalSeverity.HIGH, VitalSeverity.LOW]
