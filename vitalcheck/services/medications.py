from collections.abc import Mapping
from typing import Any

from loguru import logger
from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from vitalcheck.domain.exceptions import DocumentNotFoundError, ValidationFailedError
from vitalcheck.domain.models import Medication, MedicationRecord
from vitalcheck.rules.medications import validate_medication_input
from vitalcheck.rules.timestamps import format_instant, utc_now
from vitalcheck.services.base import MEDICATIONS, Clock, from_document, guarded
from vitalcheck.store.ports import DocumentStoreProtocol, QueryFilter


def _check(record: MedicationRecord) -> None:
    errors = validate_medication_input(
        record.name, record.dose, record.schedule, record.start_date, record.end_date
    )
    if errors:
        raise ValidationFailedError(errors)


class MedicationService:
    """Create, edit and list a patient's medications."""

    def __init__(self, store: DocumentStoreProtocol, *, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock

    async def create(self, record: MedicationRecord) -> str:
        """Validate and store a medication.

        Raises:
            ValidationFailedError: With every problem found in the entry.
        """
        _check(record)
        now = format_instant(self._clock())
        document = {**record.to_document(), "createdAt": now, "updatedAt": now}
        medication_id = await guarded("Medication write", self._store.add(MEDICATIONS, document))
        logger.info("Medication created: id={}", medication_id)
        return medication_id

    async def update(self, medication_id: str, changes: Mapping[str, Any]) -> Medication:
        """Apply ``changes`` (snake_case field names) and revalidate the merged record.

        Raises:
            DocumentNotFoundError: If the medication does not exist.
            ValidationFailedError: If the merged record is invalid.
        """
        unknown = sorted(set(changes) - set(MedicationRecord.model_fields))
        if unknown:
            raise ValidationFailedError([f"Unknown medication field: {key}" for key in unknown])

        current = await self.get(medication_id)

        try:
            merged = Medication.model_validate({**current.model_dump(), **changes})
        except ValidationError as exc:
            raise ValidationFailedError(
                [f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors()]
            ) from exc
        _check(merged)

        document = merged.model_dump(by_alias=True, mode="json")
        fields = {to_camel(key): document[to_camel(key)] for key in changes}
        fields["updatedAt"] = format_instant(self._clock())
        await guarded("Medication update", self._store.update(MEDICATIONS, medication_id, fields))
        logger.info("Medication updated: id={}, fields={}", medication_id, sorted(fields))
        return merged

    async def get(self, medication_id: str) -> Medication:
        document = await guarded("Medication lookup", self._store.get(MEDICATIONS, medication_id))
        if document is None:
            raise DocumentNotFoundError(MEDICATIONS, medication_id)
        return from_document(Medication, document)

    async def delete(self, medication_id: str) -> None:
        await guarded("Medication delete", self._store.delete(MEDICATIONS, medication_id))
        logger.info("Medication deleted: id={}", medication_id)

    async def list_for_patient(self, patient_id: str) -> list[Medication]:
        documents = await guarded(
            "Medication listing",
            self._store.query(
                MEDICATIONS, [QueryFilter(field="patientId", value=patient_id)], order_by="name"
            ),
        )
        return [from_document(Medication, d) for d in documents]
