from collections.abc import Iterable, Mapping

from loguru import logger
from pydantic import ValidationError

from vitalcheck.domain.exceptions import ValidationFailedError
from vitalcheck.domain.models import AnnotatedVital, VitalRecord
from vitalcheck.rules.timestamps import format_instant, utc_now
from vitalcheck.rules.vitals import classify_severity, parse_vital_values, validate_vital_form
from vitalcheck.services.base import VITALS, Clock, from_document, guarded
from vitalcheck.store.ports import DocumentStoreProtocol, QueryFilter


class VitalsService:
    def __init__(
        self,
        store: DocumentStoreProtocol,
        *,
        recent_limit: int = 10,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._recent_limit = recent_limit
        self._clock = clock

    async def log_vitals(
        self,
        patient_id: str,
        values: Mapping[str, object],
        timestamp: str | None = None,
    ) -> str:
        """Validate a vitals form and store it as a reading.

        Raises:
            ValidationFailedError: With the field -> message map from the validator.
        """
        errors = validate_vital_form(values)
        if errors:
            raise ValidationFailedError(errors)

        try:
            record = VitalRecord.model_validate(
                {
                    **parse_vital_values(values),
                    "notes": values.get("notes") or None,
                    "patient_id": patient_id,
                    "timestamp": timestamp or format_instant(self._clock()),
                }
            )
        except ValidationError as exc:
            raise ValidationFailedError(
                {".".join(map(str, e["loc"])): e["msg"] for e in exc.errors()}
            ) from exc
        vital_id = await guarded("Vitals write", self._store.add(VITALS, record.to_document()))
        logger.info("Vitals logged: id={}", vital_id)
        return vital_id

    async def list_for_patient(
        self, patient_id: str, limit: int | None = None
    ) -> list[VitalRecord]:
        """A patient's readings, newest first."""
        documents = await guarded(
            "Vitals listing",
            self._store.query(
                VITALS,
                [QueryFilter(field="patientId", value=patient_id)],
                order_by="timestamp",
                descending=True,
                limit=limit,
            ),
        )
        return [from_document(VitalRecord, d) for d in documents]

    async def fetch_recent(self, patient_id: str) -> list[VitalRecord]:
        return await self.list_for_patient(patient_id, limit=self._recent_limit)

    @staticmethod
    def annotate(records: Iterable[VitalRecord]) -> list[AnnotatedVital]:
        return [AnnotatedVital(record=r, severity=classify_severity(r)) for r in records]
