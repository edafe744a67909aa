from collections.abc import Sequence

from loguru import logger

from vitalcheck.domain.exceptions import ValidationFailedError
from vitalcheck.domain.models import SymptomEntry
from vitalcheck.rules.text import parse_tags, sanitize_text
from vitalcheck.rules.timestamps import format_instant, utc_now
from vitalcheck.services.base import SYMPTOMS, Clock, from_document, guarded
from vitalcheck.store.ports import DocumentStoreProtocol, QueryFilter

EMPTY_SYMPTOM = "Describe your symptom before submitting."


class SymptomService:
    def __init__(self, store: DocumentStoreProtocol, *, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock

    async def log_symptom(
        self, patient_id: str, text: str, tags: str | Sequence[str] = ""
    ) -> str:
        """Store a symptom description.

        ``tags`` is either the raw comma-separated form field or a list.
        """
        if not text.strip():
            raise ValidationFailedError([EMPTY_SYMPTOM])

        tag_list = parse_tags(tags) if isinstance(tags, str) else parse_tags(",".join(tags))
        entry = SymptomEntry(
            patient_id=patient_id,
            text=sanitize_text(text),
            tags=tuple(tag_list),
            timestamp=format_instant(self._clock()),
        )
        symptom_id = await guarded("Symptom write", self._store.add(SYMPTOMS, entry.to_document()))
        logger.info("Symptom logged: id={}, tags={}", symptom_id, len(tag_list))
        return symptom_id

    async def list_for_patient(self, patient_id: str) -> list[SymptomEntry]:
        documents = await guarded(
            "Symptom listing",
            self._store.query(
                SYMPTOMS,
                [QueryFilter(field="patientId", value=patient_id)],
                order_by="timestamp",
                descending=True,
            ),
        )
        return [from_document(SymptomEntry, d) for d in documents]
