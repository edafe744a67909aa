import datetime as dt
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pydantic import BaseModel

from vitalcheck.domain.exceptions import StoreUnavailableError, VitalCheckError
from vitalcheck.store.ports import Document

APPOINTMENTS = "appointments"
MEDICATIONS = "medications"
NOTIFICATIONS = "notifications"
PATIENTS = "patients"
SYMPTOMS = "symptoms"
USERS = "users"
VITALS = "vitals"

Clock = Callable[[], dt.datetime]

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


async def guarded(action: str, call: Awaitable[T]) -> T:
    """Await a store call, wrapping unexpected failures as StoreUnavailableError."""
    try:
        return await call
    except VitalCheckError:
        raise
    except Exception as exc:
        raise StoreUnavailableError(f"{action} failed: {exc}") from exc


def from_document(model: type[M], document: Document, id_field: str = "id") -> M:
    """Build a record model from a stored document; the document id wins."""
    data: dict[str, Any] = {**document.data, id_field: document.id}
    return model.model_validate(data)
