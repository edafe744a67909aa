from collections.abc import Mapping, Sequence


class VitalCheckError(Exception):
    """Base exception for all VitalCheck errors."""


class StoreUnavailableError(VitalCheckError):
    """Raised when the document store is unreachable or rejects a request."""


class DocumentNotFoundError(VitalCheckError):
    """Raised when a document expected to exist is missing."""

    def __init__(self, collection: str, doc_id: str) -> None:
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"Document not found: {collection}/{doc_id}")


class ValidationFailedError(VitalCheckError):
    """Raised when user input fails validation.

    ``errors`` holds every problem that was detected, either as a
    field -> message mapping or as an ordered list. The exception message is
    the first of them.
    """

    def __init__(self, errors: Mapping[str, str] | Sequence[str]) -> None:
        self.errors = errors
        messages = list(errors.values()) if isinstance(errors, Mapping) else list(errors)
        super().__init__(messages[0] if messages else "Invalid input")


class AppointmentDateError(VitalCheckError):
    """Raised when an appointment's preferred time is invalid or not in the future."""

    def __init__(self, reason: str, preferred_time: str | None = None) -> None:
        self.reason = reason
        self.preferred_time = preferred_time
        super().__init__(reason)


class AppointmentConflictError(VitalCheckError):
    """Raised when a requested time overlaps an active appointment of the same doctor."""

    def __init__(self, preferred_time: str, doctor_id: str | None = None) -> None:
        self.preferred_time = preferred_time
        self.doctor_id = doctor_id
        super().__init__("Selected time conflicts with another appointment")
