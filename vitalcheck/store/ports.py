from collections.abc import Mapping, Sequence
from typing import Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict

FilterOp = Literal["==", "in", "<", "<=", ">", ">="]


class QueryFilter(BaseModel):
    """A single field condition. ``field`` may be a dotted path into a map."""

    model_config = ConfigDict(frozen=True)

    field: str
    op: FilterOp = "=="
    value: Any


class Document(BaseModel):
    """A stored document: its id plus the raw field mapping."""

    model_config = ConfigDict(frozen=True)

    id: str
    data: dict[str, Any]


class DocumentStoreProtocol(Protocol):
    """Low-level interface to the managed document database."""

    async def get(self, collection: str, doc_id: str) -> Document | None:
        """Fetch a document, or ``None`` if it does not exist."""
        ...

    async def add(self, collection: str, data: Mapping[str, Any]) -> str:
        """Create a document with a generated id and return the id."""
        ...

    async def set(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        """Create or overwrite a document."""
        ...

    async def update(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        """Overwrite the given fields of an existing document.

        Raises:
            DocumentNotFoundError: If the document does not exist.
        """
        ...

    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document. Deleting a missing document is not an error."""
        ...

    async def query(
        self,
        collection: str,
        filters: Sequence[QueryFilter] = (),
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]:
        """Return the documents matching every filter."""
        ...

    async def batch_add(self, collection: str, items: Sequence[Mapping[str, Any]]) -> list[str]:
        """Create several documents in one write and return their ids."""
        ...

    async def health_check(self) -> bool:
        """Check if the store is reachable."""
        ...

    async def close(self) -> None:
        """Release resources."""
        ...
