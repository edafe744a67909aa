import copy
import itertools
from collections.abc import Mapping, Sequence
from typing import Any

from vitalcheck.domain.exceptions import DocumentNotFoundError
from vitalcheck.store.ports import Document, QueryFilter


def lookup_path(data: Mapping[str, Any], path: str) -> Any:
    """Resolve a dotted field path such as ``schedule.frequency``."""
    value: Any = data
    for part in path.split("."):
        if not isinstance(value, Mapping) or part not in value:
            return None
        value = value[part]
    return value


def _matches(data: Mapping[str, Any], condition: QueryFilter) -> bool:
    value = lookup_path(data, condition.field)
    if condition.op == "==":
        return value == condition.value
    if condition.op == "in":
        return value in condition.value
    if value is None:
        return False
    try:
        if condition.op == "<":
            return value < condition.value
        if condition.op == "<=":
            return value <= condition.value
        if condition.op == ">":
            return value > condition.value
        return value >= condition.value
    except TypeError:
        return False


class InMemoryDocumentStore:
    """Dict-backed implementation of the DocumentStoreProtocol protocol.

    Used for local runs and as the test double for services. Seed data with
    ``set``; set ``error`` to make the next call raise it.

    Generated ids are ``<collection>-<n>`` so tests can predict them.
    """

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.batches: list[tuple[str, list[str]]] = []
        self.closed: bool = False
        self.error: Exception | None = None
        self._ids = itertools.count(1)

    def _raise_if_failing(self) -> None:
        if self.error:
            raise self.error

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self.collections.setdefault(name, {})

    def _new_id(self, collection: str) -> str:
        return f"{collection}-{next(self._ids)}"

    async def get(self, collection: str, doc_id: str) -> Document | None:
        self._raise_if_failing()
        data = self._collection(collection).get(doc_id)
        if data is None:
            return None
        return Document(id=doc_id, data=copy.deepcopy(data))

    async def add(self, collection: str, data: Mapping[str, Any]) -> str:
        self._raise_if_failing()
        doc_id = self._new_id(collection)
        self._collection(collection)[doc_id] = copy.deepcopy(dict(data))
        return doc_id

    async def set(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        self._raise_if_failing()
        self._collection(collection)[doc_id] = copy.deepcopy(dict(data))

    async def update(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        self._raise_if_failing()
        existing = self._collection(collection).get(doc_id)
        if existing is None:
            raise DocumentNotFoundError(collection, doc_id)
        existing.update(copy.deepcopy(dict(data)))

    async def delete(self, collection: str, doc_id: str) -> None:
        self._raise_if_failing()
        self._collection(collection).pop(doc_id, None)

    async def query(
        self,
        collection: str,
        filters: Sequence[QueryFilter] = (),
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]:
        self._raise_if_failing()
        rows = [
            Document(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self._collection(collection).items()
            if all(_matches(data, f) for f in filters)
        ]
        if order_by:
            # Documents missing the field are dropped, as Firestore does.
            rows = [r for r in rows if lookup_path(r.data, order_by) is not None]
            rows.sort(key=lambda r: lookup_path(r.data, order_by), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    async def batch_add(self, collection: str, items: Sequence[Mapping[str, Any]]) -> list[str]:
        self._raise_if_failing()
        ids = [self._new_id(collection) for _ in items]
        for doc_id, item in zip(ids, items):
            self._collection(collection)[doc_id] = copy.deepcopy(dict(item))
        self.batches.append((collection, ids))
        return ids

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        self.closed = True
