import uuid
from collections.abc import Mapping, Sequence
from typing import Any

import httpx
from loguru import logger

from vitalcheck.domain.exceptions import DocumentNotFoundError, StoreUnavailableError
from vitalcheck.store.adapters.values import (
    decode_fields,
    document_id,
    encode_fields,
    encode_value,
)
from vitalcheck.store.ports import Document, QueryFilter

_OPERATORS: dict[str, str] = {
    "==": "EQUAL",
    "in": "IN",
    "<": "LESS_THAN",
    "<=": "LESS_THAN_OR_EQUAL",
    ">": "GREATER_THAN",
    ">=": "GREATER_THAN_OR_EQUAL",
}

_HEALTH_CHECK_COLLECTION = "users"


def _field_filter(condition: QueryFilter) -> dict[str, Any]:
    return {
        "fieldFilter": {
            "field": {"fieldPath": condition.field},
            "op": _OPERATORS[condition.op],
            "value": encode_value(condition.value),
        }
    }


def build_structured_query(
    collection: str,
    filters: Sequence[QueryFilter],
    order_by: str | None,
    descending: bool,
    limit: int | None,
) -> dict[str, Any]:
    """Build the ``structuredQuery`` body of a ``:runQuery`` request."""
    query: dict[str, Any] = {"from": [{"collectionId": collection}]}
    if len(filters) == 1:
        query["where"] = _field_filter(filters[0])
    elif filters:
        query["where"] = {
            "compositeFilter": {"op": "AND", "filters": [_field_filter(f) for f in filters]}
        }
    if order_by:
        query["orderBy"] = [
            {
                "field": {"fieldPath": order_by},
                "direction": "DESCENDING" if descending else "ASCENDING",
            }
        ]
    if limit is not None:
        query["limit"] = limit
    return query


class FirestoreDocumentStore:
    """Document store over the Cloud Firestore REST API."""

    def __init__(
        self,
        project_id: str,
        *,
        database: str = "(default)",
        base_url: str = "https://firestore.googleapis.com/v1",
        api_key: str = "",
        token: str = "",
        timeout_seconds: float = 30,
    ) -> None:
        self._root = f"projects/{project_id}/databases/{database}/documents"
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._token = token
        self._client = httpx.AsyncClient(timeout=timeout_seconds)

    def _url(self, path: str = "") -> str:
        return f"{self._base_url}/{self._root}{path}"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _params(self, extra: Sequence[tuple[str, str]] = ()) -> list[tuple[str, str]]:
        params = list(extra)
        if self._api_key:
            params.append(("key", self._api_key))
        return params

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: Sequence[tuple[str, str]] = (),
    ) -> httpx.Response:
        """Send an authenticated request. 404s are returned to the caller."""
        try:
            resp = await self._client.request(
                method,
                url,
                headers=self._headers(),
                json=json,
                params=self._params(params),
            )
        except httpx.HTTPError as exc:
            raise StoreUnavailableError(f"Firestore request failed: {exc}") from exc

        if resp.status_code == 404:
            return resp
        if resp.is_error:
            raise StoreUnavailableError(
                f"Firestore request failed: {resp.status_code} {self._error_message(resp)}"
            )
        return resp

    def _error_message(self, resp: httpx.Response) -> str:
        try:
            payload: dict[str, Any] = resp.json()
        except ValueError:
            return resp.text
        return str(payload.get("error", {}).get("message", resp.text))

    async def get(self, collection: str, doc_id: str) -> Document | None:
        resp = await self._request("GET", self._url(f"/{collection}/{doc_id}"))
        if resp.status_code == 404:
            return None
        data: dict[str, Any] = resp.json()
        return Document(id=doc_id, data=decode_fields(data.get("fields") or {}))

    async def add(self, collection: str, data: Mapping[str, Any]) -> str:
        resp = await self._request(
            "POST", self._url(f"/{collection}"), json={"fields": encode_fields(data)}
        )
        if resp.status_code == 404:
            raise StoreUnavailableError(f"Firestore collection path not found: {collection}")
        created: dict[str, Any] = resp.json()
        return document_id(created.get("name", ""))

    async def set(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        resp = await self._request(
            "PATCH", self._url(f"/{collection}/{doc_id}"), json={"fields": encode_fields(data)}
        )
        if resp.status_code == 404:
            raise StoreUnavailableError(f"Firestore document path not found: {collection}/{doc_id}")

    async def update(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        mask = [("updateMask.fieldPaths", key) for key in data]
        resp = await self._request(
            "PATCH",
            self._url(f"/{collection}/{doc_id}"),
            json={"fields": encode_fields(data)},
            params=[*mask, ("currentDocument.exists", "true")],
        )
        if resp.status_code == 404:
            raise DocumentNotFoundError(collection, doc_id)

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._request("DELETE", self._url(f"/{collection}/{doc_id}"))

    async def query(
        self,
        collection: str,
        filters: Sequence[QueryFilter] = (),
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]:
        body = {
            "structuredQuery": build_structured_query(
                collection, filters, order_by, descending, limit
            )
        }
        resp = await self._request("POST", self._url(":runQuery"), json=body)
        if resp.status_code == 404:
            raise StoreUnavailableError(f"Firestore database not found: {self._root}")

        rows: list[dict[str, Any]] = resp.json()
        documents: list[Document] = []
        # Entries without a document only carry readTime/skippedResults.
        for row in rows:
            raw = row.get("document")
            if not raw:
                continue
            documents.append(
                Document(id=document_id(raw["name"]), data=decode_fields(raw.get("fields") or {}))
            )
        return documents

    async def batch_add(self, collection: str, items: Sequence[Mapping[str, Any]]) -> list[str]:
        ids = [uuid.uuid4().hex[:20] for _ in items]
        if not ids:
            return []
        writes = [
            {
                "update": {
                    "name": f"{self._root}/{collection}/{doc_id}",
                    "fields": encode_fields(item),
                },
                "currentDocument": {"exists": False},
            }
            for doc_id, item in zip(ids, items)
        ]
        resp = await self._request("POST", self._url(":commit"), json={"writes": writes})
        if resp.status_code == 404:
            raise StoreUnavailableError(f"Firestore database not found: {self._root}")
        logger.debug("Committed {} write(s) to {}", len(ids), collection)
        return ids

    async def health_check(self) -> bool:
        try:
            resp = await self._request(
                "GET",
                self._url(f"/{_HEALTH_CHECK_COLLECTION}"),
                params=[("pageSize", "1")],
            )
        except Exception as exc:
            logger.warning("Firestore health check failed: {}", exc)
            return False
        return resp.status_code != 404

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Firestore client closed")
