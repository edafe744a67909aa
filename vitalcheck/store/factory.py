from typing import Callable

from loguru import logger

from vitalcheck.config import AppConfig, StoreAdapter
from vitalcheck.store.adapters.firestore import FirestoreDocumentStore
from vitalcheck.store.adapters.memory import InMemoryDocumentStore
from vitalcheck.store.ports import DocumentStoreProtocol


def _build_memory(config: AppConfig) -> DocumentStoreProtocol:
    return InMemoryDocumentStore()


def _build_firestore(config: AppConfig) -> DocumentStoreProtocol:
    if not config.store.project_id:
        raise ValueError("FIRESTORE_PROJECT_ID must be set to use the firestore adapter")
    return FirestoreDocumentStore(
        project_id=config.store.project_id,
        database=config.store.database,
        base_url=config.store.base_url,
        api_key=config.store.api_key,
        token=config.store.token,
        timeout_seconds=config.store.timeout_seconds,
    )


_BUILDERS: dict[StoreAdapter, Callable[[AppConfig], DocumentStoreProtocol]] = {
    StoreAdapter.MEMORY: _build_memory,
    StoreAdapter.FIRESTORE: _build_firestore,
}


def build_document_store(config: AppConfig) -> DocumentStoreProtocol:
    """Build the document store selected by config."""
    adapter = config.store.adapter
    logger.info("Building document store with adapter: {}", adapter.value)
    return _BUILDERS[adapter](config)
