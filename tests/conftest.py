import datetime as dt

import pytest

from vitalcheck.config import AppConfig
from vitalcheck.services.factory import Services, build_services
from vitalcheck.store.adapters.memory import InMemoryDocumentStore

NOW = dt.datetime(2025, 1, 1, 8, 0, tzinfo=dt.timezone.utc)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def config() -> AppConfig:
    return AppConfig()


@pytest.fixture
def services(config: AppConfig, store: InMemoryDocumentStore) -> Services:
    return build_services(config, store, clock=lambda: NOW)
