from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreAdapter(Enum):
    MEMORY = "memory"
    FIRESTORE = "firestore"


class FirestoreConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FIRESTORE_", env_file=".env", extra="ignore")

    project_id: str = ""
    database: str = "(default)"
    base_url: str = "https://firestore.googleapis.com/v1"
    api_key: str = ""
    token: str = ""
    adapter: StoreAdapter = StoreAdapter.MEMORY
    max_concurrency: int = 8
    timeout_seconds: float = 30


class RulesConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="VITALCHECK_", env_file=".env", extra="ignore")

    conflict_window_minutes: int = 30
    recent_vitals_limit: int = 10


class RemindersConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="REMINDERS_", env_file=".env", extra="ignore")

    timezone: str = "America/New_York"
    frequencies: list[str] = ["daily", "weekly"]


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    store: FirestoreConfig = Field(default_factory=lambda: FirestoreConfig())
    rules: RulesConfig = Field(default_factory=lambda: RulesConfig())
    reminders: RemindersConfig = Field(default_factory=lambda: RemindersConfig())
