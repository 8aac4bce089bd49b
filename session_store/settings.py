from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SESSION_STORE_", env_file=".env", extra="ignore")

    # MongoDB
    MONGO_URI: str = Field(default="mongodb://localhost:27017")
    MONGO_DB: str = Field(default="sessions")
    COLLECTION: str = Field(default="sessions")

    # Expiry (milliseconds)
    DEFAULT_LIFETIME_MS: int = Field(default=21_600_000)  # 6 hours
    REAP_INTERVAL_MS: int = Field(default=21_600_000)
    REAP_ENABLED: bool = Field(default=True)

    LOG_LEVEL: str = Field(default="INFO")


settings = Settings()
