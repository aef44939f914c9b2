"""Application settings loaded from the environment."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Insyd Notification System"
    app_version: str = "1.0.0"
    environment: Literal["development", "test", "staging", "production"] = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "insyd"
    mongodb_max_pool_size: int = Field(default=10, ge=1)
    mongodb_server_selection_timeout_ms: int = Field(default=5000, ge=0)
    mongodb_socket_timeout_ms: int = Field(default=45000, ge=0)

    # Credentials fall back to the default boto3 chain when unset.
    aws_region: str = "eu-north-1"
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    event_bus_name: str = "insyd-notification-bus"
    event_source: str = "insyd.social"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


settings = Settings()
