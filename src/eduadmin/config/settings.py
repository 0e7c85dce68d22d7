from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="EDUADMIN_",
        env_file=".env",
        extra="ignore",
    )

    # Runtime
    ENVIRONMENT: str = Field(default="dev", description="Environment name")
    LOG_LEVEL: str = Field(default="INFO", description="Root log level for the CLI")

    # Admin REST backend
    API_BASE_URL: str = Field(
        default="http://localhost:8000/api", description="Admin REST API base URL"
    )
    API_TOKEN: str = Field(
        default="", description="Bearer token for the admin API; empty means anonymous"
    )
    API_TIMEOUT_SECONDS: float = Field(default=10.0, description="HTTP timeout seconds")
    INSTITUTION_HEADER: str = Field(
        default="x-institution-id", description="Institution header name"
    )
    USER_HEADER: str = Field(default="x-user-id", description="User header name")

    # Data scope selection
    # True: clicking the already-active scope clears the resource type (observed UI).
    # False: conventional radio semantics, re-click is a no-op.
    DATA_SCOPE_RECLICK_CLEARS: bool = Field(
        default=True, description="Re-selecting the active data scope clears it"
    )
    DATA_SCOPE_CONFLICT_PREFERENCE: str = Field(
        default="all",
        description="all|partial: scope kept when a loaded role holds both",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
