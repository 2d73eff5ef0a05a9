"""
Configuration settings for the Reply Labeler.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development (see .env.example).

Settings are frozen: build one instance at startup and pass it by reference.
"""

from functools import lru_cache
from typing import Annotated, Literal, Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


CommaList = Annotated[list[str], NoDecode]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # === Application ===
    APP_NAME: str = "Reply Labeler"
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Jetstream ===
    JETSTREAM_URL: str = "wss://jetstream2.us-west.bsky.network/subscribe"
    JETSTREAM_RECONNECT_MAX_DELAY: float = 60.0  # seconds

    # === AppView (parent post lookups) ===
    APPVIEW_URL: str = "https://public.api.bsky.app"
    APPVIEW_TIMEOUT: float = 10.0  # seconds

    # === Watched operators ===
    WATCHED_OPS: CommaList = []  # DIDs eligible for labeling
    WATCHED_LOG_OPS: CommaList = []  # DIDs eligible for audit logging only

    # === Label policy ===
    PROFILE: Literal["classifier", "domain-link"] = "classifier"
    ORACLE_FIELDS: CommaList = ["bad_faith", "off_topic", "funny"]
    LOGGED_LABELS: CommaList = []
    LOG_NO_LABEL: bool = False
    FLAGGED_DOMAINS: CommaList = []  # Used by the domain-link profile
    DRY_RUN: bool = False  # Log decisions without calling the labeler

    # === Labeler ===
    LABELER_URL: str = "http://localhost:3000"
    LABELER_KEY: str = ""
    LABELER_TIMEOUT: float = 10.0  # seconds

    # === Classification oracle (OpenAI-compatible, e.g. LM Studio) ===
    ORACLE_BASE_URL: str = "http://localhost:1234"
    ORACLE_ENDPOINT: str = "/v1/chat/completions"
    ORACLE_MODEL: str = "google/gemma-3-27b"
    ORACLE_API_KEY: Optional[str] = None
    ORACLE_API_KEY_TYPE: Literal["bearer", "x-api-key"] = "bearer"
    ORACLE_TIMEOUT: float = 30.0  # seconds, per classification
    ORACLE_TEMPERATURE: float = 0.7
    ORACLE_MAX_TOKENS: int = 100

    # === Post cache ===
    POST_CACHE_SIZE: int = 100
    POST_CACHE_TTL_SECONDS: float = 3600.0

    # === Retry (1 attempt = no retry) ===
    ORACLE_MAX_ATTEMPTS: int = 1
    EMIT_MAX_ATTEMPTS: int = 1
    RETRY_BACKOFF_BASE: float = 2.0

    # === Redis (audit log, emission ledger, DLQ) ===
    REDIS_URL: Optional[str] = None
    REDIS_MAX_CONNECTIONS: int = 10

    # === Idempotence & dead letters ===
    EMIT_DEDUPE_TTL_SECONDS: int = 0  # 0 disables the emission ledger
    DLQ_ENABLED: bool = False
    DLQ_MAX_ENTRIES: int = 10000

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True
    METRICS_PORT: int = 9090

    @field_validator(
        "WATCHED_OPS",
        "WATCHED_LOG_OPS",
        "ORACLE_FIELDS",
        "LOGGED_LABELS",
        "FLAGGED_DOMAINS",
        mode="before",
    )
    @classmethod
    def split_comma_list(cls, value):
        """Accept "a,b,c" from the environment as well as real lists."""
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @model_validator(mode="after")
    def check_persistence(self) -> "Settings":
        if (self.LOGGED_LABELS or self.LOG_NO_LABEL) and not self.REDIS_URL:
            raise ValueError(
                "attempting to log labels, but REDIS_URL is not configured"
            )
        if self.DLQ_ENABLED and not self.REDIS_URL:
            raise ValueError("DLQ_ENABLED requires REDIS_URL")
        if self.PROFILE == "domain-link" and not self.FLAGGED_DOMAINS:
            raise ValueError("domain-link profile requires FLAGGED_DOMAINS")
        return self

    @property
    def persistence_enabled(self) -> bool:
        return bool(self.REDIS_URL)


@lru_cache()
def get_settings() -> Settings:
    """
    Get settings singleton.

    Raises:
        pydantic.ValidationError: invalid or inconsistent configuration
    """
    return Settings()
