"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - match_radius_km and jitter_degrees default to the reference values (15 km, 0.005°)

Design Decisions:
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pulse.core.domain_types import (
    DEFAULT_JITTER_DEGREES, DEFAULT_MATCH_RADIUS_KM, GeoIndexBackend, LocationStrategy,
)


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = "postgresql+asyncpg://pulse:pulse@db:5432/pulse"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Matching
    match_radius_km: float = DEFAULT_MATCH_RADIUS_KM
    jitter_degrees: float = DEFAULT_JITTER_DEGREES
    location_strategy: LocationStrategy = LocationStrategy.HOME_ONLY
    geo_index_backend: GeoIndexBackend = GeoIndexBackend.GRID
    geo_index_cell_km: float = 15.0

    # Lifecycle
    request_ttl_hours: int = 24

    # Proof storage
    proof_store_backend: Literal["local", "http"] = "local"
    proof_store_dir: str = "proofs"
    proof_public_base_url: str = "http://localhost:8000/proofs"
    object_storage_url: str = ""
    object_storage_key: str = ""
    object_storage_bucket: str = "request-proofs"
    proof_max_bytes: int = 10 * 1024 * 1024

    # Notification
    message_channel: Literal["deep_link", "webhook"] = "deep_link"
    deep_link_base: str = "https://wa.me"
    webhook_url: str = ""
    webhook_timeout_seconds: float = 5.0

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
