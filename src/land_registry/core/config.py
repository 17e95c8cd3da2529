"""Application configuration loaded from environment and config files."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class LedgerConfig(BaseSettings):
    """Transaction ledger configuration."""

    model_config = {"env_prefix": "LAND_REGISTRY_LEDGER_"}

    log_dir: str = "data/ledger"
    log_file: str = "ledger.jsonl"
    replay_on_startup: bool = True


class DatabaseConfig(BaseSettings):
    """Database configuration. Without a URL the in-memory registry is used."""

    model_config = {"env_prefix": "LAND_REGISTRY_DB_"}

    database_url: str | None = None
    echo: bool = False
    pool_size: int = 5


class AuthConfig(BaseSettings):
    """Authentication configuration."""

    model_config = {"env_prefix": "LAND_REGISTRY_AUTH_"}

    fixtures_path: str | None = None
    token_expiry_minutes: int = 60


class Settings(BaseSettings):
    """Root application settings."""

    model_config = {"env_prefix": "LAND_REGISTRY_"}

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
