"""
Configuration Management for the OrçaMais ledger engine

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The engine itself never reads the environment; the composition root
hands these objects to the components that need them.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CATEGORIES = [
    "Alimentação",
    "Transporte",
    "Moradia",
    "Saúde",
    "Educação",
    "Lazer",
    "Compras",
    "Outros",
]


class LedgerSettings(BaseSettings):
    """Ledger behaviour: defaults for new accounts, write policy, alerts."""

    model_config = SettingsConfigDict(
        env_prefix="ORCAMAIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    schema_version: str = Field(
        default="2.0.0",
        description="Schema tag written into a fresh ledger blob"
    )
    default_categories: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CATEGORIES),
        description="Categories seeded into every new account"
    )
    fallback_category: str = Field(
        default="Outros",
        min_length=1,
        description="Category used when a transaction has none"
    )

    # Account settings defaults (opaque to the engine)
    default_currency: str = Field(
        default="BRL",
        min_length=3,
        max_length=3,
        description="ISO 4217 currency code for new accounts"
    )
    default_theme: str = Field(
        default="light",
        description="UI theme for new accounts"
    )
    default_notifications: bool = Field(
        default=True,
        description="Notification flag for new accounts"
    )

    spending_alert_threshold: float = Field(
        default=90.0,
        ge=0.0,
        le=1000.0,
        description="Spending percentage of fixed income that raises an alert"
    )
    write_policy: str = Field(
        default="optimistic",
        pattern="^(optimistic|confirmed)$",
        description=(
            "optimistic: mutate memory then write (memory may run ahead of storage); "
            "confirmed: only commit to memory after the write succeeds"
        )
    )
    audit_history_size: int = Field(
        default=200,
        ge=0,
        le=10000,
        description="How many audit events to keep in memory"
    )

    @field_validator('default_categories')
    @classmethod
    def validate_default_categories(cls, v: list[str]) -> list[str]:
        """Strip names, drop blanks and keep the first occurrence of duplicates."""
        seen = []
        for name in v:
            name = name.strip()
            if name and name not in seen:
                seen.append(name)
        return seen

    @property
    def confirmed_writes(self) -> bool:
        return self.write_policy == "confirmed"


class StorageSettings(BaseSettings):
    """Blob storage backend configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ORCAMAIS_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: str = Field(
        default="file",
        pattern="^(memory|file)$",
        description="Which blob store to use"
    )
    data_dir: Path = Field(
        default=Path(".orcamais"),
        description="Directory holding blob files (file backend only)"
    )
    blob_key: str = Field(
        default="orcamais:data",
        min_length=1,
        description="Key under which the whole ledger blob is stored"
    )
    max_blob_bytes: Optional[int] = Field(
        default=None,
        ge=1,
        description="Capacity quota; writes above it are rejected"
    )
    write_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for a blob write before giving up"
    )


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ORCAMAIS_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum log level"
    )
    json_output: bool = Field(
        default=True,
        description="Render log lines as JSON (False = human readable console)"
    )

    @field_validator('level', mode='before')
    @classmethod
    def normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    "<name>_error" entry for every section that failed.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("ledger", "storage", "logging"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
