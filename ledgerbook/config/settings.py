"""
Configuration Management for Ledgerbook

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every setting has a working default, so no .env file is required.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_STORAGE_",
        env_file=".env",
        extra="ignore"
    )

    backend: Literal["memory", "json_file"] = Field(
        default="json_file",
        description="Which key-value store to use"
    )
    data_dir: Path = Field(
        default=Path(".ledgerbook"),
        description="Directory holding one file per storage key (json_file backend)"
    )

    # Storage keys for the three independent blobs
    accounts_key: str = Field(
        default="bankapp.accounts",
        description="Key of the accounts blob"
    )
    transactions_key: str = Field(
        default="bankapp_final.transactions",
        description="Key of the transactions blob"
    )
    gate_key: str = Field(
        default="IsUnlocked",
        description="Key of the access gate flag"
    )

    @field_validator("accounts_key", "transactions_key", "gate_key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Keys double as file names for the json_file backend."""
        if not v.strip() or "/" in v or "\\" in v:
            raise ValueError(f"Invalid storage key: {v!r}")
        return v


class GateSettings(BaseSettings):
    """Access gate configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_GATE_",
        env_file=".env",
        extra="ignore"
    )

    pin: SecretStr = Field(
        default=SecretStr("9867"),
        description="Static PIN that unlocks the ledger"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for the structured log"
    )

    # History view
    default_page_size: int = Field(
        default=10,
        ge=1,
        le=500,
        description="Rows per page in the history view"
    )
    page_size_options: str = Field(
        default="5,10,25,50",
        description="Comma-separated page sizes offered in the history view"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def page_size_options_list(self) -> list[int]:
        """Get page sizes as a list of positive ints."""
        sizes = []
        for raw in self.page_size_options.split(","):
            raw = raw.strip()
            if raw.isdigit() and int(raw) > 0:
                sizes.append(int(raw))
        return sizes or [self.default_page_size]


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
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def gate(self) -> GateSettings:
        return GateSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


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

    Returns a dict of {setting_name: is_valid}, plus
    "<setting_name>_error" entries for the ones that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "gate", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
