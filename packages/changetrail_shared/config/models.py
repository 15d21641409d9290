"""Typed configuration models for changetrail runtime settings."""

from __future__ import annotations

from pathlib import Path
from typing import ClassVar, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "changetrail" / "changetrail.yaml"


class LoggingSettings(BaseModel):
    """Structured logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True
    service: str = "changetrail"
    environment: str = "dev"


class StoreSettings(BaseModel):
    """Connection settings for the SQL database holding audit entries.

    Pool sizing only applies to server databases; SQLite URLs ignore it.
    """

    url: str = "sqlite:///changetrail-audit.db"
    echo: bool = False
    pool_size: int = Field(default=5, gt=0)
    max_overflow: int = Field(default=10, ge=0)
    pool_timeout_seconds: float = Field(default=30.0, gt=0)
    pool_pre_ping: bool = True

    @field_validator("url")
    @classmethod
    def _require_url(cls, value: str) -> str:
        """Reject blank URLs early instead of at first connect."""
        stripped = value.strip()
        if not stripped:
            raise ValueError("audit_store.url is required")
        return stripped


class AuditTrailSettings(BaseModel):
    """Behavior switches for the change-capture pipeline."""

    enabled: bool = True
    changed_by: str = Field(default="system", min_length=1)
    sort_keys: bool = True


class ChangeTrailSettings(BaseSettings):
    """Root runtime settings resolved from init/env/yaml/defaults sources."""

    model_config = SettingsConfigDict(
        env_prefix="CHANGETRAIL_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    audit_store: StoreSettings = Field(default_factory=StoreSettings)
    audit_trail: AuditTrailSettings = Field(default_factory=AuditTrailSettings)

    _config_path: ClassVar[Path] = DEFAULT_CONFIG_PATH

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Apply precedence: init > env > yaml > model defaults."""
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(
                settings_cls,
                yaml_file=cls._config_path,
                yaml_file_encoding="utf-8",
            ),
        )
