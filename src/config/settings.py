# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings: where runs live,
which source registry to use, comparison tolerance and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fscpulse.logging.handlers import parse_size


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Run storage ===
    # Root holding all runs; None means the parent of the run being validated.
    out_dir: Path | None = None
    registry_path: Path | None = None

    # === Comparison ===
    compare_tolerance: float = 0.01

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("compare_tolerance")
    @classmethod
    def validate_compare_tolerance(cls, v: float) -> float:
        if v < 0:
            raise ValueError("compare_tolerance must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.log_file is not None and self.log_retention < 1:
            errors.append("LOG_FILE requires LOG_RETENTION >= 1")

        try:
            parse_size(self.log_rotation)
        except ValueError:
            errors.append(
                f"LOG_ROTATION must look like '10MB', got {self.log_rotation!r}"
            )

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
