"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.occupancy import CANCELLED_STATUSES
from .domain.timezone import DEFAULT_TIMEZONE, validate_timezone
from .services.schemas import MAX_DURATION, MIN_MONTH_DURATION, MIN_SLOT_DURATION


class DefaultsConfig(BaseModel):
    """Default settings for availability requests."""
    slot_duration_minutes: int = 60
    month_duration_minutes: int = 60
    granularity_minutes: int = 30

    @field_validator("granularity_minutes")
    @classmethod
    def validate_granularity(cls, value: int) -> int:
        """Keep the scheduling grid between 5 minutes and 4 hours."""
        if not 5 <= value <= 240:
            raise ValueError(f"granularity_minutes must be between 5 and 240, got {value}")
        return value

    @model_validator(mode="after")
    def validate_durations(self) -> "DefaultsConfig":
        """Ensure default durations are acceptable to their endpoints."""
        if not MIN_SLOT_DURATION <= self.slot_duration_minutes <= MAX_DURATION:
            raise ValueError(
                f"slot_duration_minutes must be between {MIN_SLOT_DURATION} and {MAX_DURATION}"
            )
        if not MIN_MONTH_DURATION <= self.month_duration_minutes <= MAX_DURATION:
            raise ValueError(
                f"month_duration_minutes must be between {MIN_MONTH_DURATION} and {MAX_DURATION}"
            )
        return self


class SupabaseConfig(BaseModel):
    """Connection settings for the PostgREST (Supabase) data source."""
    url: str
    service_key_env: str = "SUPABASE_SERVICE_ROLE_KEY"
    timeout_seconds: float = 30.0

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"supabase.url must be an http(s) URL, got {value!r}")
        return value

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        return value

    def get_service_key(self) -> str:
        """
        Read the service key from the environment.

        Raises:
            ValueError: If the variable is unset or empty
        """
        key = os.getenv(self.service_key_env, "").strip()
        if not key:
            raise ValueError(f"Missing required environment variable: {self.service_key_env}")
        return key


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = DEFAULT_TIMEZONE
    log_level: str = "INFO"
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    cancelled_statuses: List[str] = Field(default_factory=lambda: list(CANCELLED_STATUSES))
    supabase: Optional[SupabaseConfig] = None

    @field_validator("timezone")
    @classmethod
    def validate_clinic_timezone(cls, value: str) -> str:
        return validate_timezone(value)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("cancelled_statuses")
    @classmethod
    def normalize_cancelled_statuses(cls, value: List[str]) -> List[str]:
        """Lower-case and deduplicate, preserving order."""
        seen: set[str] = set()
        normalized: List[str] = []
        for status in value:
            key = status.strip().lower()
            if key and key not in seen:
                normalized.append(key)
                seen.add(key)
        if not normalized:
            raise ValueError("cancelled_statuses must name at least one status")
        return normalized

    @classmethod
    def default(cls) -> "AppConfig":
        """Configuration with every default applied."""
        return cls()

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        config_path = Path(__file__).parent.parent / "config.yaml"

    return config_path


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load an explicit config file, or the default one if present, else defaults."""
    if config_path is not None:
        return AppConfig.load_from_yaml(config_path)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)
    return AppConfig.default()
