"""Configuration loading and validation for baseline."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator


class DatabaseConfig(BaseModel):
    """Database configuration."""

    url: str = "sqlite:///baseline.db"


class ChangeLogConfig(BaseModel):
    """Where changelog files live and how they are laid out."""

    root: Path = Path("./changelogs")
    layout: str = "subfolders"

    @field_validator("layout")
    @classmethod
    def validate_layout(cls, v: str) -> str:
        """Validate layout is one of the supported catalog conventions."""
        allowed = {"subfolders", "flat"}
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"layout must be one of: {allowed}")
        return v_lower


class Config(BaseModel):
    """Root configuration for baseline."""

    log_level: str = "INFO"
    log_json: bool = True
    context: str | None = None  # Execution context used to filter change sets

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    changelog: ChangeLogConfig = Field(default_factory=ChangeLogConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log_level is valid."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of: {allowed}")
        return v_upper

    @classmethod
    def load(cls, config_path: Path | str = Path("baseline.yaml")) -> "Config":
        """Load configuration from YAML file with env var overlay.

        Args:
            config_path: Path to YAML configuration file.

        Returns:
            Validated Config instance.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ValueError: If config is invalid.
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}

        return cls.model_validate(_apply_env_overrides(yaml_config))

    @classmethod
    def load_or_default(cls, config_path: Path | str | None = None) -> "Config":
        """Load configuration, falling back to defaults if file not found.

        Environment overrides apply to the defaults as well.

        Args:
            config_path: Optional path to YAML configuration file.

        Returns:
            Config instance (from file or defaults).
        """
        if config_path is None:
            for path in [Path("baseline.yaml"), Path("baseline.yml")]:
                if path.exists():
                    return cls.load(path)
            return cls.model_validate(_apply_env_overrides({}))

        try:
            return cls.load(config_path)
        except FileNotFoundError:
            return cls.model_validate(_apply_env_overrides({}))


def _apply_env_overrides(yaml_config: dict) -> dict:
    """Overlay BASELINE_* environment variables onto raw config data."""
    if "BASELINE_LOG_LEVEL" in os.environ:
        yaml_config["log_level"] = os.environ["BASELINE_LOG_LEVEL"]
    if "BASELINE_LOG_JSON" in os.environ:
        yaml_config["log_json"] = os.environ["BASELINE_LOG_JSON"].lower() == "true"
    if "BASELINE_DATABASE_URL" in os.environ:
        yaml_config.setdefault("database", {})["url"] = os.environ["BASELINE_DATABASE_URL"]
    if "BASELINE_CHANGELOG_ROOT" in os.environ:
        yaml_config.setdefault("changelog", {})["root"] = os.environ["BASELINE_CHANGELOG_ROOT"]
    return yaml_config
