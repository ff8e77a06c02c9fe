"""
Analysis settings.

Values come from, highest priority first: explicit overrides (CLI flags),
the project file ``.repograph.yml`` at the repository root, ``REPOGRAPH_*``
environment variables, then the defaults below.

Usage:
    from repograph.config import load_settings

    settings = load_settings("path/to/repo", max_files=200)
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError

PROJECT_CONFIG_FILE = ".repograph.yml"


class ScoringConfig(BaseModel):
    """Custom scoring tables merged over the built-in ones."""

    high_value_names: dict[str, int] = Field(default_factory=dict)
    negative_names: dict[str, int] = Field(default_factory=dict)
    high_value_paths: dict[str, int] = Field(default_factory=dict)
    min_score: int | None = None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="REPOGRAPH_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    max_files: int = Field(default=500, gt=0)
    include_patterns: list[str] = Field(default_factory=list)
    exclude_patterns: list[str] = Field(default_factory=list)
    concurrency: int = Field(default=10, gt=0)
    max_file_size: int = Field(default=1024 * 1024, gt=0)

    min_cluster_size: int = Field(default=2, ge=1)
    damping_factor: float = 0.85
    max_iterations: int = Field(default=100, gt=0)
    tolerance: float = Field(default=1e-6, gt=0)

    output_dir: str = ".repograph"
    log_level: str = "INFO"

    scoring: ScoringConfig = Field(default_factory=ScoringConfig)

    @field_validator("damping_factor")
    @classmethod
    def _check_damping(cls, value: float) -> float:
        if not 0 < value < 1:
            raise ValueError("damping_factor must be between 0 and 1 (exclusive)")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level


def read_project_config(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"{path} must contain a mapping of settings",
            "Use 'key: value' pairs such as 'max_files: 300'.",
        )
    return data


def load_settings(
    root: str | Path | None = None,
    config_file: str | Path | None = None,
    **overrides: Any,
) -> Settings:
    values: dict[str, Any] = {}

    if config_file is not None:
        values.update(read_project_config(Path(config_file)))
    elif root is not None:
        candidate = Path(root) / PROJECT_CONFIG_FILE
        if candidate.is_file():
            values.update(read_project_config(candidate))

    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e
