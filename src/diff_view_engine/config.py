"""
Configuration loading and validation for Diff View Engine.

This module handles configuration file parsing, validation, and provides
sensible defaults for all tunable thresholds. The defaults are product-tuned
values for UI responsiveness; they are not correctness invariants.
"""

from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError


class ViewConfig(BaseModel):
    """Configuration for collapse/expand behaviour."""

    auto_collapse_threshold: int = Field(
        default=10,
        ge=0,
        description="Collapse every file by default when the diff has more files than this.",
    )
    expand_batch_size: int = Field(
        default=5,
        ge=1,
        description="Files expanded per step when expanding a large diff.",
    )


class PrefetchConfig(BaseModel):
    """Configuration for file content prefetching."""

    max_prefetch: int = Field(
        default=20,
        ge=0,
        description="Maximum number of files whose contents are prefetched.",
    )
    file_timeout: float = Field(
        default=5.0,
        gt=0.0,
        description="Seconds allowed for a single per-file content fetch.",
    )


class WindowConfig(BaseModel):
    """Configuration for virtualized rendering size estimates."""

    collapsed_height: int = Field(
        default=44,
        ge=0,
        description="Height of a collapsed file card (header only).",
    )
    line_height: int = Field(
        default=22,
        ge=0,
        description="Estimated height of one diff line.",
    )
    min_height: int = Field(
        default=150,
        ge=0,
        description="Lower bound for an expanded file's estimated height.",
    )
    max_height: int = Field(
        default=800,
        ge=0,
        description="Upper bound for an expanded file's estimated height.",
    )
    overscan: int = Field(
        default=5,
        ge=0,
        description="Items rendered beyond each edge of the viewport.",
    )


class FocusConfig(BaseModel):
    """Configuration for focus navigation."""

    highlight_duration: float = Field(
        default=1.5,
        gt=0.0,
        description="Seconds a focused file stays highlighted.",
    )


class LoggingConfig(BaseModel):
    """Configuration for structured logging."""

    level: str = Field(
        default="INFO",
        description="Log level name.",
    )
    format: Literal["console", "json"] = Field(
        default="console",
        description="Renderer used for log output.",
    )


class Config(BaseModel):
    """Root configuration model for Diff View Engine."""

    view: ViewConfig = Field(default_factory=ViewConfig)
    prefetch: PrefetchConfig = Field(default_factory=PrefetchConfig)
    window: WindowConfig = Field(default_factory=WindowConfig)
    focus: FocusConfig = Field(default_factory=FocusConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    class Config:
        """Pydantic model configuration."""

        extra = "forbid"


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the configuration file. If None, returns defaults.

    Returns:
        Config object with loaded or default values.

    Raises:
        FileNotFoundError: If the specified config file doesn't exist.
        ValueError: If the config file is invalid.
    """
    if config_path is None:
        return Config()

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return Config(**data)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in configuration file: {e}") from e
    except (ValidationError, TypeError) as e:
        raise ValueError(f"Failed to load configuration: {e}") from e


def find_config_file(start_path: Path) -> Optional[Path]:
    """
    Search for a configuration file starting from the given path.

    Searches for `.diff-view.yaml` or `.diff-view.yml` in the start path
    and parent directories.

    Args:
        start_path: Directory to start searching from.

    Returns:
        Path to the config file if found, None otherwise.
    """
    config_names = [".diff-view.yaml", ".diff-view.yml"]

    current = start_path.resolve()
    while current != current.parent:
        for name in config_names:
            config_path = current / name
            if config_path.exists():
                return config_path
        current = current.parent

    return None
