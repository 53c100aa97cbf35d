"""Engine configuration and settings.

This module provides the configuration model and I/O functions for the
tunable parts of the cleaner: which processes count as lock-holders,
how long to wait for them, discovery locations, extra protected paths
and the external build command.

Configuration is stored in ~/.config/unityclean/config.toml. A missing
file is not an error; every field has a default.
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from unityclean.core.paths import get_config_path
from unityclean.process.guard import DEFAULT_PROCESS_NAMES

logger = logging.getLogger(__name__)

class CleanerConfig(BaseModel):
    """Configuration for the cache cleaner.

    Attributes:
        process_names: Executable names treated as lock-holders.
        grace_period_seconds: Time to wait for a graceful exit before killing.
        large_file_threshold_mb: Size above which files are reported by diagnostics.
        search_dirs: Discovery locations. Empty means the platform defaults.
        discovery_max_depth: How many directory levels discovery descends.
        extra_protected_paths: Project-relative paths added to the protected rules.
        build_command: Command line of the external build collaborator.
        build_artifact: Project-relative path the build must produce.
        build_timeout_seconds: Maximum build duration (None waits forever).
        build_log_keep: Number of build log pairs kept on disk.
    """

    model_config = ConfigDict(extra="forbid")

    process_names: Annotated[
        list[str],
        Field(description="Process names that may hold locks on the project"),
    ] = list(DEFAULT_PROCESS_NAMES)
    grace_period_seconds: Annotated[
        float,
        Field(ge=0.5, le=60.0, description="Graceful shutdown wait (0.5-60s)"),
    ] = 5.0
    large_file_threshold_mb: Annotated[
        int,
        Field(ge=1, description="Oversized file threshold in MiB"),
    ] = 100
    search_dirs: Annotated[
        list[str],
        Field(description="Project discovery locations (~ is expanded)"),
    ] = []
    discovery_max_depth: Annotated[
        int,
        Field(ge=1, le=6, description="Directory depth searched below each location"),
    ] = 3
    extra_protected_paths: Annotated[
        list[str],
        Field(description="Additional project-relative protected paths"),
    ] = []
    build_command: Annotated[
        list[str],
        Field(description="External build command and arguments"),
    ] = []
    build_artifact: Annotated[
        str | None,
        Field(description="Project-relative output artifact of the build"),
    ] = None
    build_timeout_seconds: Annotated[
        float | None,
        Field(gt=0, description="Build timeout in seconds"),
    ] = None
    build_log_keep: Annotated[
        int,
        Field(ge=1, le=100, description="Build log pairs kept on disk"),
    ] = 10

    @property
    def large_file_threshold_bytes(self) -> int:
        """Oversized file threshold in bytes."""
        return self.large_file_threshold_mb * 1024 * 1024

    def resolved_search_dirs(self) -> list[Path]:
        """Return configured search directories with ``~`` expanded."""
        return [Path(d).expanduser() for d in self.search_dirs]


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


class ConfigValidationError(ConfigError):
    """Raised when the config content doesn't match the schema."""


def load_config(path: Path | None = None) -> CleanerConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated CleanerConfig. Defaults if the file does not exist.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigValidationError: If the content doesn't match the schema.
        ConfigError: If the file cannot be read.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        logger.debug("No config file at %s, using defaults", config_path)
        return CleanerConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return CleanerConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid config content: {e}") from e


def save_config(config: CleanerConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The CleanerConfig object to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    # TOML has no null; unset optionals are left out
    data = config.model_dump(exclude_none=True)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path
