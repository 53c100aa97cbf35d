"""Shared types and factories for CLI commands.

This module provides the common enums and the helpers that turn the
user configuration into engine components, so every command wires them
up the same way.
"""

from enum import Enum

import typer

from unityclean.core.config import CleanerConfig, ConfigError, load_config
from unityclean.core.paths import get_credential_roots, get_unity_data_dir
from unityclean.engine.engine import CleaningEngine
from unityclean.process.guard import ProcessGuard
from unityclean.project.validator import ProjectValidator
from unityclean.rules.tables import DEFAULT_RULES, RuleSet
from unityclean.utils.formatting import print_error


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def require_config() -> CleanerConfig:
    """Load the user configuration or exit with an error.

    Returns:
        The validated configuration.

    Raises:
        typer.Exit: If the configuration file is invalid.
    """
    try:
        return load_config()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def get_rules(config: CleanerConfig) -> RuleSet:
    """Default rules extended by the configured protected paths."""
    if not config.extra_protected_paths:
        return DEFAULT_RULES
    return DEFAULT_RULES.with_protected(config.extra_protected_paths)


def get_validator(config: CleanerConfig) -> ProjectValidator:
    """Project validator using the configured size threshold."""
    return ProjectValidator(large_file_threshold=config.large_file_threshold_bytes)


def get_guard(config: CleanerConfig) -> ProcessGuard:
    """Process guard for the configured lock-holder names."""
    return ProcessGuard(config.process_names, grace_period=config.grace_period_seconds)


def get_engine(config: CleanerConfig) -> CleaningEngine:
    """Cleaning engine wired to the platform directories.

    Args:
        config: User configuration.

    Returns:
        A ready CleaningEngine.
    """
    return CleaningEngine(
        rules=get_rules(config),
        validator=get_validator(config),
        guard=get_guard(config),
        unity_data_dir=get_unity_data_dir(),
        credential_roots=get_credential_roots(),
    )
