"""CLI commands for unityclean.

This package contains all subcommand implementations.
"""

from unityclean.cli.commands import build, clean, config, locks, projects, validate

__all__ = ["build", "clean", "config", "locks", "projects", "validate"]
