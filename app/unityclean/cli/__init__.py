"""CLI package for unityclean.

This package contains the Typer application and all subcommands.
"""

from unityclean.cli.main import app

__all__ = ["app"]
