"""Validate command implementation.

Checks whether a directory is a usable project root and optionally
reports structural diagnostics.
"""

import json
from dataclasses import asdict
from pathlib import Path
from typing import Annotated

import typer

from unityclean.cli.display import create_diagnostics_table
from unityclean.cli.types import OutputFormat, get_validator, require_config
from unityclean.project.models import ValidationResult
from unityclean.utils.formatting import console, print_error, print_success


def validate_project(
    path: Annotated[
        Path,
        typer.Argument(help="Project root to validate."),
    ],
    diagnostics: Annotated[
        bool,
        typer.Option("--diagnostics", "-d", help="Also report structural diagnostics."),
    ] = False,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
) -> None:
    """Check whether PATH is a valid Unity project root."""
    config = require_config()
    validator = get_validator(config)
    result = validator.validate(path, include_diagnostics=diagnostics)

    if output_format == OutputFormat.JSON:
        _print_json(result)
    else:
        _print_result(result)

    if not result.valid:
        raise typer.Exit(code=1)


def _print_result(result: ValidationResult) -> None:
    """Print a validation result for humans."""
    if result.valid:
        print_success(f"Valid Unity project: {result.path}")
    else:
        print_error(result.reason or f"Invalid Unity project: {result.path}")

    if result.diagnostics:
        console.print(create_diagnostics_table(result))


def _print_json(result: ValidationResult) -> None:
    """Print a validation result as JSON."""
    data = asdict(result)
    console.print_json(json.dumps(data, default=str))
