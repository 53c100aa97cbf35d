"""Build command implementation.

Runs the configured external build command inside a project and,
on request, starts the produced artifact.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from unityclean.build.runner import BuildError, BuildRunner
from unityclean.cli.types import get_validator, require_config
from unityclean.utils.formatting import console, print_error, print_info, print_success


def build_project(
    path: Annotated[
        Path,
        typer.Argument(help="Project root to build."),
    ],
    run: Annotated[
        bool,
        typer.Option("--run", "-r", help="Start the artifact after a successful build."),
    ] = False,
) -> None:
    """Build the project at PATH with the configured build command."""
    config = require_config()

    result = get_validator(config).validate(path)
    if not result.valid:
        print_error(result.reason or f"Invalid Unity project: {path}")
        raise typer.Exit(code=1)

    runner = BuildRunner(
        config.build_command,
        config.build_artifact,
        timeout=config.build_timeout_seconds,
        keep=config.build_log_keep,
    )

    print_info(f"Building {path}...")
    try:
        build = runner.run(path.resolve(), launch=run)
    except BuildError as e:
        print_error(str(e))
        if e.stderr_tail:
            console.print(f"[dim]{escape(e.stderr_tail)}[/dim]", highlight=False)
        if e.error_log_path is not None:
            print_info(f"Error log: {e.error_log_path}")
        raise typer.Exit(code=1) from e

    print_success(f"Build completed successfully: {build.artifact}")
    print_info(f"Build log: {build.log_path}")
    if run and not build.launched:
        print_error(f"Could not start {build.artifact}")
        raise typer.Exit(code=1)
