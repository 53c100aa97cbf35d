"""Configuration commands.

Show the effective configuration and create a default config file.
"""

from pathlib import Path
from typing import Annotated

import tomli_w
import typer

from unityclean.cli.types import require_config
from unityclean.core.config import CleanerConfig, ConfigError, save_config
from unityclean.core.paths import get_config_path
from unityclean.utils.formatting import (
    console,
    print_error,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="Show or initialize the configuration.",
    no_args_is_help=True,
)


@app.command("show")
def show_config() -> None:
    """Print the effective configuration as TOML."""
    config_path = get_config_path()
    config = require_config()

    if config_path.exists():
        print_info(f"Config file: {config_path}")
    else:
        print_info(f"No config file at {config_path}, showing defaults.")

    data = config.model_dump(exclude_none=True)
    console.print(tomli_w.dumps(data), markup=False, highlight=False)


@app.command("init")
def init_config(
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output path for the config file.",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing config file.",
        ),
    ] = False,
) -> None:
    """Write a config file with default settings."""
    output_path = output or get_config_path()

    if output_path.exists():
        if not force:
            print_error(f"Config already exists: {output_path}")
            print_info("Use --force to overwrite or specify a different path with --output.")
            raise typer.Exit(code=1)
        print_warning(f"Overwriting existing config: {output_path}")

    try:
        saved = save_config(CleanerConfig(), output_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Config written to {saved}")
