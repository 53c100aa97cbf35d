"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from unityclean import __version__
from unityclean.cli.commands import build, clean, config, locks, projects, validate
from unityclean.utils.formatting import err_console

# Create main Typer app
app = typer.Typer(
    name="unityclean",
    help="Safe cache cleaning for Unity projects.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"unityclean version {__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    """Route library logging through Rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=verbose)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """unityclean - Safe cache cleaning for Unity projects.

    Removes regenerable caches (Temp, Library, editor cache) from a
    project without ever touching Assets, Packages or ProjectSettings.
    """
    _setup_logging(verbose)

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands
app.command("validate")(validate.validate_project)
app.command("clean")(clean.clean_project)
app.command("locks")(locks.show_locks)
app.command("build")(build.build_project)
app.add_typer(projects.app, name="projects")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
