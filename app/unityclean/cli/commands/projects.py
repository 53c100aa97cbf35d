"""Project list commands.

Manage the recent-projects list and discover projects in the usual
locations.
"""

import json
from dataclasses import asdict
from pathlib import Path
from typing import Annotated

import typer

from unityclean.cli.display import create_projects_table
from unityclean.cli.types import OutputFormat, get_validator, require_config
from unityclean.project.discovery import ProjectDiscovery, last_modified
from unityclean.project.models import DiscoveredProject
from unityclean.project.recent import RecentProjectsStore
from unityclean.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Recent and discovered Unity projects.",
    no_args_is_help=True,
)


@app.command("list")
def list_projects(
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
    """Show recently used projects, most recent first."""
    store = RecentProjectsStore()
    entries = store.load()

    projects = [
        DiscoveredProject(path=entry, last_modified=last_modified(Path(entry)), recent=True)
        for entry in entries
    ]
    if output_format == OutputFormat.JSON:
        _print_json(projects)
        return

    if not projects:
        print_info("No recent projects.")
        return
    console.print(create_projects_table(projects, "Recent Projects"))


@app.command("add")
def add_project(
    path: Annotated[
        Path,
        typer.Argument(help="Project root to remember."),
    ],
) -> None:
    """Add a project to the recent-projects list."""
    config = require_config()
    result = get_validator(config).validate(path)
    if not result.valid:
        print_error(result.reason or f"Invalid Unity project: {path}")
        raise typer.Exit(code=1)

    store = RecentProjectsStore()
    store.load()
    try:
        store.add(path.resolve())
    except OSError as e:
        print_error(f"Failed to save recent projects: {e}")
        raise typer.Exit(code=1) from e

    print_success(f"Added {path.resolve()} to recent projects.")


@app.command("discover")
def discover_projects(
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
    all_candidates: Annotated[
        bool,
        typer.Option("--all", "-a", help="Include recent projects in the output."),
    ] = False,
) -> None:
    """Search the usual locations for Unity projects."""
    config = require_config()
    store = RecentProjectsStore()
    store.load()

    discovery = ProjectDiscovery(
        search_dirs=config.resolved_search_dirs() or None,
        max_depth=config.discovery_max_depth,
        recent=store,
    )
    projects = discovery.candidates() if all_candidates else discovery.discover()

    if output_format == OutputFormat.JSON:
        _print_json(projects)
        return

    if not projects:
        print_info("No Unity projects found.")
        return
    console.print(create_projects_table(projects, "Unity Projects"))


def _print_json(projects: list[DiscoveredProject]) -> None:
    """Print project candidates as JSON."""
    console.print_json(json.dumps([asdict(p) for p in projects]))
