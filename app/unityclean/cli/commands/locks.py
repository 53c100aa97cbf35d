"""Locks command implementation.

Lists Unity processes that may hold locks on project files and
optionally closes them.
"""

from typing import Annotated

import typer

from unityclean.cli.display import create_processes_table
from unityclean.cli.types import get_guard, require_config
from unityclean.utils.formatting import console, print_error, print_info, print_success


def show_locks(
    close: Annotated[
        bool,
        typer.Option("--close", help="Close the listed processes."),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """List running Unity processes that may lock project files."""
    config = require_config()
    guard = get_guard(config)

    running = guard.list_blocking_processes()
    if not running:
        print_success("No Unity processes are running.")
        return

    console.print(create_processes_table(running))

    if not close:
        return

    if not yes:
        confirmed = typer.confirm(
            f"\nClose {len(running)} process(es)? Unsaved work will be lost.",
            default=False,
        )
        if not confirmed:
            print_info("Aborted.")
            raise typer.Exit(code=0)

    report = guard.terminate(running)
    for handle in report.killed:
        print_info(f"Force-closed {handle.name} (pid {handle.pid})")
    for handle, reason in report.failed:
        print_error(f"Could not close {handle.name} (pid {handle.pid}): {reason}")

    if not report.success:
        names = ", ".join(f"{h.name} ({h.pid})" for h in report.remaining)
        print_error(f"Still running: {names}")
        raise typer.Exit(code=1)

    print_success(f"Closed {len(report.terminated) + len(report.killed)} process(es).")
