"""Clean command implementation.

Plans and runs a cleaning session on a project, rendering progress and
the session log while the engine works in the background.
"""

from pathlib import Path
from typing import Annotated

import typer

from unityclean.cli.display import (
    create_progress,
    create_summary_table,
    print_log_event,
    print_plan,
)
from unityclean.cli.types import get_engine, require_config
from unityclean.engine.engine import CleaningEngine, RunHandle
from unityclean.engine.errors import CleanPreconditionError, LockHolderError
from unityclean.engine.models import (
    EngineEvent,
    LogEvent,
    LogLevel,
    ProgressEvent,
    RunState,
    RunSummary,
)
from unityclean.project.recent import RecentProjectsStore
from unityclean.rules.models import CleanCategory
from unityclean.utils.formatting import console, print_error, print_info, print_warning


def clean_project(
    ctx: typer.Context,
    path: Annotated[
        Path,
        typer.Argument(help="Project root to clean."),
    ],
    temp: Annotated[
        bool,
        typer.Option("--temp/--no-temp", help="Clean the Temp directory."),
    ] = True,
    library: Annotated[
        bool,
        typer.Option("--library/--no-library", help="Clean regenerable Library caches."),
    ] = True,
    editor: Annotated[
        bool,
        typer.Option("--editor", help="Clean the per-user editor cache."),
    ] = False,
    sign_out: Annotated[
        bool,
        typer.Option("--sign-out", help="Sign out of Unity and Unity Hub."),
    ] = False,
    confirm_sign_out: Annotated[
        bool,
        typer.Option(
            "--confirm-sign-out",
            help="Confirm signing out without a prompt; --yes does not cover it.",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be deleted."),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompts."),
    ] = False,
    close_editors: Annotated[
        bool,
        typer.Option("--close-editors", help="Close running Unity processes first."),
    ] = False,
) -> None:
    """Remove regenerable caches from the project at PATH."""
    obj = ctx.obj or {}
    verbose = bool(obj.get("verbose"))
    quiet = bool(obj.get("quiet"))

    if sign_out and yes and not confirm_sign_out:
        print_error("--yes does not confirm signing out.")
        print_info("Add --confirm-sign-out to sign out without a prompt.")
        raise typer.Exit(code=1)

    categories = _selected_categories(temp, library, editor, sign_out)
    config = require_config()
    engine = get_engine(config)

    try:
        try:
            plan = engine.plan(path, categories)
        except CleanPreconditionError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e

        print_plan(plan, verbose=verbose)

        if dry_run:
            print_info("Dry run: nothing was deleted.")
            return

        if plan.is_empty:
            print_info("No files to clean.")
            return

        if not yes:
            if not typer.confirm(f"\nProceed with cleaning {plan.total} item(s)?", default=False):
                print_info("Aborted.")
                raise typer.Exit(code=0)

        sign_out_confirmed = False
        if CleanCategory.SIGN_OUT in plan.categories:
            sign_out_confirmed = confirm_sign_out or typer.confirm(
                "Signing out removes your Unity login. Continue?",
                default=False,
            )
            if not sign_out_confirmed:
                print_info("Aborted.")
                raise typer.Exit(code=0)

        summary = _run(engine, path, categories, sign_out_confirmed, close_editors, quiet)
    finally:
        engine.shutdown()

    console.print(create_summary_table(summary))

    if summary.state == RunState.COMPLETED:
        _remember(path)
    if summary.state != RunState.COMPLETED or summary.skipped:
        raise typer.Exit(code=1)


def _selected_categories(
    temp: bool, library: bool, editor: bool, sign_out: bool
) -> list[CleanCategory]:
    """Map command flags to categories."""
    flags = (
        (temp, CleanCategory.TEMPORARY_FILES),
        (library, CleanCategory.LIBRARY_CACHE),
        (editor, CleanCategory.EDITOR_CACHE),
        (sign_out, CleanCategory.SIGN_OUT),
    )
    return [category for enabled, category in flags if enabled]


def _run(
    engine: CleaningEngine,
    path: Path,
    categories: list[CleanCategory],
    confirm_sign_out: bool,
    close_editors: bool,
    quiet: bool,
) -> RunSummary:
    """Start a run and render its events until it finishes."""
    with create_progress() as progress:
        task = progress.add_task("Cleaning", total=None)

        def observe(event: EngineEvent) -> None:
            if isinstance(event, ProgressEvent):
                progress.update(task, completed=event.processed, total=event.total or None)
            elif isinstance(event, LogEvent):
                if quiet and event.level in (LogLevel.INFO, LogLevel.SUCCESS):
                    return
                print_log_event(event)

        engine.subscribe(observe)
        try:
            handle = engine.start_clean(
                path,
                categories,
                confirm_sign_out=confirm_sign_out,
                close_lock_holders=close_editors,
            )
        except LockHolderError as e:
            print_error(str(e))
            if not e.attempted_close:
                print_info("Close Unity or run again with --close-editors.")
            raise typer.Exit(code=1) from e
        except CleanPreconditionError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e

        summary = _wait(handle)
        engine.flush_events()

    return summary


def _wait(handle: RunHandle) -> RunSummary:
    """Wait for a run, turning Ctrl+C into a cancellation request."""
    try:
        return handle.wait()
    except KeyboardInterrupt:
        print_warning("Cancelling after the current item...")
        handle.cancel()
        return handle.wait()


def _remember(path: Path) -> None:
    """Record a cleaned project in the recent-projects list."""
    store = RecentProjectsStore()
    store.load()
    try:
        store.add(path.resolve())
    except OSError as e:
        print_warning(f"Could not update recent projects: {e}")
