"""Shared Rich display functions for CLI commands.

Provides the table builders and printers used to show validation
results, clean plans, run summaries and lock-holding processes.
"""

from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.markup import escape
from rich.table import Table

from unityclean.engine.models import CleanPlan, LogEvent, LogLevel, RunState, RunSummary, UnitKind
from unityclean.process.guard import ProcessHandle
from unityclean.project.models import DiscoveredProject, Severity, ValidationResult
from unityclean.rules.models import CleanCategory
from unityclean.utils.formatting import (
    console,
    print_error,
    print_info,
    print_success,
    print_warning,
)

_SEVERITY_STYLES: dict[Severity, str] = {
    Severity.ERROR: "error",
    Severity.WARNING: "warning",
    Severity.INFO: "info",
}

_STATE_STYLES: dict[RunState, str] = {
    RunState.COMPLETED: "success",
    RunState.CANCELLED: "warning",
    RunState.FAILED: "error",
}


def create_diagnostics_table(result: ValidationResult) -> Table:
    """Create a Rich table of a validation result's diagnostics.

    Args:
        result: Validation result with diagnostics.

    Returns:
        Rich Table with Severity, Path, Message and Recommendation columns.
    """
    table = Table(
        title="Project Diagnostics",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Severity", width=8)
    table.add_column("Path", no_wrap=True)
    table.add_column("Message")
    table.add_column("Recommendation", style="muted")

    for diagnostic in result.diagnostics:
        style = _SEVERITY_STYLES[diagnostic.severity]
        table.add_row(
            f"[{style}]{diagnostic.severity.value}[/{style}]",
            escape(diagnostic.path or ""),
            escape(diagnostic.message),
            escape(diagnostic.recommendation or ""),
        )

    return table


def create_plan_table(plan: CleanPlan) -> Table:
    """Create a Rich table summarizing a clean plan per category.

    Args:
        plan: Plan computed by the counting stage.

    Returns:
        Rich Table with Category, Files, Subtrees and Total columns.
    """
    table = Table(
        title="Planned Cleanup",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Category")
    table.add_column("Files", justify="right")
    table.add_column("Subtrees", justify="right")
    table.add_column("Units", justify="right")

    for category in plan.categories:
        if category == CleanCategory.SIGN_OUT:
            table.add_row(
                category.label,
                f"[warning]{len(plan.credential_files)}[/warning]",
                "-",
                "-",
            )
            continue
        units = plan.units_for(category)
        subtrees = sum(1 for unit in units if unit.kind == UnitKind.SUBTREE)
        table.add_row(
            category.label,
            str(len(units) - subtrees),
            str(subtrees),
            f"[safe]{len(units)}[/safe]",
        )

    return table


def print_plan(plan: CleanPlan, *, verbose: bool = False) -> None:
    """Print a plan table followed by protected and downgraded entries."""
    console.print(create_plan_table(plan))
    console.print(f"\n[bold]Total units to clean: {plan.total}[/bold]")

    if plan.protected_kept:
        kept = len(plan.protected_kept)
        console.print(f"[protected]{kept} protected entries will be kept[/protected]")
        if verbose:
            for path in plan.protected_kept:
                console.print(f"  [protected]{escape(path)}[/protected]")
    for subtree in plan.downgraded:
        print_info(f"{subtree} contains protected entries and is cleaned file by file")
    if verbose:
        for unit in plan.units:
            console.print(f"  [safe]{unit.kind.value:7}[/safe] {escape(unit.relative)}")
        for path in plan.credential_files:
            console.print(f"  [warning]credential[/warning] {escape(str(path))}")


def print_log_event(event: LogEvent) -> None:
    """Print a session log line with the matching helper."""
    if event.level == LogLevel.SUCCESS:
        print_success(event.message)
    elif event.level == LogLevel.WARNING:
        print_warning(event.message)
    elif event.level == LogLevel.ERROR:
        print_error(event.message)
    else:
        print_info(event.message)


def create_summary_table(summary: RunSummary) -> Table:
    """Create a Rich table of a finished run.

    Args:
        summary: Summary returned by the run.

    Returns:
        Two-column Rich Table of run metrics.
    """
    table = Table(show_header=False, border_style="border")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    style = _STATE_STYLES.get(summary.state, "info")
    table.add_row("State", f"[{style}]{summary.state.value}[/{style}]")
    table.add_row("Categories", ", ".join(c.label for c in summary.categories))
    table.add_row("Attempted", str(summary.attempted))
    table.add_row("Removed", f"{summary.processed} of {summary.total}")
    table.add_row("Files deleted", str(summary.files_deleted))
    table.add_row("Subtrees deleted", str(summary.subtrees_deleted))
    if CleanCategory.SIGN_OUT in summary.categories:
        table.add_row("Credential files removed", str(summary.credentials_removed))
    if summary.skipped:
        table.add_row("[error]Skipped[/error]", str(len(summary.skipped)))
    if summary.error:
        table.add_row("[error]Error[/error]", escape(summary.error))

    return table


def create_progress() -> Progress:
    """Create the progress bar shown while cleaning."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
    )


def create_processes_table(handles: list[ProcessHandle]) -> Table:
    """Create a Rich table of lock-holding processes."""
    table = Table(
        title="Running Unity Processes",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("PID", justify="right")
    table.add_column("Name")

    for handle in handles:
        table.add_row(str(handle.pid), f"[warning]{escape(handle.name)}[/warning]")

    return table


def create_projects_table(projects: list[DiscoveredProject], title: str) -> Table:
    """Create a Rich table of project candidates."""
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Path", no_wrap=True)
    table.add_column("Last Modified", style="muted")
    table.add_column("Source", width=10)

    for project in projects:
        table.add_row(
            escape(project.path),
            project.last_modified or "unknown",
            "recent" if project.recent else "found",
        )

    return table
