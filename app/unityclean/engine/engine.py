"""Cleaning engine.

Owns the run state machine::

    IDLE -> COUNTING -> CLEANING -> COMPLETED | CANCELLED | FAILED -> IDLE

A run is started with :meth:`CleaningEngine.start_clean`, which checks
every precondition synchronously and then executes the run on a single
background worker. Progress and session log lines are streamed to
observers through an :class:`EventDispatcher`; the caller gets a
:class:`RunHandle` to cancel or wait for the run.

Per-item failures never abort a run. They are recorded as skipped items
and the run carries on with the next unit.
"""

import logging
import shutil
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from unityclean.engine.errors import (
    InvalidProjectError,
    LockHolderError,
    NoCategorySelectedError,
    RunActiveError,
    SignOutNotConfirmedError,
)
from unityclean.engine.events import EventDispatcher, Observer
from unityclean.engine.models import (
    CleanPlan,
    CleanUnit,
    LogEvent,
    LogLevel,
    ProgressEvent,
    RunState,
    RunSummary,
    SkippedItem,
    StateEvent,
    UnitKind,
)
from unityclean.engine.planner import CleanPlanner
from unityclean.process.guard import ProcessGuard
from unityclean.project.models import ValidationResult
from unityclean.project.validator import ProjectValidator
from unityclean.rules.models import CATEGORY_ORDER, CleanCategory
from unityclean.rules.tables import DEFAULT_RULES, RuleSet

logger = logging.getLogger(__name__)


class RunHandle:
    """Handle of a started run.

    Attributes:
        run_id: Sequential id of the run within the engine.
        project: Project root being cleaned.
        categories: Selected categories in execution order.
    """

    def __init__(
        self,
        run_id: int,
        project: Path,
        categories: tuple[CleanCategory, ...],
        future: "Future[RunSummary]",
        cancel_event: threading.Event,
    ) -> None:
        self.run_id = run_id
        self.project = project
        self.categories = categories
        self._future = future
        self._cancel_event = cancel_event

    def cancel(self) -> None:
        """Request cancellation; takes effect before the next unit."""
        self._cancel_event.set()

    @property
    def cancel_requested(self) -> bool:
        """True once cancellation was requested."""
        return self._cancel_event.is_set()

    def done(self) -> bool:
        """True once the run reached a terminal state."""
        return self._future.done()

    def wait(self, timeout: float | None = None) -> RunSummary:
        """Block until the run has finished.

        Args:
            timeout: Maximum seconds to wait, None to wait indefinitely.

        Returns:
            The RunSummary of the run.

        Raises:
            TimeoutError: If the run did not finish in time.
        """
        try:
            return self._future.result(timeout=timeout)
        except FutureTimeoutError as e:
            msg = f"Run {self.run_id} did not finish within {timeout}s"
            raise TimeoutError(msg) from e


@dataclass
class _RunContext:
    """Mutable bookkeeping of the active run."""

    handle_id: int
    project: Path
    categories: tuple[CleanCategory, ...]
    cancel_event: threading.Event
    total: int = 0
    processed: int = 0
    files_deleted: int = 0
    subtrees_deleted: int = 0
    credentials_removed: int = 0
    skipped: list[SkippedItem] = field(default_factory=list)
    log: list[LogEvent] = field(default_factory=list)


class CleaningEngine:
    """Runs cleaning sessions against validated project roots.

    Args:
        rules: Rule set used for classification.
        validator: Validator used to confirm the project root.
        guard: Process guard checked before every run. Defaults to a guard
            for the standard Unity process names.
        unity_data_dir: Base directory of the editor cache category.
        credential_roots: Directories searched when signing out.
    """

    def __init__(
        self,
        *,
        rules: RuleSet = DEFAULT_RULES,
        validator: ProjectValidator | None = None,
        guard: ProcessGuard | None = None,
        unity_data_dir: Path | None = None,
        credential_roots: Iterable[Path] = (),
    ) -> None:
        self._rules = rules
        self._validator = validator or ProjectValidator()
        self._guard = guard if guard is not None else ProcessGuard()
        self._planner = CleanPlanner(rules, unity_data_dir, credential_roots)
        self._unity_data_dir = unity_data_dir
        self._credential_roots = tuple(credential_roots)

        self._events = EventDispatcher()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="unityclean-run")
        self._lock = threading.Lock()
        self._state = RunState.IDLE
        self._active: _RunContext | None = None
        self._run_counter = 0

    @property
    def state(self) -> RunState:
        """Current engine state."""
        with self._lock:
            return self._state

    @property
    def rules(self) -> RuleSet:
        """Rule set used for classification."""
        return self._rules

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer for progress, log and state events.

        Returns:
            A function that unsubscribes the observer.
        """
        return self._events.subscribe(observer)

    def flush_events(self, timeout: float | None = None) -> bool:
        """Wait until every published event was delivered."""
        return self._events.flush(timeout)

    def validate(self, project: str | Path) -> ValidationResult:
        """Validate a candidate project root (no diagnostics)."""
        return self._validator.validate(project)

    def plan(self, project: str | Path, categories: Iterable[CleanCategory]) -> CleanPlan:
        """Run the counting stage only, without deleting anything.

        Args:
            project: Candidate project root.
            categories: Categories to plan.

        Returns:
            The plan a run with the same arguments would execute.

        Raises:
            NoCategorySelectedError: If no category was given.
            InvalidProjectError: If the path is not a valid project root.
        """
        selected = self._check_categories(categories)
        root = self._check_project(project)
        return self._planner.plan(root, selected)

    def start_clean(
        self,
        project: str | Path,
        categories: Iterable[CleanCategory],
        *,
        confirm_sign_out: bool = False,
        close_lock_holders: bool = False,
    ) -> RunHandle:
        """Start a cleaning run in the background.

        Preconditions are checked in order: categories, project root,
        active run, sign-out confirmation, lock-holding processes. A
        failed check raises without any state change.

        Args:
            project: Candidate project root.
            categories: Categories to clean.
            confirm_sign_out: Separate confirmation required for SIGN_OUT.
            close_lock_holders: Terminate lock-holding processes instead of
                refusing to start.

        Returns:
            RunHandle of the started run.

        Raises:
            NoCategorySelectedError: If no category was given.
            InvalidProjectError: If the path is not a valid project root.
            RunActiveError: If a run is already active.
            SignOutNotConfirmedError: If SIGN_OUT lacks confirmation.
            LockHolderError: If lock-holding processes keep running.
        """
        selected = self._check_categories(categories)
        root = self._check_project(project)
        if self.state != RunState.IDLE:
            raise RunActiveError()
        if CleanCategory.SIGN_OUT in selected and not confirm_sign_out:
            raise SignOutNotConfirmedError()
        self._check_lock_holders(close_lock_holders)

        with self._lock:
            if self._state != RunState.IDLE:
                raise RunActiveError()
            self._run_counter += 1
            context = _RunContext(
                handle_id=self._run_counter,
                project=root,
                categories=selected,
                cancel_event=threading.Event(),
            )
            self._active = context
            self._state = RunState.COUNTING

        self._publish(StateEvent(RunState.COUNTING))
        future = self._executor.submit(self._run, context)
        handle = RunHandle(context.handle_id, root, selected, future, context.cancel_event)
        logger.info(
            "Started run %d on %s: %s", context.handle_id, root, [c.value for c in selected]
        )
        return handle

    def cancel(self, handle: RunHandle | None = None) -> None:
        """Cancel a run.

        Args:
            handle: Run to cancel. Defaults to the active run; does nothing
                when no run is active.
        """
        if handle is not None:
            handle.cancel()
            return
        with self._lock:
            if self._active is not None:
                self._active.cancel_event.set()

    def debug_snapshot(self) -> dict[str, Any]:
        """Describe the engine for troubleshooting.

        Returns:
            Dict with the state, the active run, the rule tables, the
            platform directories and the running lock-holders.
        """
        with self._lock:
            state = self._state
            active = self._active

        run: dict[str, Any] | None = None
        if active is not None:
            run = {
                "id": active.handle_id,
                "project": str(active.project),
                "categories": [c.value for c in active.categories],
                "total": active.total,
                "processed": active.processed,
                "cancel_requested": active.cancel_event.is_set(),
            }

        lock_holders = [
            {"pid": h.pid, "name": h.name} for h in self._guard.list_blocking_processes()
        ]

        return {
            "state": state.value,
            "active_run": run,
            "protected_paths": [rule.path for rule in self._rules.protected],
            "categories": {
                category.value: {
                    "base": spec.base.value,
                    "safe_roots": list(spec.safe_roots),
                    "subtree_roots": list(spec.subtree_roots),
                    "name_patterns": list(spec.name_patterns),
                }
                for category, spec in self._rules.categories.items()
            },
            "unity_data_dir": str(self._unity_data_dir) if self._unity_data_dir else None,
            "credential_roots": [str(p) for p in self._credential_roots],
            "lock_holders": lock_holders,
        }

    def shutdown(self) -> None:
        """Wait for the active run and stop the worker threads."""
        self._executor.shutdown(wait=True)
        self._events.close()

    # Preconditions

    @staticmethod
    def _check_categories(categories: Iterable[CleanCategory]) -> tuple[CleanCategory, ...]:
        wanted = set(categories)
        selected = tuple(c for c in CATEGORY_ORDER if c in wanted)
        if not selected:
            raise NoCategorySelectedError()
        return selected

    def _check_project(self, project: str | Path) -> Path:
        result = self._validator.validate(project)
        if not result.valid:
            raise InvalidProjectError(str(project), result.reason)
        return Path(project).resolve()

    def _check_lock_holders(self, close: bool) -> None:
        running = self._guard.list_blocking_processes()
        if not running:
            return
        if not close:
            raise LockHolderError(tuple(running), attempted_close=False)

        report = self._guard.terminate(running)
        if not report.success:
            raise LockHolderError(report.remaining, attempted_close=True)
        logger.info(
            "Closed %d lock-holding processes (%d killed)",
            len(report.terminated) + len(report.killed),
            len(report.killed),
        )

    # Worker

    def _run(self, context: _RunContext) -> RunSummary:
        state = RunState.FAILED
        error: str | None = None
        try:
            state = self._execute(context)
        except Exception as e:
            logger.exception("Cleaning run %d failed", context.handle_id)
            error = str(e) or type(e).__name__
            self._log(context, LogLevel.ERROR, f"Error during cleaning: {error}")

        summary = RunSummary(
            state=state,
            categories=context.categories,
            total=context.total,
            processed=context.processed,
            files_deleted=context.files_deleted,
            subtrees_deleted=context.subtrees_deleted,
            credentials_removed=context.credentials_removed,
            skipped=tuple(context.skipped),
            error=error,
            log=tuple(context.log),
        )
        self._set_state(state)
        with self._lock:
            self._active = None
            self._state = RunState.IDLE
        self._publish(StateEvent(RunState.IDLE))
        logger.info(
            "Run %d finished %s: %d/%d processed, %d skipped",
            context.handle_id,
            state.value,
            summary.processed,
            summary.total,
            len(summary.skipped),
        )
        return summary

    def _execute(self, context: _RunContext) -> RunState:
        cancelled = context.cancel_event.is_set
        plan = self._planner.plan(context.project, context.categories, should_stop=cancelled)
        context.total = plan.total
        if cancelled():
            self._log(context, LogLevel.WARNING, "Operation cancelled by user.")
            return RunState.CANCELLED

        for missing in plan.missing_roots:
            self._log(context, LogLevel.INFO, f"{missing} not found. Skipping...")
        if plan.downgraded:
            self._log(
                context,
                LogLevel.INFO,
                "Cleaning file by file (protected entries inside): " + ", ".join(plan.downgraded),
            )
        for item in plan.skipped:
            context.skipped.append(item)
            self._log(context, LogLevel.ERROR, f"Skipped {item.path}: {item.reason}")

        if plan.is_empty:
            self._log(context, LogLevel.INFO, "No files to clean.")
            return RunState.COMPLETED

        self._set_state(RunState.CLEANING)
        self._publish(ProgressEvent(0, context.total))

        for category in context.categories:
            if category == CleanCategory.SIGN_OUT:
                if not self._sign_out(context, plan):
                    return RunState.CANCELLED
                continue

            units = plan.units_for(category)
            self._log(context, LogLevel.INFO, f"Cleaning {category.label}...")
            skipped_before = len(context.skipped)
            for unit in units:
                if cancelled():
                    self._log(context, LogLevel.WARNING, "Operation cancelled by user.")
                    return RunState.CANCELLED
                self._delete_unit(context, unit)
                self._publish(ProgressEvent(context.processed, context.total))

            failed = len(context.skipped) - skipped_before
            if failed:
                self._log(
                    context,
                    LogLevel.WARNING,
                    f"{category.label}: {len(units) - failed} of {len(units)} items removed, "
                    f"{failed} skipped",
                )
            else:
                self._log(context, LogLevel.SUCCESS, f"{category.label} cleaned successfully")

        self._log(
            context,
            LogLevel.SUCCESS,
            f"Finished: {context.processed} of {context.total} items removed, "
            f"{len(context.skipped)} skipped",
        )
        return RunState.COMPLETED

    def _delete_unit(self, context: _RunContext, unit: CleanUnit) -> None:
        try:
            if unit.kind == UnitKind.SUBTREE:
                shutil.rmtree(unit.path)
                context.subtrees_deleted += 1
            else:
                unit.path.unlink()
                context.files_deleted += 1
        except FileNotFoundError:
            self._skip(context, unit.path, "vanished before deletion")
            return
        except OSError as e:
            self._skip(context, unit.path, e.strerror or str(e))
            return
        context.processed += 1

    def _sign_out(self, context: _RunContext, plan: CleanPlan) -> bool:
        """Remove credential files. Returns False if cancelled."""
        self._log(context, LogLevel.INFO, "Signing out of Unity...")
        if not plan.credential_files:
            self._log(context, LogLevel.INFO, "No Unity credentials found.")
            return True

        for path in plan.credential_files:
            if context.cancel_event.is_set():
                self._log(context, LogLevel.WARNING, "Operation cancelled by user.")
                return False
            try:
                path.unlink()
            except FileNotFoundError:
                self._skip(context, path, "vanished before deletion")
                continue
            except OSError as e:
                self._skip(context, path, e.strerror or str(e))
                continue
            context.credentials_removed += 1

        self._log(
            context,
            LogLevel.SUCCESS,
            f"Signed out of Unity ({context.credentials_removed} credential files removed)",
        )
        return True

    # Events

    def _skip(self, context: _RunContext, path: Path, reason: str) -> None:
        context.skipped.append(SkippedItem(path=str(path), reason=reason))
        self._log(context, LogLevel.ERROR, f"Could not delete {path}: {reason}")

    def _log(self, context: _RunContext, level: LogLevel, message: str) -> None:
        event = LogEvent(level, message)
        context.log.append(event)
        self._publish(event)

    def _set_state(self, state: RunState) -> None:
        with self._lock:
            self._state = state
        self._publish(StateEvent(state))

    def _publish(self, event: ProgressEvent | LogEvent | StateEvent) -> None:
        self._events.publish(event)
