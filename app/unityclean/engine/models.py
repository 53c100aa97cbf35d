"""Cleaning run models.

This module defines the run state machine, the events streamed to
observers while a run is active, the plan produced by the counting
stage, and the summary returned once a run has finished.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from unityclean.rules.models import CleanCategory


class RunState(str, Enum):
    """State of the cleaning engine.

    Attributes:
        IDLE: No run is active.
        COUNTING: Enumerating and classifying candidate paths.
        CLEANING: Deleting planned units.
        COMPLETED: All units were attempted.
        CANCELLED: The run was stopped by request.
        FAILED: The run ended on an unexpected error.
    """

    IDLE = "idle"
    COUNTING = "counting"
    CLEANING = "cleaning"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """True for the three end states of a run."""
        return self in (RunState.COMPLETED, RunState.CANCELLED, RunState.FAILED)


class LogLevel(str, Enum):
    """Level of a user-facing log event."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class UnitKind(str, Enum):
    """How a unit is deleted.

    Attributes:
        FILE: A single file (or symlink) removed with unlink.
        SUBTREE: A whole cache directory removed in one step.
    """

    FILE = "file"
    SUBTREE = "subtree"


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """Progress of the cleaning stage.

    Attributes:
        processed: Units deleted successfully so far.
        total: Units planned for the run.
    """

    processed: int
    total: int


@dataclass(frozen=True, slots=True)
class LogEvent:
    """A user-facing session log line."""

    level: LogLevel
    message: str


@dataclass(frozen=True, slots=True)
class StateEvent:
    """Emitted on every engine state transition."""

    state: RunState


EngineEvent = ProgressEvent | LogEvent | StateEvent


@dataclass(frozen=True, slots=True)
class CleanUnit:
    """One deletable item of a plan.

    Attributes:
        category: Category the unit belongs to.
        path: Absolute path to delete.
        relative: Path relative to the category's scan base (``/`` separated).
        kind: Whether a file or a whole subtree is removed.
    """

    category: CleanCategory
    path: Path
    relative: str
    kind: UnitKind = UnitKind.FILE


@dataclass(frozen=True, slots=True)
class SkippedItem:
    """A unit or credential file that could not be removed.

    Attributes:
        path: Absolute path of the item.
        reason: Why it was skipped.
    """

    path: str
    reason: str


@dataclass(frozen=True, slots=True)
class CleanPlan:
    """Result of the counting stage.

    Attributes:
        project: Project root the plan was computed for.
        categories: Selected categories in execution order.
        units: Safe units in deletion order.
        credential_files: Files removed by the sign-out category; these do
            not count towards the total.
        protected_kept: Protected paths found under safe roots and left alone.
        downgraded: Cache subtrees deleted file by file because they hold a
            protected entry.
        missing_roots: Safe roots that do not exist, as absolute paths.
        skipped: Paths left alone while counting: unreadable directories and
            symlinked category roots.
    """

    project: Path
    categories: tuple[CleanCategory, ...]
    units: tuple[CleanUnit, ...] = ()
    credential_files: tuple[Path, ...] = ()
    protected_kept: tuple[str, ...] = ()
    downgraded: tuple[str, ...] = ()
    missing_roots: tuple[str, ...] = ()
    skipped: tuple[SkippedItem, ...] = ()

    @property
    def total(self) -> int:
        """Number of units planned for deletion."""
        return len(self.units)

    def units_for(self, category: CleanCategory) -> tuple[CleanUnit, ...]:
        """Return the units of one category."""
        return tuple(unit for unit in self.units if unit.category == category)

    @property
    def is_empty(self) -> bool:
        """True if the run would neither delete units nor sign out."""
        return not self.units and CleanCategory.SIGN_OUT not in self.categories


@dataclass(frozen=True, slots=True)
class RunSummary:
    """Outcome of a finished run.

    Attributes:
        state: Terminal state of the run.
        categories: Categories that were selected.
        total: Units counted before cleaning.
        processed: Units deleted successfully.
        files_deleted: Individual files deleted.
        subtrees_deleted: Cache subtrees deleted in one step.
        credentials_removed: Credential files removed by sign-out.
        skipped: Items that could not be removed.
        error: Error message when the run failed.
        log: Session log in emission order.
    """

    state: RunState
    categories: tuple[CleanCategory, ...]
    total: int = 0
    processed: int = 0
    files_deleted: int = 0
    subtrees_deleted: int = 0
    credentials_removed: int = 0
    skipped: tuple[SkippedItem, ...] = ()
    error: str | None = None
    log: tuple[LogEvent, ...] = field(default=())

    @property
    def attempted(self) -> int:
        """Units and credential files the run tried to remove."""
        return self.processed + len(self.skipped) + self.credentials_removed
