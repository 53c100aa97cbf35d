"""Cleaning engine: run models, errors, planning and execution."""

from unityclean.engine.engine import CleaningEngine, RunHandle
from unityclean.engine.errors import (
    CleanPreconditionError,
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
    EngineEvent,
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

__all__ = [
    "CleanPlan",
    "CleanPlanner",
    "CleanPreconditionError",
    "CleanUnit",
    "CleaningEngine",
    "EngineEvent",
    "EventDispatcher",
    "InvalidProjectError",
    "LockHolderError",
    "LogEvent",
    "LogLevel",
    "NoCategorySelectedError",
    "Observer",
    "ProgressEvent",
    "RunActiveError",
    "RunHandle",
    "RunState",
    "RunSummary",
    "SignOutNotConfirmedError",
    "SkippedItem",
    "StateEvent",
    "UnitKind",
]
