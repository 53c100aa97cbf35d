"""Lock-holder process detection and termination."""

from unityclean.process.guard import (
    DEFAULT_GRACE_PERIOD,
    DEFAULT_PROCESS_NAMES,
    ProcessGuard,
    ProcessHandle,
    TerminationReport,
)

__all__ = [
    "DEFAULT_GRACE_PERIOD",
    "DEFAULT_PROCESS_NAMES",
    "ProcessGuard",
    "ProcessHandle",
    "TerminationReport",
]
