"""Precondition errors of the cleaning engine.

All of these are raised synchronously by ``start_clean`` before a run is
reserved, so the engine state never changes when one is raised.
"""

from unityclean.process.guard import ProcessHandle


class CleanPreconditionError(Exception):
    """Base exception for a run that cannot be started."""


class NoCategorySelectedError(CleanPreconditionError):
    """Raised when no category was selected."""

    def __init__(self) -> None:
        super().__init__("Select at least one cleaning option")


class InvalidProjectError(CleanPreconditionError):
    """Raised when the path is not a valid project root."""

    def __init__(self, path: str, reason: str | None) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Not a valid Unity project: {path} ({reason or 'unknown reason'})")


class RunActiveError(CleanPreconditionError):
    """Raised when a run is already in progress."""

    def __init__(self) -> None:
        super().__init__("A cleaning run is already in progress")


class SignOutNotConfirmedError(CleanPreconditionError):
    """Raised when sign-out was selected without its own confirmation."""

    def __init__(self) -> None:
        super().__init__("Signing out of Unity requires explicit confirmation")


class LockHolderError(CleanPreconditionError):
    """Raised when processes that may lock project files are running.

    Attributes:
        remaining: Processes still running.
        attempted_close: Whether termination was attempted before giving up.
    """

    def __init__(self, remaining: tuple[ProcessHandle, ...], *, attempted_close: bool) -> None:
        self.remaining = remaining
        self.attempted_close = attempted_close
        names = ", ".join(f"{h.name} (pid {h.pid})" for h in remaining)
        if attempted_close:
            message = f"Could not close running Unity processes: {names}"
        else:
            message = f"Unity processes are running and must be closed first: {names}"
        super().__init__(message)
