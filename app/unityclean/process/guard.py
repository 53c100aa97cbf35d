"""Detection and shutdown of processes that may lock project files.

Unity, Unity Hub and the crash handler keep handles open inside the
project and the editor cache. Before cleaning, those processes are
enumerated and, on confirmation, stopped: gracefully first, then
forcibly once the grace period runs out.

Termination is best-effort and racy. A successful report only means the
original processes are gone; nothing prevents a relaunch.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

import psutil

logger = logging.getLogger(__name__)

DEFAULT_GRACE_PERIOD = 5.0

DEFAULT_PROCESS_NAMES: tuple[str, ...] = (
    "Unity",
    "Unity Hub",
    "UnityCrashHandler",
    "UnityCrashHandler64",
)


@dataclass(frozen=True, slots=True)
class ProcessHandle:
    """Identity of a running process.

    Attributes:
        pid: Process ID.
        name: Executable name as reported by the OS.
        create_time: Process creation time; distinguishes reused PIDs.
    """

    pid: int
    name: str
    create_time: float


@dataclass(frozen=True, slots=True)
class TerminationReport:
    """Outcome of terminating a set of processes.

    Attributes:
        terminated: Handles that exited after a graceful request.
        killed: Handles that had to be force-terminated.
        failed: Handles that could not be stopped, with the reason.
        remaining: Matching processes still running after verification.
    """

    terminated: tuple[ProcessHandle, ...] = ()
    killed: tuple[ProcessHandle, ...] = ()
    failed: tuple[tuple[ProcessHandle, str], ...] = ()
    remaining: tuple[ProcessHandle, ...] = field(default=())

    @property
    def success(self) -> bool:
        """True if no matching process survived."""
        return not self.remaining


def _normalize_name(name: str) -> str:
    name = name.casefold()
    return name.removesuffix(".exe")


class ProcessGuard:
    """Enumerates and terminates lock-holding processes.

    Args:
        names: Process names to look for (case-insensitive, ``.exe``
            suffix ignored).
        grace_period: Seconds to wait for a graceful exit before killing.
    """

    def __init__(
        self,
        names: Iterable[str] = DEFAULT_PROCESS_NAMES,
        grace_period: float = DEFAULT_GRACE_PERIOD,
    ) -> None:
        self._names = tuple(names)
        self._grace_period = grace_period

    @property
    def names(self) -> tuple[str, ...]:
        """Configured process names."""
        return self._names

    def list_blocking_processes(self, names: Iterable[str] | None = None) -> list[ProcessHandle]:
        """List running processes whose name matches.

        Args:
            names: Names to match. Defaults to the configured names.

        Returns:
            Matching processes ordered by PID.
        """
        wanted = {_normalize_name(n) for n in (names if names is not None else self._names)}
        if not wanted:
            return []

        handles: list[ProcessHandle] = []
        for proc in psutil.process_iter(["name", "create_time"]):
            try:
                name = proc.info["name"]
                if name and _normalize_name(name) in wanted:
                    handles.append(
                        ProcessHandle(pid=proc.pid, name=name, create_time=proc.info["create_time"])
                    )
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue

        handles.sort(key=lambda h: h.pid)
        return handles

    def terminate(
        self,
        handles: Iterable[ProcessHandle],
        grace_period: float | None = None,
    ) -> TerminationReport:
        """Stop processes, escalating to a kill after the grace period.

        After every handle has been dealt with, processes are enumerated
        again by name; any survivor makes the report unsuccessful.

        Args:
            handles: Processes to stop.
            grace_period: Override of the configured grace period.

        Returns:
            TerminationReport describing what happened.
        """
        timeout = self._grace_period if grace_period is None else grace_period
        handles = list(handles)

        terminated: list[ProcessHandle] = []
        killed: list[ProcessHandle] = []
        failed: list[tuple[ProcessHandle, str]] = []

        for handle in handles:
            try:
                outcome = self._stop(handle, timeout)
            except psutil.AccessDenied as e:
                logger.warning("Access denied stopping %s (pid %d): %s", handle.name, handle.pid, e)
                failed.append((handle, "access denied"))
                continue
            except psutil.TimeoutExpired:
                logger.warning("%s (pid %d) survived a kill", handle.name, handle.pid)
                failed.append((handle, "did not exit after kill"))
                continue

            if outcome == "killed":
                killed.append(handle)
            else:
                terminated.append(handle)

        names = {h.name for h in handles} | set(self._names)
        remaining = tuple(self.list_blocking_processes(names)) if names else ()
        if remaining:
            logger.warning(
                "Processes still running after termination: %s",
                ", ".join(f"{h.name} ({h.pid})" for h in remaining),
            )

        return TerminationReport(
            terminated=tuple(terminated),
            killed=tuple(killed),
            failed=tuple(failed),
            remaining=remaining,
        )

    @staticmethod
    def _stop(handle: ProcessHandle, timeout: float) -> str:
        """Stop one process.

        Returns:
            "gone" if it had already exited, "terminated" or "killed".

        Raises:
            psutil.AccessDenied: If the process may not be signalled.
            psutil.TimeoutExpired: If it survives the kill as well.
        """
        try:
            proc = psutil.Process(handle.pid)
            if proc.create_time() != handle.create_time:
                logger.debug("PID %d was reused, original process is gone", handle.pid)
                return "gone"

            proc.terminate()
            try:
                proc.wait(timeout=timeout)
                logger.info("Closed %s (pid %d)", handle.name, handle.pid)
                return "terminated"
            except psutil.TimeoutExpired:
                logger.info(
                    "%s (pid %d) did not exit in %.1fs, killing", handle.name, handle.pid, timeout
                )

            proc.kill()
            proc.wait(timeout=timeout)
            return "killed"
        except psutil.NoSuchProcess:
            return "gone"
