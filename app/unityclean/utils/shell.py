"""Shell execution utilities.

Runs external commands with their output captured into log files.
"""

import shutil
import subprocess
from pathlib import Path


def run_logged(
    args: list[str],
    *,
    stdout_path: Path,
    stderr_path: Path,
    cwd: str | None = None,
    timeout: float | None = None,
) -> int:
    """Execute a command with its output streamed into log files.

    Output is not held in memory; both streams are appended to the given
    files as the process writes them, so long builds leave a usable log
    even when they are killed.

    Args:
        args: Command and arguments to execute.
        stdout_path: File receiving standard output.
        stderr_path: File receiving standard error.
        cwd: Working directory for the command.
        timeout: Maximum time in seconds to wait for the command.

    Returns:
        Exit code of the command.

    Raises:
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
        OSError: If the log files cannot be opened.
    """
    with (
        stdout_path.open("a", encoding="utf-8") as out,
        stderr_path.open("a", encoding="utf-8") as err,
    ):
        result = subprocess.run(
            args,
            stdout=out,
            stderr=err,
            text=True,
            check=False,
            timeout=timeout,
            cwd=cwd,
        )
    return result.returncode


def command_exists(name: str) -> bool:
    """Check if a command exists in the system PATH.

    Args:
        name: Command name to check.

    Returns:
        True if command exists, False otherwise.
    """
    return shutil.which(name) is not None
