"""Credential file discovery for signing out of Unity.

Unity and Unity Hub keep sign-in tokens in files spread over their
per-user data directories. Signing out means deleting every file whose
name contains one of the credential fragments.
"""

import logging
import os
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)


def is_credential_file(name: str, patterns: Iterable[str]) -> bool:
    """Check a file name against credential fragments.

    Args:
        name: File name (not a path).
        patterns: Lowercase name fragments.

    Returns:
        True if any fragment occurs in the name, ignoring case.
    """
    lowered = name.casefold()
    return any(pattern.casefold() in lowered for pattern in patterns)


def find_credential_files(roots: Iterable[Path], patterns: Iterable[str]) -> list[Path]:
    """Find credential files below the given roots.

    Missing roots are ignored; unreadable directories are skipped.
    Symlinked directories are not followed.

    Args:
        roots: Directories to search recursively.
        patterns: Lowercase name fragments.

    Returns:
        Matching files in a stable order, without duplicates.
    """
    patterns = tuple(patterns)
    found: dict[str, Path] = {}
    for root in roots:
        if not root.is_dir():
            logger.debug("Credential location does not exist: %s", root)
            continue
        for dirpath, dirnames, filenames in os.walk(root, onerror=_log_walk_error):
            dirnames.sort()
            for name in sorted(filenames):
                if is_credential_file(name, patterns):
                    path = Path(dirpath) / name
                    found.setdefault(str(path), path)
    return list(found.values())


def _log_walk_error(error: OSError) -> None:
    logger.debug("Skipping unreadable credential directory: %s", error)
