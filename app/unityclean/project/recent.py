"""Recently used project list.

Storage location: ~/.local/state/unityclean/recent_projects.txt

The file holds one absolute path per line (UTF-8, no header) and is
overwritten on every save. Entries whose directory no longer exists are
hidden on load but stay in the file until the next save.
"""

import logging
from pathlib import Path

from unityclean.core.paths import get_recent_projects_path

logger = logging.getLogger(__name__)

MAX_RECENT_PROJECTS = 10


class RecentProjectsStore:
    """Ordered, bounded, most-recent-first list of project paths.

    Args:
        path: Override for the backing file.
        max_entries: Maximum number of entries kept.
    """

    def __init__(self, path: Path | None = None, max_entries: int = MAX_RECENT_PROJECTS) -> None:
        self._path = path if path is not None else get_recent_projects_path()
        self._max_entries = max_entries
        self._entries: list[str] = []

    @property
    def path(self) -> Path:
        """Path to the backing file."""
        return self._path

    @property
    def entries(self) -> list[str]:
        """Current entries, most recent first (a copy)."""
        return list(self._entries)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str | Path) and str(path) in self._entries

    def load(self) -> list[str]:
        """Read the backing file.

        Blank lines, duplicates and paths that no longer exist are
        skipped. A missing or unreadable file yields an empty list.

        Returns:
            The loaded entries, most recent first.
        """
        self._entries = []
        if not self._path.exists():
            logger.debug("No recent projects file at %s", self._path)
            return []

        try:
            lines = self._path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            logger.warning("Failed to read recent projects from %s: %s", self._path, e)
            return []

        for line in lines:
            entry = line.strip()
            if not entry or entry in self._entries:
                continue
            if not Path(entry).is_dir():
                logger.debug("Skipping missing recent project: %s", entry)
                continue
            self._entries.append(entry)
            if len(self._entries) >= self._max_entries:
                break

        return list(self._entries)

    def add(self, path: str | Path, *, save: bool = True) -> list[str]:
        """Move a path to the front of the list.

        An existing occurrence is removed first; the list is then trimmed
        to the maximum size.

        Args:
            path: Project path to record.
            save: Persist the list immediately.

        Returns:
            The updated entries.

        Raises:
            OSError: If saving fails.
        """
        entry = str(path)
        if entry in self._entries:
            self._entries.remove(entry)
        self._entries.insert(0, entry)
        del self._entries[self._max_entries :]

        if save:
            self.save()
        return list(self._entries)

    def save(self) -> None:
        """Overwrite the backing file with the current entries.

        Raises:
            OSError: If the file cannot be written.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        content = "".join(f"{entry}\n" for entry in self._entries)
        self._path.write_text(content, encoding="utf-8")
        logger.debug("Saved %d recent projects to %s", len(self._entries), self._path)
