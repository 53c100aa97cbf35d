"""Discovery of projects in conventional locations.

Searches a small set of well-known directories for subtrees that pass
the fast project validation, to pre-populate project choices. Failure to
read one location never stops the others.
"""

import logging
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

from unityclean.core.paths import get_default_search_dirs
from unityclean.project.models import DiscoveredProject
from unityclean.project.recent import RecentProjectsStore
from unityclean.project.validator import is_valid_project

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 3

# Directories never worth descending into
_SKIP_NAMES = frozenset({"node_modules", "Library", "Temp", "Logs", "obj"})


class ProjectDiscovery:
    """Finds project roots below conventional locations.

    Args:
        search_dirs: Locations to search. Defaults to the platform's
            conventional project folders.
        max_depth: Directory levels searched below each location.
        recent: Store whose entries are excluded from search results.
    """

    def __init__(
        self,
        *,
        search_dirs: list[Path] | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        recent: RecentProjectsStore | None = None,
    ) -> None:
        self._search_dirs = search_dirs if search_dirs else get_default_search_dirs()
        self._max_depth = max_depth
        self._recent = recent

    def discover(self) -> list[DiscoveredProject]:
        """Search all locations.

        Returns:
            Discovered projects in search order, de-duplicated and
            excluding entries already in the recent-projects store.
        """
        seen: set[str] = set()
        if self._recent is not None:
            seen = {str(Path(p).resolve()) for p in self._recent.entries}
        found: list[DiscoveredProject] = []

        for location in self._search_dirs:
            try:
                for project in self._search(location, depth=0):
                    key = str(project)
                    if key in seen:
                        continue
                    seen.add(key)
                    found.append(DiscoveredProject(path=key, last_modified=last_modified(project)))
            except OSError as e:
                logger.debug("Skipping search location %s: %s", location, e)

        logger.debug("Discovered %d projects in %d locations", len(found), len(self._search_dirs))
        return found

    def candidates(self) -> list[DiscoveredProject]:
        """Recent projects first, then newly discovered ones.

        Returns:
            Combined candidate list for a project picker.
        """
        recent: list[DiscoveredProject] = []
        if self._recent is not None:
            recent = [
                DiscoveredProject(path=p, last_modified=last_modified(Path(p)), recent=True)
                for p in self._recent.entries
            ]
        return recent + self.discover()

    def _search(self, directory: Path, depth: int) -> Iterator[Path]:
        """Depth-first search that stops at the first project on each branch."""
        if not directory.is_dir():
            return

        if is_valid_project(directory):
            yield directory.resolve()
            return

        if depth >= self._max_depth:
            return

        try:
            children = sorted(
                child
                for child in directory.iterdir()
                if child.is_dir() and not child.is_symlink() and not child.name.startswith(".")
            )
        except OSError as e:
            logger.debug("Cannot list %s: %s", directory, e)
            return

        for child in children:
            if child.name in _SKIP_NAMES:
                continue
            try:
                yield from self._search(child, depth + 1)
            except OSError as e:
                logger.debug("Skipping %s: %s", child, e)


def last_modified(project: Path) -> str | None:
    """Get the Assets folder modification time as ISO 8601 string.

    Args:
        project: Project root.

    Returns:
        ISO 8601 formatted modification time, or None on error.
    """
    try:
        stat = (project / "Assets").stat()
    except OSError:
        return None
    return datetime.fromtimestamp(stat.st_mtime, tz=UTC).isoformat()
