"""Project root validation and structural diagnostics.

A directory is a valid project root when it contains the four expected
folders and a non-empty editor version marker. This fast check is cheap
enough to run on every path change; the heavier structural diagnostics
are only computed on request.

Validation never raises for missing or unreadable paths. It returns an
invalid result with a reason instead.
"""

import logging
import os
from collections.abc import Iterator
from pathlib import Path

from unityclean.core.paths import get_installed_editors_dir
from unityclean.project.models import Diagnostic, DiagnosticKind, Severity, ValidationResult

logger = logging.getLogger(__name__)

EXPECTED_FOLDERS: tuple[str, ...] = ("Assets", "Packages", "ProjectSettings", "Library")

VERSION_MARKER = "ProjectSettings/ProjectVersion.txt"

RECOMMENDED_ASSET_FOLDERS: tuple[str, ...] = (
    "Assets/Animations",
    "Assets/Audio",
    "Assets/Materials",
    "Assets/Prefabs",
    "Assets/Resources",
    "Assets/Scenes",
    "Assets/Scripts",
    "Assets/Sprites",
    "Assets/UI",
)

PACKAGE_CACHE = "Library/PackageCache"
PACKAGE_MANIFEST = "package.json"

DEFAULT_LARGE_FILE_THRESHOLD = 100 * 1024 * 1024

# Cap on reported large files / empty directories
MAX_REPORTED = 5


def _exists(path: Path, *, directory: bool) -> bool:
    """is_dir()/is_file() that treats unreadable entries as absent."""
    try:
        return path.is_dir() if directory else path.is_file()
    except OSError:
        return False


def _has_version_marker(root: Path) -> bool:
    marker = root / VERSION_MARKER
    try:
        return marker.is_file() and marker.stat().st_size > 0
    except OSError:
        return False


def is_valid_project(path: str | Path) -> bool:
    """Fast check whether a path is a valid project root.

    Args:
        path: Candidate project root.

    Returns:
        True if the path passes validation.
    """
    return validate(path).valid


def validate(path: str | Path) -> ValidationResult:
    """Validate a candidate project root without diagnostics.

    See :meth:`ProjectValidator.validate`.
    """
    return ProjectValidator().validate(path)


def is_package_cache_corrupted(project: str | Path) -> bool:
    """Check the package cache for incomplete package folders.

    Args:
        project: Project root.

    Returns:
        True if any immediate child directory of ``Library/PackageCache``
        lacks a ``package.json``, or if the cache cannot be read.
        False if there is no package cache.
    """
    cache = Path(project) / PACKAGE_CACHE
    try:
        if not cache.is_dir():
            return False
        for child in sorted(cache.iterdir()):
            if child.is_dir() and not (child / PACKAGE_MANIFEST).is_file():
                return True
    except OSError as e:
        logger.debug("Cannot read package cache %s: %s", cache, e)
        return True
    return False


def read_editor_version(project: str | Path) -> str | None:
    """Read the editor version recorded in the version marker.

    Args:
        project: Project root.

    Returns:
        The ``m_EditorVersion`` value, or None if unavailable.
    """
    marker = Path(project) / VERSION_MARKER
    try:
        text = marker.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None

    for line in text.splitlines():
        if line.startswith("m_EditorVersion:"):
            version = line.split(":", 1)[1].strip()
            return version or None
    return None


class ProjectValidator:
    """Validates project roots and computes structural diagnostics.

    Args:
        large_file_threshold: Size in bytes above which files are reported.
        installed_editors_dir: Directory holding installed editor versions.
            Defaults to the Unity Hub location of the current platform.
    """

    def __init__(
        self,
        *,
        large_file_threshold: int = DEFAULT_LARGE_FILE_THRESHOLD,
        installed_editors_dir: Path | None = None,
    ) -> None:
        self._large_file_threshold = large_file_threshold
        self._installed_editors_dir = installed_editors_dir

    def validate(self, path: str | Path, *, include_diagnostics: bool = False) -> ValidationResult:
        """Validate a candidate project root.

        Args:
            path: Candidate project root.
            include_diagnostics: Also compute structural diagnostics.

        Returns:
            ValidationResult; never raises for bad paths.
        """
        path_str = str(path)
        if not path_str.strip():
            return ValidationResult(path=path_str, valid=False, reason="No path given")

        root = Path(path)
        try:
            exists = root.exists()
        except OSError as e:
            return ValidationResult(path=path_str, valid=False, reason=f"Cannot access path: {e}")

        if not exists:
            reason = f"Path does not exist: {root}"
            return ValidationResult(path=path_str, valid=False, reason=reason)
        if not _exists(root, directory=True):
            return ValidationResult(path=path_str, valid=False, reason=f"Not a directory: {root}")

        missing = [f for f in EXPECTED_FOLDERS if not _exists(root / f, directory=True)]
        if not _has_version_marker(root):
            missing.append(VERSION_MARKER)

        reason = None
        if missing:
            reason = "Missing required " + ", ".join(missing)

        diagnostics: tuple[Diagnostic, ...] = ()
        if include_diagnostics:
            diagnostics = tuple(self.diagnose(root))

        logger.debug("Validated %s: valid=%s missing=%s", root, not missing, missing)
        return ValidationResult(
            path=path_str,
            valid=not missing,
            reason=reason,
            missing=tuple(missing),
            diagnostics=diagnostics,
        )

    def diagnose(self, root: Path) -> Iterator[Diagnostic]:
        """Compute structural diagnostics for a project root.

        Args:
            root: Project root (need not be valid).

        Yields:
            Diagnostics in a stable order.
        """
        for folder in EXPECTED_FOLDERS:
            if not _exists(root / folder, directory=True):
                yield Diagnostic(
                    kind=DiagnosticKind.MISSING_REQUIRED_FOLDER,
                    severity=Severity.ERROR,
                    message=f"Missing required folder: {folder}",
                    path=folder,
                )

        if _exists(root / "Assets", directory=True):
            for folder in RECOMMENDED_ASSET_FOLDERS:
                if not _exists(root / folder, directory=True):
                    yield Diagnostic(
                        kind=DiagnosticKind.MISSING_RECOMMENDED_FOLDER,
                        severity=Severity.INFO,
                        message=f"Recommended folder missing: {folder}",
                        path=folder,
                    )
            yield from self._loose_asset_files(root)

        if is_package_cache_corrupted(root):
            yield Diagnostic(
                kind=DiagnosticKind.CORRUPTED_PACKAGE_CACHE,
                severity=Severity.WARNING,
                message="Package cache might be corrupted",
                path=PACKAGE_CACHE,
                recommendation="Delete the PackageCache folder and let Unity rebuild it",
            )

        mismatch = self._editor_version_mismatch(root)
        if mismatch is not None:
            yield mismatch

        yield from self._large_files(root)
        yield from self._empty_directories(root)

    def _loose_asset_files(self, root: Path) -> Iterator[Diagnostic]:
        assets = root / "Assets"
        try:
            loose = sorted(
                entry.name
                for entry in assets.iterdir()
                if entry.is_file() and not entry.name.endswith(".meta")
            )
        except OSError as e:
            logger.debug("Cannot list %s: %s", assets, e)
            return

        for name in loose:
            yield Diagnostic(
                kind=DiagnosticKind.LOOSE_ASSET_FILE,
                severity=Severity.INFO,
                message=f"File in Assets root: {name}",
                path=f"Assets/{name}",
                recommendation="Organize it into an appropriate subfolder",
            )

    def _editor_version_mismatch(self, root: Path) -> Diagnostic | None:
        version = read_editor_version(root)
        editors_dir = self._installed_editors_dir or get_installed_editors_dir()
        # Without a Hub installation there is nothing to compare against
        if version is None or not _exists(editors_dir, directory=True):
            return None
        if _exists(editors_dir / version, directory=True):
            return None
        return Diagnostic(
            kind=DiagnosticKind.EDITOR_VERSION_MISMATCH,
            severity=Severity.WARNING,
            message=f"Editor version {version} is not installed",
            path=VERSION_MARKER,
            recommendation="Ensure all team members use the same Unity version",
        )

    def _walk(self, root: Path) -> Iterator[tuple[Path, list[str], list[str]]]:
        """Deterministic walk of the project, skipping the Library folder."""
        for dirpath, dirnames, filenames in os.walk(root, onerror=self._log_walk_error):
            current = Path(dirpath)
            if current == root:
                dirnames[:] = [d for d in dirnames if d != "Library"]
            dirnames.sort()
            filenames.sort()
            yield current, dirnames, filenames

    @staticmethod
    def _log_walk_error(error: OSError) -> None:
        logger.debug("Skipping unreadable directory: %s", error)

    def _large_files(self, root: Path) -> Iterator[Diagnostic]:
        reported = 0
        for current, _dirnames, filenames in self._walk(root):
            for name in filenames:
                file_path = current / name
                try:
                    size = file_path.lstat().st_size
                except OSError:
                    continue
                if size <= self._large_file_threshold:
                    continue
                yield Diagnostic(
                    kind=DiagnosticKind.LARGE_FILE,
                    severity=Severity.WARNING,
                    message=f"Large file: {name} ({size // (1024 * 1024)} MB)",
                    path=file_path.relative_to(root).as_posix(),
                    recommendation="Consider Asset Bundles or splitting large assets",
                    size_bytes=size,
                )
                reported += 1
                if reported >= MAX_REPORTED:
                    return

    def _empty_directories(self, root: Path) -> Iterator[Diagnostic]:
        reported = 0
        for current, dirnames, filenames in self._walk(root):
            if current == root or dirnames or filenames:
                continue
            yield Diagnostic(
                kind=DiagnosticKind.EMPTY_DIRECTORY,
                severity=Severity.INFO,
                message=f"Empty folder: {current.relative_to(root).as_posix()}",
                path=current.relative_to(root).as_posix(),
                recommendation="Remove it or add a .keep file",
            )
            reported += 1
            if reported >= MAX_REPORTED:
                return
