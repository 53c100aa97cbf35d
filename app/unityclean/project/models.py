"""Project domain models.

This module defines the results produced by project validation and
discovery: the validation verdict, structural diagnostics, and
discovered project candidates.
"""

from dataclasses import dataclass, field
from enum import Enum


class Severity(str, Enum):
    """Severity of a diagnostic.

    Attributes:
        ERROR: The project is not usable as-is.
        WARNING: A likely problem worth the user's attention.
        INFO: A purely informational observation.
    """

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class DiagnosticKind(str, Enum):
    """Kind of structural observation about a project.

    Attributes:
        MISSING_REQUIRED_FOLDER: One of the four expected folders is absent.
        MISSING_RECOMMENDED_FOLDER: A conventional Assets subfolder is absent.
        LOOSE_ASSET_FILE: A file sits directly in the Assets root.
        CORRUPTED_PACKAGE_CACHE: A cached package lacks its manifest.
        EDITOR_VERSION_MISMATCH: The project's editor version is not installed.
        LARGE_FILE: A file exceeds the configured size threshold.
        EMPTY_DIRECTORY: A directory without any entries.
    """

    MISSING_REQUIRED_FOLDER = "missing_required_folder"
    MISSING_RECOMMENDED_FOLDER = "missing_recommended_folder"
    LOOSE_ASSET_FILE = "loose_asset_file"
    CORRUPTED_PACKAGE_CACHE = "corrupted_package_cache"
    EDITOR_VERSION_MISMATCH = "editor_version_mismatch"
    LARGE_FILE = "large_file"
    EMPTY_DIRECTORY = "empty_directory"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A non-fatal observation about a project's structure.

    Attributes:
        kind: What was observed.
        severity: How serious the observation is.
        message: Human-readable description.
        path: Project-relative path concerned, if any.
        recommendation: Suggested remedy, if any.
        size_bytes: File size for LARGE_FILE diagnostics.
    """

    kind: DiagnosticKind
    severity: Severity
    message: str
    path: str | None = None
    recommendation: str | None = None
    size_bytes: int | None = None


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Verdict of validating a candidate project root.

    Attributes:
        path: The path that was validated.
        valid: Whether the path is a usable project root.
        reason: Why the path is invalid (None when valid).
        missing: Required entries that are absent.
        diagnostics: Structural diagnostics (only when requested).
    """

    path: str
    valid: bool
    reason: str | None = None
    missing: tuple[str, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = field(default=())

    def __bool__(self) -> bool:
        return self.valid


@dataclass(frozen=True, slots=True)
class DiscoveredProject:
    """A project found during discovery.

    Attributes:
        path: Absolute project root.
        last_modified: ISO 8601 modification time of the Assets folder.
        recent: Whether the entry came from the recent-projects list.
    """

    path: str
    last_modified: str | None
    recent: bool = False
