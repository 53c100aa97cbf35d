"""Project validation, discovery and the recent-projects list."""

from unityclean.project.discovery import ProjectDiscovery
from unityclean.project.models import (
    Diagnostic,
    DiagnosticKind,
    DiscoveredProject,
    Severity,
    ValidationResult,
)
from unityclean.project.recent import MAX_RECENT_PROJECTS, RecentProjectsStore
from unityclean.project.validator import (
    EXPECTED_FOLDERS,
    ProjectValidator,
    is_package_cache_corrupted,
    is_valid_project,
    read_editor_version,
    validate,
)

__all__ = [
    "EXPECTED_FOLDERS",
    "MAX_RECENT_PROJECTS",
    "Diagnostic",
    "DiagnosticKind",
    "DiscoveredProject",
    "ProjectDiscovery",
    "ProjectValidator",
    "RecentProjectsStore",
    "Severity",
    "ValidationResult",
    "is_package_cache_corrupted",
    "is_valid_project",
    "read_editor_version",
    "validate",
]
