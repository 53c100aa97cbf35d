"""Rule domain models for path classification.

This module defines the categories a user can select, the three-way
classification outcome, and the rule records that drive it.
"""

from dataclasses import dataclass
from enum import Enum


class CleanCategory(str, Enum):
    """Independently selectable group of cache locations.

    Declaration order is the fixed execution order of a cleaning run.

    Attributes:
        TEMPORARY_FILES: The project's ``Temp`` directory.
        LIBRARY_CACHE: Regenerable content of the project's ``Library``.
        EDITOR_CACHE: The per-user Unity editor cache (not tied to the project).
        SIGN_OUT: Credential files of Unity and Unity Hub.
    """

    TEMPORARY_FILES = "temporary_files"
    LIBRARY_CACHE = "library_cache"
    EDITOR_CACHE = "editor_cache"
    SIGN_OUT = "sign_out"

    @property
    def label(self) -> str:
        """Human-readable category name."""
        return _LABELS[self]


_LABELS: dict[CleanCategory, str] = {
    CleanCategory.TEMPORARY_FILES: "Temporary Files",
    CleanCategory.LIBRARY_CACHE: "Library Cache",
    CleanCategory.EDITOR_CACHE: "Editor Cache",
    CleanCategory.SIGN_OUT: "Sign Out of Unity",
}

CATEGORY_ORDER: tuple[CleanCategory, ...] = tuple(CleanCategory)


class Classification(str, Enum):
    """Outcome of classifying a relative path.

    Attributes:
        PROTECTED: Matches a protected rule and must never be deleted.
        SAFE: Lies under one of the category's safe roots.
        UNCLASSIFIED: Matches nothing; treated as non-deletable.
    """

    PROTECTED = "protected"
    SAFE = "safe"
    UNCLASSIFIED = "unclassified"


class RuleKind(str, Enum):
    """Kind of a path rule."""

    PROTECTED = "protected"
    SAFE = "safe"


class ScanBase(str, Enum):
    """Directory a category's relative paths are resolved against.

    Attributes:
        PROJECT: The selected project root.
        UNITY_DATA: Unity's per-user local data directory.
        CREDENTIALS: The Unity/Unity Hub credential roots.
    """

    PROJECT = "project"
    UNITY_DATA = "unity_data"
    CREDENTIALS = "credentials"


@dataclass(frozen=True, slots=True)
class PathRule:
    """A single classification entry.

    Attributes:
        path: Relative path using ``/`` separators. Matches the exact path
            and everything below it.
        kind: Whether the rule protects or allows deletion.
    """

    path: str
    kind: RuleKind

    def __post_init__(self) -> None:
        """Validate rule data after initialization."""
        if not self.path.strip("/"):
            msg = "Rule path cannot be empty"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class CategorySpec:
    """Scan configuration of one category.

    Attributes:
        category: The category described.
        base: Directory the relative roots are resolved against.
        safe_roots: Ordered safe roots; each is scanned recursively.
        subtree_roots: Safe directories deleted in one step (one unit of
            progress) instead of file by file.
        name_patterns: Case-insensitive file-name substrings; used by the
            credential category instead of path roots.
    """

    category: CleanCategory
    base: ScanBase
    safe_roots: tuple[str, ...] = ()
    subtree_roots: tuple[str, ...] = ()
    name_patterns: tuple[str, ...] = ()

    def safe_rules(self) -> tuple[PathRule, ...]:
        """Return the safe roots as rules."""
        return tuple(PathRule(root, RuleKind.SAFE) for root in self.safe_roots)
