"""Rule tables for Unity projects.

This is the one place where the paths of a project type are declared:
what must never be deleted, and which regenerable locations each
category may clean. Everything else in the package treats these tables
as data.
"""

from dataclasses import dataclass, replace
from typing import Iterable

from unityclean.rules.models import CategorySpec, CleanCategory, PathRule, RuleKind, ScanBase

# Protected project-relative paths, matched case-insensitively
PROTECTED_PATHS: tuple[str, ...] = (
    # Source of truth for the project
    "Assets",
    "Packages",
    "ProjectSettings",
    # Editor state that is not regenerated
    "Library/LastSceneManagerSetup.txt",
    "Library/EditorUserBuildSettings.asset",
    "Library/BuildPlayer.prefs",
    "Library/assetservercachev3",
    "Library/unity default resources",
    "Library/unity editor resources",
    "Library/ScriptMapper",
    "Library/ScriptAssemblies",
)

# Named cache directories removed as a whole
LIBRARY_SUBTREE_ROOTS: tuple[str, ...] = (
    "Library/ShaderCache",
    "Library/TempArtifacts",
    "Library/BuildCache",
    "Library/ArtifactDB",
    "Library/SourceAssetDB",
    "Library/APIUpdater",
    "Library/BurstCache",
    "Library/PackageCache",
)

# File-name fragments of Unity/Unity Hub sign-in data (compared lowercase)
CREDENTIAL_NAME_PATTERNS: tuple[str, ...] = (
    "unity.sso",
    "accesstoken",
    "refreshtoken",
    "credentials",
)

DEFAULT_CATEGORY_SPECS: tuple[CategorySpec, ...] = (
    CategorySpec(
        category=CleanCategory.TEMPORARY_FILES,
        base=ScanBase.PROJECT,
        safe_roots=("Temp",),
    ),
    CategorySpec(
        category=CleanCategory.LIBRARY_CACHE,
        base=ScanBase.PROJECT,
        safe_roots=("Library",),
        subtree_roots=LIBRARY_SUBTREE_ROOTS,
    ),
    CategorySpec(
        category=CleanCategory.EDITOR_CACHE,
        base=ScanBase.UNITY_DATA,
        safe_roots=("Editor",),
    ),
    CategorySpec(
        category=CleanCategory.SIGN_OUT,
        base=ScanBase.CREDENTIALS,
        name_patterns=CREDENTIAL_NAME_PATTERNS,
    ),
)


@dataclass(frozen=True, slots=True)
class RuleSet:
    """Immutable bundle of protected rules and per-category specs.

    Attributes:
        protected: Global protected rules, applied to every category.
        categories: Spec of each category, keyed by category.
    """

    protected: tuple[PathRule, ...]
    categories: dict[CleanCategory, CategorySpec]

    def spec(self, category: CleanCategory) -> CategorySpec:
        """Return the spec of a category.

        Raises:
            KeyError: If the rule set has no spec for the category.
        """
        return self.categories[category]

    def with_protected(self, paths: Iterable[str]) -> "RuleSet":
        """Return a copy with additional protected paths.

        Paths already present are not duplicated.
        """
        existing = {rule.path for rule in self.protected}
        extra = tuple(
            PathRule(path.strip("/"), RuleKind.PROTECTED)
            for path in dict.fromkeys(paths)
            if path.strip("/") and path.strip("/") not in existing
        )
        return replace(self, protected=self.protected + extra)

    def with_category(self, spec: CategorySpec) -> "RuleSet":
        """Return a copy with one category spec replaced."""
        categories = dict(self.categories)
        categories[spec.category] = spec
        return replace(self, categories=categories)


def build_rules(
    protected_paths: Iterable[str] = PROTECTED_PATHS,
    category_specs: Iterable[CategorySpec] = DEFAULT_CATEGORY_SPECS,
) -> RuleSet:
    """Build a rule set from plain path lists.

    Args:
        protected_paths: Relative paths that must never be deleted.
        category_specs: Scan specification of each category.

    Returns:
        A new RuleSet.
    """
    return RuleSet(
        protected=tuple(PathRule(p, RuleKind.PROTECTED) for p in protected_paths),
        categories={spec.category: spec for spec in category_specs},
    )


DEFAULT_RULES: RuleSet = build_rules()
