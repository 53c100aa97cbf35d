"""Counting stage of a cleaning run.

Enumerates the safe roots of every selected category, classifies each
entry and collects the deletable units. Only SAFE paths become units;
protected entries are recorded and unclassified ones are dropped
silently.

Named cache subtrees become a single unit unless a protected rule lies
inside them, in which case they are planned file by file.

Directories that cannot be read and category roots that are symlinks are
recorded as skipped; a symlinked root is never followed.
"""

import logging
import os
from collections.abc import Callable, Iterable
from pathlib import Path

from unityclean.engine.models import CleanPlan, CleanUnit, SkippedItem, UnitKind
from unityclean.engine.signout import find_credential_files
from unityclean.rules.classifier import classify, is_protected, normalize, protected_within
from unityclean.rules.models import (
    CATEGORY_ORDER,
    CategorySpec,
    Classification,
    CleanCategory,
    ScanBase,
)
from unityclean.rules.tables import DEFAULT_RULES, RuleSet

logger = logging.getLogger(__name__)


class _Collector:
    """Mutable accumulator for one planning pass."""

    def __init__(self) -> None:
        self.units: list[CleanUnit] = []
        self.protected_kept: list[str] = []
        self.downgraded: list[str] = []
        self.missing_roots: list[str] = []
        self.skipped: list[SkippedItem] = []

    def walk_error(self, error: OSError) -> None:
        path = error.filename or "?"
        logger.warning("Skipping unreadable directory during planning: %s", error)
        self.skipped.append(SkippedItem(str(path), error.strerror or str(error)))


class CleanPlanner:
    """Builds clean plans from the rule tables.

    Args:
        rules: Rule set used for classification.
        unity_data_dir: Base of the editor cache category, None if unknown.
        credential_roots: Directories searched by the sign-out category.
    """

    def __init__(
        self,
        rules: RuleSet = DEFAULT_RULES,
        unity_data_dir: Path | None = None,
        credential_roots: Iterable[Path] = (),
    ) -> None:
        self._rules = rules
        self._unity_data_dir = unity_data_dir
        self._credential_roots = tuple(credential_roots)

    @property
    def rules(self) -> RuleSet:
        """Rule set used for classification."""
        return self._rules

    def plan(
        self,
        project: Path,
        categories: Iterable[CleanCategory],
        should_stop: Callable[[], bool] | None = None,
    ) -> CleanPlan:
        """Compute the units of a run.

        Args:
            project: Validated project root.
            categories: Selected categories, in any order.
            should_stop: Polled once per directory; when it returns True
                enumeration stops and the partial plan is returned.

        Returns:
            CleanPlan with units in execution order.
        """
        selected = tuple(c for c in CATEGORY_ORDER if c in set(categories))
        stop = should_stop or (lambda: False)
        collector = _Collector()
        credential_files: list[Path] = []

        for category in selected:
            if stop():
                break
            spec = self._rules.categories.get(category)
            if spec is None:
                logger.warning("No rules defined for category %s", category.value)
                continue

            if spec.base == ScanBase.CREDENTIALS:
                planned = {unit.path for unit in collector.units}
                credential_files = [
                    path
                    for path in find_credential_files(self._credential_roots, spec.name_patterns)
                    if path not in planned
                ]
                continue

            base = self._resolve_base(spec.base, project)
            if base is None:
                collector.missing_roots.extend(spec.safe_roots)
                continue
            self._plan_category(spec, base, collector, stop)

        plan = CleanPlan(
            project=project,
            categories=selected,
            units=tuple(collector.units),
            credential_files=tuple(credential_files),
            protected_kept=tuple(collector.protected_kept),
            downgraded=tuple(collector.downgraded),
            missing_roots=tuple(collector.missing_roots),
            skipped=tuple(collector.skipped),
        )
        logger.debug(
            "Planned %d units (%d credential files, %d protected kept) for %s",
            plan.total,
            len(plan.credential_files),
            len(plan.protected_kept),
            project,
        )
        return plan

    def _resolve_base(self, base: ScanBase, project: Path) -> Path | None:
        if base == ScanBase.PROJECT:
            return project
        if base == ScanBase.UNITY_DATA:
            return self._unity_data_dir
        return None

    def _plan_category(
        self,
        spec: CategorySpec,
        base: Path,
        collector: _Collector,
        stop: Callable[[], bool],
    ) -> None:
        subtree_roots = {normalize(root) for root in spec.subtree_roots}

        for root in spec.safe_roots:
            root_rel = normalize(root)
            root_path = base / root_rel
            if root_path.is_symlink():
                logger.warning("Not following symlinked category root %s", root_path)
                collector.skipped.append(
                    SkippedItem(str(root_path), "symlinked category root is not followed")
                )
                continue
            if not root_path.is_dir():
                collector.missing_roots.append(str(root_path))
                continue
            if is_protected(root_rel, self._rules):
                collector.protected_kept.append(root_rel)
                continue
            if not self._walk(spec.category, base, root_path, subtree_roots, collector, stop):
                return

    def _walk(
        self,
        category: CleanCategory,
        base: Path,
        root_path: Path,
        subtree_roots: set[str],
        collector: _Collector,
        stop: Callable[[], bool],
    ) -> bool:
        """Walk one safe root. Returns False if stopped early."""
        for dirpath, dirnames, filenames in os.walk(root_path, onerror=collector.walk_error):
            if stop():
                return False

            current = Path(dirpath)
            rel_dir = current.relative_to(base).as_posix()
            dirnames.sort()

            # Symlinked directories are removed as links, never followed
            files = sorted(filenames + [d for d in dirnames if (current / d).is_symlink()])
            descend: list[str] = []

            for name in files:
                rel = f"{rel_dir}/{name}"
                verdict = classify(rel, category, self._rules)
                if verdict == Classification.SAFE:
                    collector.units.append(CleanUnit(category, current / name, rel))
                elif verdict == Classification.PROTECTED:
                    collector.protected_kept.append(rel)

            for name in dirnames:
                child = current / name
                if child.is_symlink():
                    continue
                rel = f"{rel_dir}/{name}"
                verdict = classify(rel, category, self._rules)
                if verdict == Classification.PROTECTED:
                    collector.protected_kept.append(rel)
                    continue
                if verdict == Classification.UNCLASSIFIED:
                    continue
                if rel in subtree_roots:
                    if protected_within(rel, self._rules):
                        logger.info(
                            "Cache subtree %s holds protected entries, deleting per file", rel
                        )
                        collector.downgraded.append(rel)
                    else:
                        collector.units.append(CleanUnit(category, child, rel, UnitKind.SUBTREE))
                        continue
                descend.append(name)

            dirnames[:] = descend
        return True
