"""Three-way classification of relative paths.

Decides whether a path below a category's scan base is protected, safe
to delete, or unclassified. Protected rules are checked first and always
win; a path matching no rule is unclassified and must be left alone.

All functions here are pure: no filesystem access, no logging.
"""

from unityclean.rules.models import Classification, CleanCategory, PathRule
from unityclean.rules.tables import DEFAULT_RULES, RuleSet


def normalize(relative_path: str) -> str:
    """Normalize a relative path for rule matching.

    Converts backslashes to ``/``, drops ``.`` components and empty
    components, and strips leading/trailing separators.

    Args:
        relative_path: Path relative to a scan base.

    Returns:
        Normalized path ("" for the base itself).
    """
    parts = [p for p in relative_path.replace("\\", "/").split("/") if p not in ("", ".")]
    return "/".join(parts)


def _matches(path: str, rule_path: str) -> bool:
    """Exact match or prefix match on a whole path component."""
    return path == rule_path or path.startswith(rule_path + "/")


def is_protected(relative_path: str, rules: RuleSet = DEFAULT_RULES) -> bool:
    """Check if a relative path is covered by a protected rule.

    Protected matching ignores case so that a differently cased path on a
    case-insensitive filesystem still resolves to the protected entry.

    Args:
        relative_path: Path relative to the scan base.
        rules: Rule set to check against.

    Returns:
        True if the path equals or lies below a protected entry.
    """
    path = normalize(relative_path).casefold()
    return any(_matches(path, normalize(rule.path).casefold()) for rule in rules.protected)


def _is_safe(path: str, safe_rules: tuple[PathRule, ...]) -> bool:
    return any(_matches(path, normalize(rule.path)) for rule in safe_rules)


def classify(
    relative_path: str,
    category: CleanCategory,
    rules: RuleSet = DEFAULT_RULES,
) -> Classification:
    """Classify a relative path for a category.

    Args:
        relative_path: Path relative to the category's scan base.
        category: Category whose safe roots apply.
        rules: Rule set to classify against.

    Returns:
        PROTECTED if any protected rule matches (checked first),
        SAFE if a safe root of the category matches,
        UNCLASSIFIED otherwise.
    """
    if is_protected(relative_path, rules):
        return Classification.PROTECTED

    path = normalize(relative_path)
    if not path:
        return Classification.UNCLASSIFIED

    spec = rules.categories.get(category)
    if spec is not None and _is_safe(path, spec.safe_rules()):
        return Classification.SAFE

    return Classification.UNCLASSIFIED


def protected_within(subtree: str, rules: RuleSet = DEFAULT_RULES) -> list[str]:
    """List protected entries located inside a directory.

    A subtree that contains a protected entry must not be removed in one
    step. Entries that protect the subtree itself or one of its parents
    are reported too.

    Args:
        subtree: Relative directory path.
        rules: Rule set to check against.

    Returns:
        Protected rule paths equal to, above, or below ``subtree``.
    """
    root = normalize(subtree).casefold()
    found: list[str] = []
    for rule in rules.protected:
        rule_path = normalize(rule.path).casefold()
        if _matches(rule_path, root) or _matches(root, rule_path):
            found.append(rule.path)
    return found
