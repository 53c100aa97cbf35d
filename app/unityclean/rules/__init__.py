"""Path classification rules.

This module provides the category/rule models, the default Unity rule
tables, and the pure classifier that applies them.
"""

from unityclean.rules.classifier import classify, is_protected, normalize, protected_within
from unityclean.rules.models import (
    CATEGORY_ORDER,
    CategorySpec,
    Classification,
    CleanCategory,
    PathRule,
    RuleKind,
    ScanBase,
)
from unityclean.rules.tables import DEFAULT_RULES, PROTECTED_PATHS, RuleSet, build_rules

__all__ = [
    "CATEGORY_ORDER",
    "DEFAULT_RULES",
    "PROTECTED_PATHS",
    "CategorySpec",
    "Classification",
    "CleanCategory",
    "PathRule",
    "RuleKind",
    "RuleSet",
    "ScanBase",
    "build_rules",
    "classify",
    "is_protected",
    "normalize",
    "protected_within",
]
