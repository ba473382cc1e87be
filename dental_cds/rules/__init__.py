"""Keyword and pattern tables driving the clinical rules engine.

Tables are plain data so they can be extended without touching the
engines that consume them. Bump RULES_VERSION when a table changes.
"""

from .severity_rules import InteractionSeverity, classify_severity, SEVERITY_KEYWORDS
from .class_rules import ClassInteractionRule, CLASS_INTERACTION_RULES, match_class_rule
from .dosage_patterns import DOSE_FORMAT_PATTERNS, is_valid_dosage_format, doses_per_day

RULES_VERSION = "2024.1"

__all__ = [
    "RULES_VERSION",
    "InteractionSeverity",
    "classify_severity",
    "SEVERITY_KEYWORDS",
    "ClassInteractionRule",
    "CLASS_INTERACTION_RULES",
    "match_class_rule",
    "DOSE_FORMAT_PATTERNS",
    "is_valid_dosage_format",
    "doses_per_day",
]
