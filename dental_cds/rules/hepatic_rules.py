"""Hepatic impairment detection and adjustment-tier selection.

Only one impairment tier is modeled: any patient with a liver condition is
treated as Child-Pugh B (moderate). The engine does not grade severity.
"""

from ..models import AdjustmentRule

HEPATIC_CONDITION_KEYWORDS = ("liver", "hepatic", "cirrhosis")

# Tags identifying the Child-Pugh B rule in a drug's hepatic list
HEPATIC_TIER_TAGS = ("child-pugh b", "moderate")

NO_HEPATIC_ADJUSTMENT = "none required"


def has_hepatic_condition(conditions: list[str]) -> bool:
    return any(
        keyword in condition.lower()
        for condition in conditions
        for keyword in HEPATIC_CONDITION_KEYWORDS
    )


def select_hepatic_rule(rules: list[AdjustmentRule]) -> AdjustmentRule | None:
    """Return the first rule tagged for moderate (Child-Pugh B) impairment."""
    for rule in rules:
        condition = rule.condition.lower()
        if any(tag in condition for tag in HEPATIC_TIER_TAGS):
            return rule
    return None


def requires_adjustment(rule: AdjustmentRule | None) -> bool:
    return rule is not None and rule.adjustment.strip().lower() != NO_HEPATIC_ADJUSTMENT
