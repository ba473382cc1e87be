"""Interaction severity classification from free-text effect descriptions.

The table is scanned top to bottom and the first tier with a matching
keyword wins, so a description mentioning "contraindicated" is always
classified as contraindicated whatever else it says.
"""

from enum import Enum


class InteractionSeverity(str, Enum):
    """Severity of a drug-drug interaction."""
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    CONTRAINDICATED = "contraindicated"


# Ordered by specificity (most severe first)
SEVERITY_KEYWORDS: list[tuple[InteractionSeverity, tuple[str, ...]]] = [
    (
        InteractionSeverity.CONTRAINDICATED,
        ("contraindicated", "avoid", "do not use together"),
    ),
    (
        InteractionSeverity.MAJOR,
        ("major", "severe", "life-threatening", "rhabdomyolysis"),
    ),
    (
        InteractionSeverity.MODERATE,
        ("moderate", "significant", "increased risk", "toxicity"),
    ),
]

DEFAULT_SEVERITY = InteractionSeverity.MINOR


def classify_severity(effect: str) -> InteractionSeverity:
    """Classify an interaction effect description by keyword scan."""
    text = (effect or "").lower()
    for severity, keywords in SEVERITY_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return severity
    return DEFAULT_SEVERITY
