"""Renal function estimation and clearance-predicate matching.

Renal adjustment rules carry their applicability as text, e.g.
``"CrCl >50 mL/min"``, ``"CrCl <10 mL/min"`` or ``"CrCl 10–50 mL/min"``.
Predicates that do not mention mL/min never match.
"""

import logging
import re

from ..models import AdjustmentRule
from .dosage_patterns import round_half_up

logger = logging.getLogger(__name__)

FEMALE_CRCL_FACTOR = 0.85
NO_RENAL_ADJUSTMENT = "none"
CREATININE_WARNING_THRESHOLD = 1.5   # mg/dL

_RANGE = re.compile(r"(\d+(?:\.\d+)?)\s*[–-]\s*(\d+(?:\.\d+)?)")
_GREATER = re.compile(r">\s*=?\s*(\d+(?:\.\d+)?)")
_LESS = re.compile(r"<\s*=?\s*(\d+(?:\.\d+)?)")


def cockcroft_gault(age: float, weight: float, creatinine: float, female: bool = False) -> float:
    """Estimate creatinine clearance in mL/min, rounded to one decimal.

    CrCl = ((140 - age) x weight) / (72 x SCr), x 0.85 for females.
    """
    crcl = ((140 - age) * weight) / (72 * creatinine)
    if female:
        crcl *= FEMALE_CRCL_FACTOR
    return round_half_up(crcl, 1)


def clearance_matches(condition: str, crcl: float) -> bool:
    """Evaluate a textual clearance predicate against a CrCl value."""
    text = condition.lower()
    if "ml/min" not in text:
        return False

    match = _RANGE.search(text)
    if match:
        low, high = float(match.group(1)), float(match.group(2))
        return low <= crcl <= high

    match = _GREATER.search(text)
    if match:
        return crcl > float(match.group(1))

    match = _LESS.search(text)
    if match:
        return crcl < float(match.group(1))

    logger.debug(f"Unrecognized renal predicate: {condition!r}")
    return False


def find_renal_rule(rules: list[AdjustmentRule], crcl: float) -> AdjustmentRule | None:
    """Return the first rule whose predicate matches, in listed order."""
    for rule in rules:
        if clearance_matches(rule.condition, crcl):
            return rule
    return None


def requires_adjustment(rule: AdjustmentRule | None) -> bool:
    return rule is not None and rule.adjustment.strip().lower() != NO_RENAL_ADJUSTMENT
