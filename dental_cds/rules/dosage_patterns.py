"""Dose and regimen string patterns.

Dose strings in the reference data are free text following a small family
of shapes ("500 mg", "10 mg/kg", "1-2 tablets"). Regimens are frequency
codes (TID, Q8H, "3 times per day"), optionally followed by
``" × <duration>"``.
"""

import math
import re

# Accepted adult dose shapes; anything else is reported as non-standard
DOSE_FORMAT_PATTERNS: list[re.Pattern] = [
    re.compile(r"^\d+(\.\d+)?\s*(mg|g|ml|tablets?|capsules?|units?)$", re.IGNORECASE),
    re.compile(r"^\d+(\.\d+)?\s*(mg|g|ml)/kg$", re.IGNORECASE),
    re.compile(r"^\d+-\d+\s*(mg|g|ml|tablets?|capsules?)$", re.IGNORECASE),
]

# Frequency code -> administrations per day, checked in order
REGIMEN_DOSES_PER_DAY: list[tuple[tuple[str, ...], int]] = [
    (("q6h", "qid"), 4),
    (("q8h", "tid"), 3),
    (("q12h", "bid"), 2),
    (("q24h", "qd", "daily"), 1),
]
TIMES_PER_DAY_PATTERN = re.compile(r"(\d+)\s*times?\s*(?:per\s*)?day")
DEFAULT_DOSES_PER_DAY = 3

PEDIATRIC_DOSE_PATTERN = re.compile(
    r"(\d+(?:\.\d+)?)(?:\s*[–-]\s*(\d+(?:\.\d+)?))?\s*mg/kg/day", re.IGNORECASE
)
REGIMEN_DURATION_SEPARATOR = " × "
DEFAULT_DURATION = "7 days"

FIRST_NUMBER_PATTERN = re.compile(r"(\d+(?:\.\d+)?)")
FIRST_INTEGER_PATTERN = re.compile(r"(\d+)")

STANDARD_DOSE = "Standard dose"
AS_PRESCRIBED = "As prescribed"
CALCULATE_MANUALLY = "Calculate manually"


def is_valid_dosage_format(dose: str) -> bool:
    """Check a dose string against the accepted shapes."""
    value = dose.strip()
    return any(pattern.match(value) for pattern in DOSE_FORMAT_PATTERNS)


def doses_per_day(frequency: str) -> int:
    """Infer administrations per day from a regimen string."""
    freq = (frequency or "").lower()
    for codes, count in REGIMEN_DOSES_PER_DAY:
        if any(code in freq for code in codes):
            return count

    match = TIMES_PER_DAY_PATTERN.search(freq)
    if match:
        return int(match.group(1))

    return DEFAULT_DOSES_PER_DAY


def parse_mg_per_kg_day(dose: str) -> tuple[float, float] | None:
    """Parse ``"min[–max] mg/kg/day"`` into ``(min, max)``."""
    match = PEDIATRIC_DOSE_PATTERN.search(dose or "")
    if not match:
        return None
    low = float(match.group(1))
    high = float(match.group(2)) if match.group(2) else low
    return low, high


def split_regimen(regimen: str) -> tuple[str, str]:
    """Split ``"TID × 7 days"`` into ``("TID", "7 days")``."""
    if REGIMEN_DURATION_SEPARATOR in regimen:
        frequency, duration = regimen.split(REGIMEN_DURATION_SEPARATOR, 1)
        return frequency.strip(), duration.strip()
    if "×" in regimen:
        frequency, duration = regimen.split("×", 1)
        return frequency.strip(), duration.strip()
    return regimen, DEFAULT_DURATION


def parse_adjusted_dose(dose_amount: str) -> tuple[str, str]:
    """Split an adjustment dose such as ``"250 mg Q12H"`` into (dosage, frequency)."""
    if "standard" in dose_amount.lower():
        return STANDARD_DOSE, AS_PRESCRIBED

    parts = dose_amount.split()
    if len(parts) >= 3:
        return f"{parts[0]} {parts[1]}", parts[2]

    return dose_amount, AS_PRESCRIBED


def first_number(text: str) -> float | None:
    match = FIRST_NUMBER_PATTERN.search(text or "")
    return float(match.group(1)) if match else None


def first_integer(text: str) -> int | None:
    match = FIRST_INTEGER_PATTERN.search(text or "")
    return int(match.group(1)) if match else None


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero for positive values."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def format_amount(value: float) -> str:
    """Render a quantity without a trailing ``.0``."""
    if value == int(value):
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")
