"""Patient-profile alert tables used by the content validator.

Each entry maps keywords found in an allergy or condition string to the
clinical alert raised for it. One alert is raised per matching string.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProfileAlertRule:
    keywords: tuple[str, ...]
    alert_type: str
    message: str
    severity: str
    action: str

    def matches(self, text: str) -> bool:
        lowered = text.lower()
        return any(keyword in lowered for keyword in self.keywords)


PEDIATRIC_ALERT = ProfileAlertRule(
    keywords=(),
    alert_type="age_restriction",
    message="Pediatric patient - special dosing considerations may apply",
    severity="major",
    action="Review pediatric dosing guidelines",
)

GERIATRIC_ALERT = ProfileAlertRule(
    keywords=(),
    alert_type="age_restriction",
    message="Geriatric patient - dose adjustments may be required",
    severity="moderate",
    action="Consider renal function and drug clearance",
)

ALLERGY_ALERT_RULES: list[ProfileAlertRule] = [
    ProfileAlertRule(
        keywords=("penicillin",),
        alert_type="allergy",
        message="Penicillin allergy detected",
        severity="critical",
        action="Avoid all beta-lactam antibiotics",
    ),
    ProfileAlertRule(
        keywords=("sulfa",),
        alert_type="allergy",
        message="Sulfa allergy detected",
        severity="major",
        action="Avoid sulfonamide-containing medications",
    ),
]

CONDITION_ALERT_RULES: list[ProfileAlertRule] = [
    ProfileAlertRule(
        keywords=("kidney", "renal"),
        alert_type="dosage",
        message="Renal impairment detected",
        severity="major",
        action="Consider dose adjustment based on creatinine clearance",
    ),
    ProfileAlertRule(
        keywords=("liver", "hepatic"),
        alert_type="dosage",
        message="Hepatic impairment detected",
        severity="major",
        action="Consider dose adjustment for hepatically metabolized drugs",
    ),
    ProfileAlertRule(
        keywords=("heart", "cardiac"),
        alert_type="contraindication",
        message="Cardiac condition detected",
        severity="moderate",
        action="Monitor for drug interactions with cardiac medications",
    ),
]

# Body-weight advisories, kg
LOW_WEIGHT_KG = 40
HIGH_WEIGHT_KG = 120

# Properties every material record is expected to describe
ESSENTIAL_MATERIAL_PROPERTIES = ("strength", "aesthetics", "durability", "biocompatibility")
