"""Fixed advisory text attached to dose results."""

from dataclasses import dataclass


@dataclass(frozen=True)
class DrugAdvisory:
    """Monitoring note for drugs whose name or class contains a keyword."""
    keyword: str
    field: str          # "name" or "class"
    note: str

    def applies_to(self, name: str, drug_class: str) -> bool:
        target = name if self.field == "name" else drug_class
        return self.keyword in target.lower()


DRUG_ADVISORIES: list[DrugAdvisory] = [
    DrugAdvisory("clindamycin", "name", "Monitor for C. difficile-associated diarrhea"),
    DrugAdvisory("penicillin", "class", "Monitor for allergic reactions, especially during first dose"),
]

COMPLIANCE_NOTES: list[str] = [
    "Complete full course even if symptoms improve",
    "Take with full glass of water",
]

ELDERLY_NOTE = "Elderly patient - monitor for increased drug sensitivity"

PROCEDURAL_RECOMMENDATIONS: dict[str, list[str]] = {
    "tooth_extraction": [
        "Consider prophylaxis for high-risk patients",
        "Post-operative antibiotics only if signs of infection",
        "Amoxicillin 500mg TID x 5-7 days if indicated",
    ],
    "root_canal": [
        "Antibiotics not routinely indicated",
        "Consider if systemic signs of infection present",
        "Clindamycin for penicillin-allergic patients",
    ],
    "periodontal_surgery": [
        "Prophylaxis may be indicated for certain patients",
        "Post-operative antibiotics controversial",
        "Consider patient risk factors",
    ],
    "implant_placement": [
        "Prophylactic antibiotics commonly used",
        "Amoxicillin 2g 1 hour pre-procedure",
        "Post-operative course may be beneficial",
    ],
}


def advisories_for(name: str, drug_class: str) -> list[str]:
    return [a.note for a in DRUG_ADVISORIES if a.applies_to(name, drug_class)]
