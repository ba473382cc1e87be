"""Contraindication matching between drug records and patient profiles.

All matching is case-insensitive substring matching. It tolerates salts and
formulations ("warfarin" vs "Warfarin sodium") at the cost of occasional
false positives between unrelated names sharing a substring.
"""

from ..models import Drug, PatientParameters

ALLERGY_MARKERS = ("allergy", "hypersensitivity")
PEDIATRIC_MARKERS = ("children", "pediatric")
ELDERLY_MARKERS = ("elderly",)
PREGNANCY_MARKERS = ("pregnancy", "lactation")
PREGNANT_CONDITION = "pregnant"

PEDIATRIC_AGE_LIMIT = 18      # years, exclusive
ELDERLY_AGE_LIMIT = 65        # years, exclusive


def contains_either(a: str, b: str) -> bool:
    """True when either lowercased string contains the other. Empty strings never match."""
    a, b = a.strip().lower(), b.strip().lower()
    if not a or not b:
        return False
    return a in b or b in a


def names_match(listed_name: str, actual_name: str) -> bool:
    """Match an interaction entry's drug name against a drug record name."""
    return contains_either(listed_name, actual_name)


def matching_allergies(drug: Drug, allergies: list[str]) -> list[str]:
    """Allergies that match the drug's name or class in either direction."""
    return [
        allergy for allergy in allergies
        if contains_either(allergy, drug.name) or contains_either(allergy, drug.drug_class)
    ]


def matching_condition_contraindications(drug: Drug, conditions: list[str]) -> list[str]:
    """Drug-listed contraindications that match any patient condition."""
    return [
        contraindication for contraindication in drug.contraindications
        if any(contains_either(contraindication, condition) for condition in conditions)
    ]


def _has_marker(text: str, markers: tuple[str, ...]) -> bool:
    return any(marker in text for marker in markers)


def contraindication_applies(
    drug: Drug, contraindication: str, patient: PatientParameters
) -> bool:
    """Decide whether one drug-listed contraindication applies to the patient.

    A contraindication applies when it is an allergy entry and the patient is
    allergic to the drug's class or generic name, when it mentions one of the
    patient's conditions, when it restricts an age group the patient belongs
    to, or when it concerns pregnancy and the patient is pregnant.
    """
    text = contraindication.lower()

    if _has_marker(text, ALLERGY_MARKERS):
        drug_class = drug.drug_class.lower()
        generic = drug.name.lower().split(" ")[0]
        for allergy in patient.allergies:
            allergy_text = allergy.lower()
            if (drug_class and drug_class in allergy_text) or (generic and generic in allergy_text):
                return True

    for condition in patient.conditions:
        condition_text = condition.strip().lower()
        if condition_text and condition_text in text:
            return True

    if patient.age < PEDIATRIC_AGE_LIMIT and _has_marker(text, PEDIATRIC_MARKERS):
        return True

    if patient.age > ELDERLY_AGE_LIMIT and _has_marker(text, ELDERLY_MARKERS):
        return True

    is_pregnant = any(PREGNANT_CONDITION in c.lower() for c in patient.conditions)
    if is_pregnant and _has_marker(text, PREGNANCY_MARKERS):
        return True

    return False
