"""Drug-drug interaction and patient contraindication checking.

Pairwise resolution prefers an explicit interaction entry on either drug
record and falls back to the class-based heuristics in
``dental_cds.rules.class_rules``. Pair results are cached for the session,
keyed by the sorted id pair, until ``clear_cache`` is called.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .models import DoseWarning, Drug, DrugInteraction, PatientParameters, WarningLevel
from .reference.drugs import DrugProvider
from .rules.class_rules import CLASS_RULE_EVIDENCE, match_class_rule
from .rules.contraindication_rules import ELDERLY_AGE_LIMIT, contraindication_applies, names_match
from .rules.severity_rules import InteractionSeverity, classify_severity

logger = logging.getLogger(__name__)

EXPLICIT_EVIDENCE = "Drug interaction database"
MULTI_DRUG_THRESHOLD = 3


class RiskLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


# Interaction severity -> (warning level, recommendation prefix)
SEVERITY_WARNINGS: dict[InteractionSeverity, tuple[WarningLevel, str]] = {
    InteractionSeverity.CONTRAINDICATED: (WarningLevel.MAJOR, "Do not use together. "),
    InteractionSeverity.MAJOR: (WarningLevel.MAJOR, "Monitor closely. "),
    InteractionSeverity.MODERATE: (WarningLevel.MODERATE, "Use with caution. "),
    InteractionSeverity.MINOR: (WarningLevel.MINOR, ""),
}


@dataclass
class DrugInteractionResult:
    drug1: str
    drug2: str
    severity: InteractionSeverity
    effect: str
    management: str
    evidence: str

    def to_dict(self) -> dict:
        return {
            "drug1": self.drug1,
            "drug2": self.drug2,
            "severity": self.severity.value,
            "effect": self.effect,
            "management": self.management,
            "evidence": self.evidence,
        }


@dataclass
class InteractionCheckResult:
    interactions: list[DrugInteractionResult] = field(default_factory=list)
    contraindications: list[str] = field(default_factory=list)
    warnings: list[DoseWarning] = field(default_factory=list)
    overall_risk: RiskLevel = RiskLevel.LOW

    def to_dict(self) -> dict[str, Any]:
        return {
            "interactions": [i.to_dict() for i in self.interactions],
            "contraindications": list(self.contraindications),
            "warnings": [w.to_dict() for w in self.warnings],
            "overall_risk": self.overall_risk.value,
        }


def pair_cache_key(drug_id1: str, drug_id2: str) -> str:
    first, second = sorted([drug_id1, drug_id2])
    return f"{first}:{second}"


def find_interaction(drug1: Drug, drug2: Drug) -> DrugInteractionResult | None:
    """Resolve the interaction between two drugs, if any.

    An explicit entry on ``drug1`` wins over one on ``drug2``; class
    heuristics are consulted only when neither record lists the other.
    """
    for first, second in ((drug1, drug2), (drug2, drug1)):
        for entry in first.interactions:
            if names_match(entry.drug, second.name):
                return DrugInteractionResult(
                    drug1=first.name,
                    drug2=second.name,
                    severity=classify_severity(entry.effect),
                    effect=entry.effect,
                    management=entry.management,
                    evidence=EXPLICIT_EVIDENCE,
                )

    match = match_class_rule(drug1.drug_class, drug2.drug_class)
    if match is None:
        return None

    rule, swapped = match
    first, second = (drug2, drug1) if swapped else (drug1, drug2)
    return DrugInteractionResult(
        drug1=first.name,
        drug2=second.name,
        severity=rule.severity,
        effect=rule.effect,
        management=rule.management,
        evidence=CLASS_RULE_EVIDENCE,
    )


def overall_risk(interactions: list[DrugInteractionResult], contraindications: list[str]) -> RiskLevel:
    """Aggregate risk, first matching tier wins."""
    if contraindications:
        return RiskLevel.CRITICAL
    severities = {i.severity for i in interactions}
    if severities & {InteractionSeverity.MAJOR, InteractionSeverity.CONTRAINDICATED}:
        return RiskLevel.HIGH
    if InteractionSeverity.MODERATE in severities or len(interactions) >= MULTI_DRUG_THRESHOLD:
        return RiskLevel.MODERATE
    return RiskLevel.LOW


class InteractionChecker:
    """Checks combinations of drugs, optionally against a patient profile."""

    def __init__(self, drugs: DrugProvider):
        self.drugs = drugs
        self._pair_cache: dict[str, DrugInteractionResult | None] = {}
        self._drugs_seen: set[str] = set()
        self._risk_counts: Counter = Counter()

    def check_interactions(
        self,
        drug_ids: list[str],
        patient: PatientParameters | None = None,
    ) -> InteractionCheckResult:
        """Check every unordered pair of drugs and the patient's contraindications.

        Args:
            drug_ids: Drug ids (or names). Unknown ids are skipped.
            patient: Optional profile; contraindication and patient warnings
                need it.

        Returns:
            InteractionCheckResult. Fewer than two ids gives an empty,
            low-risk result.
        """
        if len(drug_ids) < 2:
            return InteractionCheckResult()

        drugs = []
        for drug_id in drug_ids:
            drug = self.drugs.get_by_id(drug_id)
            if drug is None:
                logger.warning(f"Interaction check: unknown drug {drug_id!r}")
                continue
            drugs.append(drug)
            self._drugs_seen.add(drug.id)

        interactions = []
        for i in range(len(drugs)):
            for j in range(i + 1, len(drugs)):
                interaction = self._pair(drugs[i], drugs[j])
                if interaction is not None:
                    interactions.append(interaction)

        contraindications = self._contraindications(drugs, patient)
        warnings = self._warnings(interactions, drugs, patient)
        risk = overall_risk(interactions, contraindications)
        self._risk_counts[risk.value] += 1

        logger.info(
            f"Checked {len(drugs)} drugs: {len(interactions)} interactions, "
            f"{len(contraindications)} contraindications, risk {risk.value}"
        )
        return InteractionCheckResult(interactions, contraindications, warnings, risk)

    def check_pair_interaction(self, drug_id1: str, drug_id2: str) -> DrugInteractionResult | None:
        """Interaction between two drugs, or None if either is unknown or none exists."""
        drug1 = self.drugs.get_by_id(drug_id1)
        drug2 = self.drugs.get_by_id(drug_id2)
        if drug1 is None or drug2 is None:
            return None
        return self._pair(drug1, drug2)

    def get_drug_interactions(self, drug_id: str) -> list[DrugInteraction]:
        drug = self.drugs.get_by_id(drug_id)
        return list(drug.interactions) if drug else []

    def interaction_stats(self) -> dict:
        return {
            "drugs_checked": len(self._drugs_seen),
            "pairs_cached": len(self._pair_cache),
            "interactions_found": sum(1 for r in self._pair_cache.values() if r is not None),
            "risk_distribution": {
                level.value: self._risk_counts.get(level.value, 0) for level in RiskLevel
            },
        }

    def clear_cache(self) -> None:
        """Drop cached pair results; call whenever drug data is reloaded."""
        self._pair_cache.clear()
        self._drugs_seen.clear()
        logger.debug("Interaction cache cleared")

    # --- internals ---

    def _pair(self, drug1: Drug, drug2: Drug) -> DrugInteractionResult | None:
        key = pair_cache_key(drug1.id, drug2.id)
        if key not in self._pair_cache:
            self._pair_cache[key] = find_interaction(drug1, drug2)
        return self._pair_cache[key]

    @staticmethod
    def _contraindications(drugs: list[Drug], patient: PatientParameters | None) -> list[str]:
        if patient is None:
            return []
        return [
            f"{drug.name}: {contraindication}"
            for drug in drugs
            for contraindication in drug.contraindications
            if contraindication_applies(drug, contraindication, patient)
        ]

    @staticmethod
    def _warnings(
        interactions: list[DrugInteractionResult],
        drugs: list[Drug],
        patient: PatientParameters | None,
    ) -> list[DoseWarning]:
        warnings = []
        for interaction in interactions:
            level, prefix = SEVERITY_WARNINGS[interaction.severity]
            warnings.append(DoseWarning(
                level,
                f"Interaction between {interaction.drug1} and {interaction.drug2}: {interaction.effect}",
                f"{prefix}{interaction.management}",
            ))

        if len(drugs) >= MULTI_DRUG_THRESHOLD:
            warnings.append(DoseWarning(
                WarningLevel.MODERATE,
                "Multiple medications prescribed. Increased risk of adverse effects.",
                "Monitor patient closely for side effects and drug interactions."))

        if patient is not None:
            if patient.age > ELDERLY_AGE_LIMIT and len(drugs) >= 2:
                warnings.append(DoseWarning(
                    WarningLevel.MODERATE,
                    "Elderly patient on multiple medications.",
                    "Consider dose adjustments and monitor for adverse effects."))

            conditions = [c.lower() for c in patient.conditions]
            if any("renal" in c for c in conditions):
                warnings.append(DoseWarning(
                    WarningLevel.MODERATE,
                    "Patient has renal impairment.",
                    "Check renal dosing for all medications."))

            if any("hepatic" in c or "liver" in c for c in conditions):
                warnings.append(DoseWarning(
                    WarningLevel.MODERATE,
                    "Patient has hepatic impairment.",
                    "Check hepatic dosing for all medications."))

        return warnings
