"""Dose calculation for dental prescribing.

The pipeline for a single calculation:

1. Range-check the patient parameters.
2. Resolve the drug and check allergies and listed contraindications. Any
   hit short-circuits to a CONTRAINDICATED result.
3. Compute the base dose (weight-based for children when a mg/kg/day dose
   is available, otherwise the adult dose and regimen).
4. Apply the renal adjustment when serum creatinine is known.
5. Apply the hepatic adjustment when the patient has a liver condition.
6. Attach warnings, the course total and clinical notes.

The calculation is deterministic: the same inputs always give the same
DoseResult.
"""

import logging

from .config import config
from .exceptions import InvalidPatientError, NotFoundError
from .models import (
    CONTRAINDICATED,
    DoseResult,
    DoseWarning,
    Drug,
    PatientParameters,
    WarningLevel,
)
from .reference.drugs import DrugProvider
from .rules import advisories, hepatic_rules, renal_rules
from .rules.contraindication_rules import (
    matching_allergies,
    matching_condition_contraindications,
)
from .rules.dosage_patterns import (
    CALCULATE_MANUALLY,
    DEFAULT_DURATION,
    doses_per_day,
    first_integer,
    first_number,
    format_amount,
    parse_adjusted_dose,
    parse_mg_per_kg_day,
    round_half_up,
    split_regimen,
)
from .validation import ContentValidator, ValidationResult, validation_summary

logger = logging.getLogger(__name__)

PEDIATRIC_AGE = 18
ELDERLY_AGE = 65
NOT_APPLICABLE = "N/A"


class DoseCalculator:
    """Calculates patient-specific doses from the drug reference data.

    Args:
        drugs: Drug provider used to resolve names.
        validator: Content validator used as a safety gate. A fresh one is
            created when not given.
    """

    def __init__(self, drugs: DrugProvider, validator: ContentValidator | None = None):
        self.drugs = drugs
        self.validator = validator or ContentValidator()

    def calculate_dose(
        self,
        patient: PatientParameters,
        drug_name: str,
        procedure: str = "",
    ) -> DoseResult:
        """Calculate the dose of one drug for one patient.

        Args:
            patient: Patient profile.
            drug_name: Drug name (case-insensitive) or id.
            procedure: Optional procedure the drug is prescribed for.

        Returns:
            DoseResult. A contraindicated drug yields ``dosage ==
            "CONTRAINDICATED"`` with the reasons in the clinical notes.

        Raises:
            InvalidPatientError: Age, weight or creatinine out of range.
            NotFoundError: No drug matches ``drug_name``.
        """
        self._validate_patient(patient)

        drug = self._resolve(drug_name)

        gate = self.validator.validate_drug_patient_combination(drug, patient)
        logger.debug(f"Safety gate for {drug.name}: {validation_summary(gate)}")

        contraindications = self.check_contraindications(drug, patient)
        if contraindications:
            logger.info(f"{drug.name} contraindicated: {', '.join(contraindications)}")
            return DoseResult(
                drug_name=drug.name,
                dosage=CONTRAINDICATED,
                frequency=NOT_APPLICABLE,
                duration=NOT_APPLICABLE,
                total_quantity=NOT_APPLICABLE,
                clinical_notes=[f"CONTRAINDICATED: {', '.join(contraindications)}"],
                warnings=[],
                contraindications=contraindications,
                adjustments={},
            )

        dosage, frequency, duration = self._base_dose(drug, patient)
        adjustments: dict[str, str] = {}
        adjustment_note = None

        if patient.creatinine is not None:
            crcl = renal_rules.cockcroft_gault(
                patient.age, patient.weight, patient.creatinine, patient.is_female
            )
            rule = renal_rules.find_renal_rule(drug.renal_adjustment, crcl)
            if renal_rules.requires_adjustment(rule):
                dosage, frequency = parse_adjusted_dose(rule.dose_amount)
                adjustment_note = f"Renal adjustment for CrCl {crcl:g} mL/min: {rule.adjustment}"
                adjustments["renal"] = adjustment_note

        if hepatic_rules.has_hepatic_condition(patient.conditions):
            rule = hepatic_rules.select_hepatic_rule(drug.hepatic_adjustment)
            if hepatic_rules.requires_adjustment(rule):
                dosage, frequency = parse_adjusted_dose(rule.dose_amount)
                hepatic_note = f"Hepatic adjustment: {rule.adjustment}"
                adjustment_note = (
                    f"{adjustment_note}; {hepatic_note}" if adjustment_note else hepatic_note
                )
                adjustments["hepatic"] = adjustment_note

        return DoseResult(
            drug_name=drug.name,
            dosage=dosage,
            frequency=frequency,
            duration=duration,
            total_quantity=self._total_quantity(dosage, frequency, duration),
            clinical_notes=self._clinical_notes(drug, patient, adjustment_note, procedure),
            warnings=self._warnings(drug, patient) + self._gate_warnings(gate),
            contraindications=[],
            adjustments=adjustments,
        )

    def calculate_multiple_doses(
        self,
        patient: PatientParameters,
        drug_names: list[str],
        procedure: str = "",
    ) -> list[DoseResult]:
        """Calculate doses for several drugs, skipping names that are not found."""
        results = []
        for name in drug_names:
            try:
                results.append(self.calculate_dose(patient, name, procedure))
            except NotFoundError as e:
                logger.warning(f"Skipping dose calculation: {e}")
        return results

    def calculate_creatinine_clearance(self, patient: PatientParameters) -> float | None:
        """Cockcroft-Gault CrCl in mL/min, or None when creatinine is unknown."""
        if patient.creatinine is None:
            return None
        return renal_rules.cockcroft_gault(
            patient.age, patient.weight, patient.creatinine, patient.is_female
        )

    def check_contraindications(self, drug: Drug, patient: PatientParameters) -> list[str]:
        """Allergy matches (one combined entry) followed by condition contraindications."""
        reasons = []
        allergies = matching_allergies(drug, patient.allergies)
        if allergies:
            reasons.append(f"Allergy to {', '.join(allergies)}")
        reasons.extend(matching_condition_contraindications(drug, patient.conditions))
        return reasons

    def validate_for_patient(self, patient: PatientParameters, drug_name: str) -> ValidationResult:
        """Run the drug x patient safety gate without calculating a dose."""
        return self.validator.validate_drug_patient_combination(self._resolve(drug_name), patient)

    @staticmethod
    def procedural_recommendations() -> dict[str, list[str]]:
        return {k: list(v) for k, v in advisories.PROCEDURAL_RECOMMENDATIONS.items()}

    # --- internals ---

    def _resolve(self, drug_name: str) -> Drug:
        drug = self.drugs.resolve(drug_name)
        if drug is None:
            raise NotFoundError("drug", drug_name)
        return drug

    @staticmethod
    def _validate_patient(patient: PatientParameters) -> None:
        if not patient.age or patient.age <= 0 or patient.age > config.MAX_AGE_YEARS:
            raise InvalidPatientError(
                "age", f"Invalid age: must be greater than 0 and at most {config.MAX_AGE_YEARS} years")

        if not patient.weight or patient.weight <= 0 or patient.weight > config.MAX_WEIGHT_KG:
            raise InvalidPatientError(
                "weight", f"Invalid weight: must be greater than 0 and at most {config.MAX_WEIGHT_KG} kg")

        if patient.creatinine is not None and not (
            0 < patient.creatinine <= config.MAX_CREATININE_MG_DL
        ):
            raise InvalidPatientError(
                "creatinine",
                f"Invalid creatinine: must be greater than 0 and at most {config.MAX_CREATININE_MG_DL} mg/dL")

    @staticmethod
    def _base_dose(drug: Drug, patient: PatientParameters) -> tuple[str, str, str]:
        """Return (dosage, frequency, duration) before any organ adjustment."""
        pediatric = drug.dosage.pediatrics
        if patient.age < PEDIATRIC_AGE and pediatric is not None:
            mg_per_kg = parse_mg_per_kg_day(pediatric.dose)
            if mg_per_kg is not None:
                low, high = mg_per_kg
                daily = (low + high) / 2 * patient.weight
                frequency, _ = split_regimen(pediatric.regimen)
                per_dose = int(round_half_up(daily / doses_per_day(frequency)))
                return f"{per_dose} mg", frequency, DEFAULT_DURATION

        adult = drug.dosage.adults
        frequency, duration = split_regimen(adult.regimen)
        return adult.dose, frequency, duration or DEFAULT_DURATION

    @staticmethod
    def _warnings(drug: Drug, patient: PatientParameters) -> list[DoseWarning]:
        warnings = []

        if patient.age >= ELDERLY_AGE:
            warnings.append(DoseWarning(
                WarningLevel.MODERATE,
                "Elderly patient - monitor for increased sensitivity to drug effects",
                "Consider dose reduction and increased monitoring"))

        if patient.age < PEDIATRIC_AGE:
            warnings.append(DoseWarning(
                WarningLevel.MODERATE,
                "Pediatric patient - weight-based dosing applied",
                "Verify weight is accurate and current"))

        if patient.creatinine is not None and patient.creatinine > renal_rules.CREATININE_WARNING_THRESHOLD:
            warnings.append(DoseWarning(
                WarningLevel.MAJOR,
                "Elevated creatinine - renal function may be impaired",
                "Consider dose adjustment and monitor renal function"))

        if any("diabetes" in c.lower() for c in patient.conditions):
            warnings.append(DoseWarning(
                WarningLevel.MINOR,
                "Diabetic patient - monitor for drug interactions with diabetes medications",
                "Check blood glucose more frequently if indicated"))

        if drug.side_effects.serious:
            warnings.append(DoseWarning(
                WarningLevel.MODERATE,
                f"Monitor for serious side effects: {', '.join(drug.side_effects.serious[:2])}",
                "Educate patient on warning signs and when to seek medical attention"))

        return warnings

    @staticmethod
    def _gate_warnings(gate: ValidationResult) -> list[DoseWarning]:
        """Carry the safety gate's non-blocking warnings into the dose result."""
        return [
            DoseWarning(WarningLevel.MODERATE, w.message, w.recommendation)
            for w in gate.warnings
        ]

    @staticmethod
    def _total_quantity(dosage: str, frequency: str, duration: str) -> str:
        dose = first_number(dosage)
        days = first_integer(duration)
        if dose is None or days is None:
            return CALCULATE_MANUALLY

        total = dose * doses_per_day(frequency) * days
        unit = "mg" if "mg" in dosage else "tablets"
        return f"{format_amount(total)} {unit}"

    @staticmethod
    def _clinical_notes(
        drug: Drug,
        patient: PatientParameters,
        adjustment_note: str | None,
        procedure: str,
    ) -> list[str]:
        notes = []
        if drug.administration.instructions:
            notes.append(f"Administration: {drug.administration.instructions}")
        if procedure:
            notes.append(f"Indication: {procedure}")
        if patient.age < PEDIATRIC_AGE:
            notes.append(f"Pediatric dosing based on weight: {format_amount(patient.weight)} kg")
        if patient.age >= ELDERLY_AGE:
            notes.append(advisories.ELDERLY_NOTE)
        if adjustment_note:
            notes.append(adjustment_note)
        notes.extend(advisories.advisories_for(drug.name, drug.drug_class))
        notes.extend(advisories.COMPLIANCE_NOTES)
        return notes
