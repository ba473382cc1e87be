"""Structural and clinical validation of reference records and patient input.

Every entry point is a pure function of its arguments: records are never
modified and no state is kept between calls.
"""

import logging

from ..models import Drug, Material, PatientParameters, Procedure
from ..rules.contraindication_rules import contains_either
from ..rules.dosage_patterns import is_valid_dosage_format
from ..rules.patient_rules import (
    ALLERGY_ALERT_RULES,
    CONDITION_ALERT_RULES,
    ESSENTIAL_MATERIAL_PROPERTIES,
    GERIATRIC_ALERT,
    HIGH_WEIGHT_KG,
    LOW_WEIGHT_KG,
    PEDIATRIC_ALERT,
    ProfileAlertRule,
)
from .models import (
    AlertSeverity,
    AlertType,
    ClinicalAlert,
    ErrorSeverity,
    FieldError,
    FieldWarning,
    ValidationResult,
)

logger = logging.getLogger(__name__)

PEDIATRIC_AGE = 18
GERIATRIC_AGE = 65


def _blank(value: str | None) -> bool:
    return not value or not value.strip()


def _alert(rule: ProfileAlertRule) -> ClinicalAlert:
    return ClinicalAlert(
        type=AlertType(rule.alert_type),
        message=rule.message,
        severity=AlertSeverity(rule.severity),
        action=rule.action,
    )


class ContentValidator:
    """Validates drugs, procedures, materials and patient parameters."""

    def validate_drug(self, drug: Drug) -> ValidationResult:
        errors: list[FieldError] = []
        warnings: list[FieldWarning] = []

        if _blank(drug.name):
            errors.append(FieldError(
                "name", "Drug name is required", ErrorSeverity.CRITICAL, "DRUG_NAME_MISSING"))

        if _blank(drug.drug_class):
            errors.append(FieldError(
                "class", "Drug class is required for clinical classification",
                ErrorSeverity.HIGH, "DRUG_CLASS_MISSING"))

        adult = drug.dosage.adults
        if not adult or _blank(adult.dose):
            errors.append(FieldError(
                "dosage.adults.dose", "Adult dosage is required",
                ErrorSeverity.CRITICAL, "ADULT_DOSE_MISSING"))

        if not adult or _blank(adult.regimen):
            errors.append(FieldError(
                "dosage.adults.regimen", "Dosing regimen is required",
                ErrorSeverity.HIGH, "DOSING_REGIMEN_MISSING"))

        if adult and not _blank(adult.dose) and not is_valid_dosage_format(adult.dose):
            warnings.append(FieldWarning(
                "dosage.adults.dose", "Dosage format may not be standard",
                'Use format like "500 mg" or "10 mg/kg"'))

        if not drug.contraindications:
            warnings.append(FieldWarning(
                "contraindications", "No contraindications listed",
                "Verify if drug has any contraindications"))

        if not drug.indications:
            errors.append(FieldError(
                "indications", "Drug indications are required",
                ErrorSeverity.HIGH, "INDICATIONS_MISSING"))

        for index, indication in enumerate(drug.indications):
            if _blank(indication.evidence_level):
                warnings.append(FieldWarning(
                    f"indications[{index}].evidence_level", "Evidence level not specified",
                    "Add evidence level for clinical decision support"))

        if _blank(drug.administration.route):
            errors.append(FieldError(
                "administration.route", "Administration route is required",
                ErrorSeverity.HIGH, "ADMIN_ROUTE_MISSING"))

        return ValidationResult.from_findings(errors, warnings, [])

    def validate_procedure(self, procedure: Procedure) -> ValidationResult:
        errors: list[FieldError] = []
        warnings: list[FieldWarning] = []

        if _blank(procedure.name):
            errors.append(FieldError(
                "name", "Procedure name is required",
                ErrorSeverity.CRITICAL, "PROCEDURE_NAME_MISSING"))

        if _blank(procedure.diagnosis):
            errors.append(FieldError(
                "diagnosis", "Diagnostic criteria are required",
                ErrorSeverity.CRITICAL, "DIAGNOSIS_MISSING"))

        if not procedure.management_plan:
            errors.append(FieldError(
                "management_plan", "Management plan is required",
                ErrorSeverity.CRITICAL, "MANAGEMENT_PLAN_MISSING"))
        else:
            for index, step in enumerate(procedure.management_plan):
                if _blank(step.title):
                    errors.append(FieldError(
                        f"management_plan[{index}].title",
                        f"Management step {index + 1} title is required",
                        ErrorSeverity.HIGH, "MANAGEMENT_STEP_TITLE_MISSING"))
                if _blank(step.description):
                    errors.append(FieldError(
                        f"management_plan[{index}].description",
                        f"Management step {index + 1} description is required",
                        ErrorSeverity.HIGH, "MANAGEMENT_STEP_DESC_MISSING"))

        if not procedure.differential_diagnosis:
            warnings.append(FieldWarning(
                "differential_diagnosis", "No differential diagnoses listed",
                "Consider adding differential diagnoses for comprehensive clinical assessment"))

        if not procedure.investigations:
            warnings.append(FieldWarning(
                "investigations", "No investigations specified",
                "Add required investigations for proper diagnosis"))

        if not procedure.references:
            warnings.append(FieldWarning(
                "references", "No clinical references provided",
                "Add evidence-based references for clinical validation"))

        return ValidationResult.from_findings(errors, warnings, [])

    def validate_material(self, material: Material) -> ValidationResult:
        errors: list[FieldError] = []
        warnings: list[FieldWarning] = []

        if _blank(material.name):
            errors.append(FieldError(
                "name", "Material name is required",
                ErrorSeverity.CRITICAL, "MATERIAL_NAME_MISSING"))

        if _blank(material.category):
            errors.append(FieldError(
                "category", "Material category is required",
                ErrorSeverity.HIGH, "MATERIAL_CATEGORY_MISSING"))

        if not material.properties:
            errors.append(FieldError(
                "properties", "Material properties are required",
                ErrorSeverity.CRITICAL, "MATERIAL_PROPERTIES_MISSING"))

        for prop in ESSENTIAL_MATERIAL_PROPERTIES:
            if not material.properties.get(prop):
                warnings.append(FieldWarning(
                    f"properties.{prop}", f"{prop} property not specified",
                    f"Add {prop} information for complete clinical assessment"))

        if not material.indications:
            errors.append(FieldError(
                "indications", "Material indications are required",
                ErrorSeverity.HIGH, "MATERIAL_INDICATIONS_MISSING"))

        if not material.contraindications:
            warnings.append(FieldWarning(
                "contraindications", "No contraindications listed",
                "Verify if material has any contraindications"))

        if not material.handling_characteristics:
            warnings.append(FieldWarning(
                "handling_characteristics", "No handling characteristics specified",
                "Add handling instructions for proper clinical use"))

        if _blank(material.longevity):
            warnings.append(FieldWarning(
                "longevity", "Material longevity not specified",
                "Add expected lifespan for treatment planning"))

        return ValidationResult.from_findings(errors, warnings, [])

    def validate_patient_parameters(self, patient: PatientParameters) -> ValidationResult:
        """Check age and weight and raise alerts for risk factors in the profile."""
        errors: list[FieldError] = []
        warnings: list[FieldWarning] = []
        alerts: list[ClinicalAlert] = []

        if not patient.age or patient.age <= 0:
            errors.append(FieldError(
                "age", "Valid patient age is required",
                ErrorSeverity.CRITICAL, "INVALID_AGE"))
        else:
            if patient.age < PEDIATRIC_AGE:
                alerts.append(_alert(PEDIATRIC_ALERT))
            if patient.age > GERIATRIC_AGE:
                alerts.append(_alert(GERIATRIC_ALERT))

        if not patient.weight or patient.weight <= 0:
            errors.append(FieldError(
                "weight", "Valid patient weight is required for dosage calculations",
                ErrorSeverity.CRITICAL, "INVALID_WEIGHT"))
        else:
            if patient.weight < LOW_WEIGHT_KG:
                warnings.append(FieldWarning(
                    "weight", "Low body weight detected",
                    "Consider weight-based dosing adjustments"))
            if patient.weight > HIGH_WEIGHT_KG:
                warnings.append(FieldWarning(
                    "weight", "High body weight detected",
                    "Consider maximum dose limitations"))

        for allergy in patient.allergies:
            for rule in ALLERGY_ALERT_RULES:
                if rule.matches(allergy):
                    alerts.append(_alert(rule))

        for condition in patient.conditions:
            for rule in CONDITION_ALERT_RULES:
                if rule.matches(condition):
                    alerts.append(_alert(rule))

        return ValidationResult.from_findings(errors, warnings, alerts)

    def validate_drug_patient_combination(
        self, drug: Drug, patient: PatientParameters
    ) -> ValidationResult:
        """Safety gate for prescribing ``drug`` to ``patient``.

        Never produces errors. The result is valid when no critical alert
        (contraindicated condition or matching allergy) was raised.
        """
        warnings: list[FieldWarning] = []
        alerts: list[ClinicalAlert] = []

        for contraindication in drug.contraindications:
            for condition in patient.conditions:
                if contains_either(contraindication, condition):
                    alerts.append(ClinicalAlert(
                        AlertType.CONTRAINDICATION,
                        f"Drug contraindicated in {condition}",
                        AlertSeverity.CRITICAL,
                        "Select alternative medication"))

        name = drug.name.lower()
        drug_class = drug.drug_class.lower()
        for allergy in patient.allergies:
            allergy_text = allergy.strip().lower()
            if allergy_text and (allergy_text in name or allergy_text in drug_class):
                alerts.append(ClinicalAlert(
                    AlertType.ALLERGY,
                    f"Patient allergic to {allergy}",
                    AlertSeverity.CRITICAL,
                    "Do not prescribe - select alternative"))

        if patient.age < PEDIATRIC_AGE and drug.dosage.pediatrics is None:
            warnings.append(FieldWarning(
                "pediatric_dosing", "Pediatric dosing information not available",
                "Consult pediatric dosing guidelines"))

        is_valid = not any(a.severity == AlertSeverity.CRITICAL for a in alerts)
        return ValidationResult(is_valid, [], warnings, alerts)

    def validate_medical_workflow(
        self,
        patient: PatientParameters,
        drug: Drug | None = None,
        procedure: Procedure | None = None,
        material: Material | None = None,
    ) -> ValidationResult:
        """Union of the patient check and whichever record checks apply."""
        results = [self.validate_patient_parameters(patient)]

        if drug is not None:
            results.append(self.validate_drug(drug))
            results.append(self.validate_drug_patient_combination(drug, patient))

        if procedure is not None:
            results.append(self.validate_procedure(procedure))

        if material is not None:
            results.append(self.validate_material(material))

        combined = ValidationResult.from_findings(
            [e for r in results for e in r.errors],
            [w for r in results for w in r.warnings],
            [a for r in results for a in r.clinical_alerts],
        )
        logger.debug(
            f"Workflow validation: {len(combined.errors)} errors, "
            f"{len(combined.warnings)} warnings, {len(combined.clinical_alerts)} alerts"
        )
        return combined


def validation_summary(result: ValidationResult) -> str:
    """One-line summary of a validation result, most severe finding first."""
    critical_errors = sum(1 for e in result.errors if e.severity == ErrorSeverity.CRITICAL)
    high_errors = sum(1 for e in result.errors if e.severity == ErrorSeverity.HIGH)
    critical_alerts = sum(1 for a in result.clinical_alerts if a.severity == AlertSeverity.CRITICAL)
    major_alerts = sum(1 for a in result.clinical_alerts if a.severity == AlertSeverity.MAJOR)

    if critical_errors or critical_alerts:
        return f"CRITICAL: {critical_errors + critical_alerts} critical issues require immediate attention"

    if high_errors or major_alerts:
        return f"WARNING: {high_errors + major_alerts} major issues should be addressed"

    if result.warnings:
        return f"INFO: {len(result.warnings)} recommendations for improvement"

    return "VALID: All validations passed successfully"
