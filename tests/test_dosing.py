"""
Dose calculation: pediatric and adult base doses, renal and hepatic
adjustment, contraindication short-circuit, warnings and notes.
"""
import pytest

from conftest import make_drug
from dental_cds.dosing import DoseCalculator
from dental_cds.exceptions import InvalidPatientError, NotFoundError
from dental_cds.models import CONTRAINDICATED, PatientParameters, WarningLevel
from dental_cds.reference import DrugProvider
from dental_cds.rules import advisories


class TestBaseDose:

    def test_pediatric_weight_based_dose(self, calculator, child):
        result = calculator.calculate_dose(child, "Amoxicillin")
        # (20 + 40) / 2 mg/kg/day * 30 kg / 3 doses
        assert result.dosage == "300 mg"
        assert result.frequency == "TID"
        assert result.duration == "7 days"
        assert result.total_quantity == "6300 mg"
        assert "Pediatric dosing based on weight: 30 kg" in result.clinical_notes

    def test_pediatric_duration_is_fixed(self, child):
        provider = DrugProvider(loader=lambda: [make_drug(dosage={
            "adults": {"dose": "500 mg", "regimen": "TID × 7 days"},
            "pediatrics": {"dose": "20-40 mg/kg/day", "regimen": "BID × 10 days"},
        })])
        result = DoseCalculator(provider).calculate_dose(child, "Testcillin")
        assert result.dosage == "450 mg"
        assert result.frequency == "BID"
        assert result.duration == "7 days"

    def test_adult_dose_from_regimen(self, calculator, adult):
        result = calculator.calculate_dose(adult, "Amoxicillin")
        assert result.dosage == "500 mg"
        assert result.frequency == "TID"
        assert result.duration == "7 days"
        assert result.total_quantity == "10500 mg"
        assert result.adjustments == {}

    def test_short_course_duration(self, calculator, adult):
        result = calculator.calculate_dose(adult, "azithromycin")
        assert result.frequency == "QD"
        assert result.duration == "3 days"

    def test_child_without_pediatric_dosing_gets_adult_dose(self, calculator):
        teen = PatientParameters(age=12, weight=45)
        result = calculator.calculate_dose(teen, "Doxycycline")
        assert result.dosage == "100 mg"

    def test_non_mg_dose_counted_as_units(self, calculator, adult):
        result = calculator.calculate_dose(adult, "Lidocaine with Epinephrine")
        # No recognised frequency code falls back to three doses a day
        assert result.total_quantity == "37.8 tablets"

    def test_dose_without_amount_cannot_be_totalled(self, adult):
        provider = DrugProvider(loader=lambda: [make_drug(
            dosage={"adults": {"dose": "As directed", "regimen": "BID × 5 days"}})])
        result = DoseCalculator(provider).calculate_dose(adult, "Testcillin")
        assert result.dosage == "As directed"
        assert result.total_quantity == "Calculate manually"

    def test_lookup_by_id(self, calculator, adult):
        assert calculator.calculate_dose(adult, "amoxicillin").drug_name == "Amoxicillin"

    def test_unknown_drug_raises(self, calculator, adult):
        with pytest.raises(NotFoundError) as exc_info:
            calculator.calculate_dose(adult, "unobtainium")
        assert exc_info.value.message == 'Drug "unobtainium" not found in database'


class TestPatientValidation:

    @pytest.mark.parametrize("age", [0, -1, 121])
    def test_age_out_of_range(self, calculator, age):
        with pytest.raises(InvalidPatientError) as exc_info:
            calculator.calculate_dose(PatientParameters(age=age, weight=70), "Amoxicillin")
        assert exc_info.value.field == "age"

    @pytest.mark.parametrize("weight", [0, 301])
    def test_weight_out_of_range(self, calculator, weight):
        with pytest.raises(InvalidPatientError) as exc_info:
            calculator.calculate_dose(PatientParameters(age=40, weight=weight), "Amoxicillin")
        assert exc_info.value.field == "weight"

    @pytest.mark.parametrize("creatinine", [0, 21])
    def test_creatinine_out_of_range(self, calculator, creatinine):
        patient = PatientParameters(age=40, weight=70, creatinine=creatinine)
        with pytest.raises(InvalidPatientError) as exc_info:
            calculator.calculate_dose(patient, "Amoxicillin")
        assert exc_info.value.field == "creatinine"

    def test_boundaries_are_accepted(self, calculator):
        patient = PatientParameters(age=120, weight=300, creatinine=20)
        assert calculator.calculate_dose(patient, "Acetaminophen").dosage


class TestContraindications:

    def test_allergy_short_circuits(self, calculator):
        patient = PatientParameters(age=35, weight=70, allergies=["Penicillin"])
        result = calculator.calculate_dose(patient, "Amoxicillin")
        assert result.dosage == CONTRAINDICATED
        assert result.is_contraindicated
        assert result.frequency == "N/A"
        assert result.total_quantity == "N/A"
        assert result.warnings == []
        assert result.contraindications == ["Allergy to Penicillin"]
        assert result.clinical_notes == ["CONTRAINDICATED: Allergy to Penicillin"]

    def test_condition_contraindication(self, calculator):
        patient = PatientParameters(age=29, weight=65, gender="female", conditions=["Pregnancy"])
        result = calculator.calculate_dose(patient, "Doxycycline")
        assert result.dosage == CONTRAINDICATED
        assert "Pregnancy and lactation" in result.contraindications

    def test_check_contraindications_orders_allergy_first(self, calculator, drugs):
        patient = PatientParameters(
            age=30, weight=70, allergies=["penicillin"], conditions=["Infectious mononucleosis"])
        reasons = calculator.check_contraindications(drugs.get_by_id("amoxicillin"), patient)
        assert reasons == ["Allergy to penicillin", "Infectious mononucleosis"]

    def test_unrelated_allergy_does_not_block(self, calculator):
        patient = PatientParameters(age=35, weight=70, allergies=["Latex"])
        assert calculator.calculate_dose(patient, "Amoxicillin").dosage == "500 mg"


class TestRenalAdjustment:

    def test_creatinine_clearance(self, calculator):
        patient = PatientParameters(age=30, weight=70, creatinine=2.0)
        assert calculator.calculate_creatinine_clearance(patient) == 53.5

    def test_female_clearance_factor(self, calculator):
        patient = PatientParameters(age=30, weight=70, gender="female", creatinine=2.0)
        assert calculator.calculate_creatinine_clearance(patient) == 45.5

    def test_clearance_unknown_without_creatinine(self, calculator, adult):
        assert calculator.calculate_creatinine_clearance(adult) is None

    def test_reduced_clearance_adjusts_dose(self, calculator):
        patient = PatientParameters(age=70, weight=60, creatinine=2.5)
        result = calculator.calculate_dose(patient, "Amoxicillin")
        assert result.dosage == "250 mg"
        assert result.frequency == "Q12H"
        assert result.total_quantity == "3500 mg"
        assert result.adjustments["renal"] == (
            "Renal adjustment for CrCl 23.3 mL/min: Extend dosing interval")
        assert result.adjustments["renal"] in result.clinical_notes

    def test_normal_clearance_keeps_standard_dose(self, calculator):
        patient = PatientParameters(age=40, weight=80, creatinine=1.0)
        result = calculator.calculate_dose(patient, "Amoxicillin")
        assert result.dosage == "500 mg"
        assert "renal" not in result.adjustments

    def test_drug_without_renal_rules(self, calculator):
        patient = PatientParameters(age=70, weight=60, creatinine=2.5)
        result = calculator.calculate_dose(patient, "Clindamycin")
        assert result.dosage == "300 mg"
        assert result.adjustments == {}


class TestHepaticAdjustment:

    def test_liver_condition_adjusts_dose(self, calculator):
        patient = PatientParameters(age=50, weight=80, conditions=["Liver cirrhosis"])
        result = calculator.calculate_dose(patient, "Clindamycin")
        assert result.dosage == "150 mg"
        assert result.frequency == "Q6H"
        assert result.adjustments["hepatic"] == (
            "Hepatic adjustment: Reduce dose in moderate hepatic impairment")

    def test_none_required_leaves_dose(self, calculator):
        patient = PatientParameters(age=50, weight=80, conditions=["Hepatic impairment"])
        result = calculator.calculate_dose(patient, "Amoxicillin")
        assert result.dosage == "500 mg"
        assert "hepatic" not in result.adjustments

    def test_hepatic_note_composes_with_renal(self, calculator):
        patient = PatientParameters(age=70, weight=60, creatinine=2.5, conditions=["liver disease"])
        result = calculator.calculate_dose(patient, "Amoxicillin-Clavulanate")
        assert result.adjustments["renal"].startswith("Renal adjustment for CrCl 23.3 mL/min")
        assert result.adjustments["hepatic"] == (
            f"{result.adjustments['renal']}; "
            "Hepatic adjustment: Use with caution and monitor liver function")


class TestWarningsAndNotes:

    def test_elderly_warning_and_note(self, calculator):
        patient = PatientParameters(age=70, weight=70)
        result = calculator.calculate_dose(patient, "Acetaminophen")
        messages = [w.message for w in result.warnings]
        assert "Elderly patient - monitor for increased sensitivity to drug effects" in messages
        assert advisories.ELDERLY_NOTE in result.clinical_notes

    def test_elevated_creatinine_is_major(self, calculator):
        patient = PatientParameters(age=40, weight=80, creatinine=1.8)
        result = calculator.calculate_dose(patient, "Acetaminophen")
        levels = {w.message: w.level for w in result.warnings}
        assert levels["Elevated creatinine - renal function may be impaired"] == WarningLevel.MAJOR

    def test_diabetes_warning(self, calculator):
        patient = PatientParameters(age=40, weight=80, conditions=["Type 2 diabetes"])
        result = calculator.calculate_dose(patient, "Acetaminophen")
        assert any("Diabetic patient" in w.message for w in result.warnings)

    def test_missing_pediatric_dosing_is_reported(self, calculator):
        teen = PatientParameters(age=12, weight=45)
        result = calculator.calculate_dose(teen, "Doxycycline")
        gate = [w for w in result.warnings if w.message == "Pediatric dosing information not available"]
        assert len(gate) == 1
        assert gate[0].level == WarningLevel.MODERATE
        assert gate[0].recommendation == "Consult pediatric dosing guidelines"

    def test_adult_gets_no_gate_warning(self, calculator, adult):
        result = calculator.calculate_dose(adult, "Doxycycline")
        assert all(w.message != "Pediatric dosing information not available" for w in result.warnings)

    def test_serious_side_effects_listed(self, calculator, adult):
        result = calculator.calculate_dose(adult, "Amoxicillin")
        assert any(
            w.message == "Monitor for serious side effects: Anaphylaxis, "
                         "Clostridioides difficile-associated diarrhea"
            for w in result.warnings
        )

    def test_compliance_notes_always_last(self, calculator, adult):
        result = calculator.calculate_dose(adult, "Amoxicillin", procedure="Simple extraction")
        assert result.clinical_notes[-len(advisories.COMPLIANCE_NOTES):] == list(advisories.COMPLIANCE_NOTES)
        assert "Indication: Simple extraction" in result.clinical_notes


class TestDeterminism:

    def test_same_input_same_result(self, calculator):
        patient = PatientParameters(
            age=70, weight=60, creatinine=2.5, conditions=["Liver cirrhosis", "diabetes"])
        first = calculator.calculate_dose(patient, "Amoxicillin-Clavulanate")
        second = calculator.calculate_dose(patient, "Amoxicillin-Clavulanate")
        assert first.to_dict() == second.to_dict()


class TestMultipleDoses:

    def test_unknown_names_skipped(self, calculator, adult):
        results = calculator.calculate_multiple_doses(adult, ["Amoxicillin", "unobtainium", "Ibuprofen"])
        assert [r.drug_name for r in results] == ["Amoxicillin", "Ibuprofen"]

    def test_procedural_recommendations_are_copies(self, calculator):
        recs = calculator.procedural_recommendations()
        assert recs
        first = next(iter(recs))
        recs[first].append("mutated")
        assert "mutated" not in calculator.procedural_recommendations()[first]

    def test_validate_for_patient_flags_allergy(self, calculator):
        patient = PatientParameters(age=35, weight=70, allergies=["penicillin"])
        result = calculator.validate_for_patient(patient, "Amoxicillin")
        assert not result.is_valid
        assert result.errors == []
