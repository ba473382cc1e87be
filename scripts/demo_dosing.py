#!/usr/bin/env python3
"""Run dosing and interaction scenarios against the rules engine.

Each scenario describes a patient, the drugs prescribed and what the
engine is expected to report. Results are printed side by side with the
expectation so rule table changes can be eyeballed quickly.

Usage:
    # Weight-based pediatric amoxicillin
    python scripts/demo_dosing.py --scenario pediatric-amoxicillin

    # Penicillin allergy (CONTRAINDICATED)
    python scripts/demo_dosing.py --scenario pcn-allergy-amoxicillin

    # Run every scenario
    python scripts/demo_dosing.py --all

    # List all scenarios
    python scripts/demo_dosing.py --list
"""

import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from dental_cds.models import PatientParameters
from dental_cds.services import build_services

# ============================================================================
# PREDEFINED SCENARIOS
# ============================================================================
SCENARIOS = {
    "pediatric-amoxicillin": {
        "name": "Pediatric amoxicillin",
        "description": "8 year old, 30 kg - weight-based dosing (20-40 mg/kg/day TID)",
        "patient": {"age": 8, "weight": 30},
        "drugs": ["amoxicillin"],
        "expected": "300 mg TID",
    },
    "renal-amoxicillin": {
        "name": "Renal impairment",
        "description": "70 year old, 60 kg, creatinine 2.5 - CrCl ~23 mL/min",
        "patient": {"age": 70, "weight": 60, "creatinine": 2.5},
        "drugs": ["amoxicillin"],
        "expected": "250 mg Q12H",
    },
    "pcn-allergy-amoxicillin": {
        "name": "Penicillin allergy",
        "description": "Adult with documented penicillin allergy prescribed amoxicillin",
        "patient": {"age": 35, "weight": 70, "allergies": ["penicillin"]},
        "drugs": ["amoxicillin"],
        "expected": "CONTRAINDICATED",
    },
    "hepatic-clindamycin": {
        "name": "Hepatic impairment",
        "description": "Adult with liver cirrhosis on clindamycin",
        "patient": {"age": 50, "weight": 80, "conditions": ["Liver cirrhosis"]},
        "drugs": ["clindamycin"],
        "expected": "150 mg Q6H",
    },
    "pregnancy-doxycycline": {
        "name": "Pregnancy",
        "description": "Pregnant patient prescribed doxycycline",
        "patient": {"age": 29, "weight": 65, "gender": "female", "conditions": ["Pregnancy"]},
        "drugs": ["doxycycline"],
        "expected": "CONTRAINDICATED",
    },
    "nsaid-combination": {
        "name": "Dual NSAID",
        "description": "Ibuprofen with naproxen - class interaction",
        "patient": {"age": 45, "weight": 80},
        "drugs": ["ibuprofen", "naproxen"],
        "expected": "moderate risk",
        "interactions": True,
    },
    "elderly-polypharmacy": {
        "name": "Elderly polypharmacy",
        "description": "72 year old on three drugs - no pair interaction, patient warnings only",
        "patient": {"age": 72, "weight": 68, "conditions": ["Renal impairment"]},
        "drugs": ["amoxicillin", "metronidazole", "ibuprofen"],
        "expected": "low risk",
        "interactions": True,
    },
}


def run_scenario(services, scenario_key: str, as_json: bool = False) -> dict:
    scenario = SCENARIOS[scenario_key]
    patient = PatientParameters.from_dict(scenario["patient"])

    print("\n" + "=" * 70)
    print(f"{scenario['name']} ({scenario_key})")
    print(scenario["description"])
    print("-" * 70)

    if scenario.get("interactions"):
        result = services.interaction_checker.check_interactions(scenario["drugs"], patient)
        outcome = f"{result.overall_risk.value} risk"
        if as_json:
            print(json.dumps(result.to_dict(), indent=2))
        else:
            for interaction in result.interactions:
                print(f"  {interaction.drug1} + {interaction.drug2}: {interaction.severity.value}")
                print(f"      {interaction.effect}")
            for warning in result.warnings:
                print(f"  [{warning.level.value}] {warning.message}")
    else:
        result = services.dose_calculator.calculate_dose(patient, scenario["drugs"][0])
        outcome = (
            result.dosage if result.is_contraindicated
            else f"{result.dosage} {result.frequency}"
        )
        if as_json:
            print(json.dumps(result.to_dict(), indent=2))
        else:
            print(f"  Dosage:    {result.dosage}")
            print(f"  Frequency: {result.frequency}")
            print(f"  Duration:  {result.duration}")
            print(f"  Total:     {result.total_quantity}")
            for note in result.clinical_notes:
                print(f"  - {note}")

    matched = outcome == scenario["expected"]
    print(f"\nExpected: {scenario['expected']}")
    print(f"Got:      {outcome}  {'OK' if matched else 'MISMATCH'}")
    return {"scenario": scenario_key, "outcome": outcome, "matched": matched}


def main():
    parser = argparse.ArgumentParser(
        description="Run dental dosing scenarios",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--scenario", "-s", choices=list(SCENARIOS.keys()), help="Specific scenario to run")
    parser.add_argument("--all", action="store_true", help="Run ALL scenarios")
    parser.add_argument("--list", "-l", action="store_true", help="List available scenarios")
    parser.add_argument("--json", action="store_true", help="Print raw results as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.list:
        print("\nAvailable scenarios:\n")
        print(f"{'Scenario':<28} {'Expected':<20} {'Description'}")
        print("─" * 80)
        for key, scenario in SCENARIOS.items():
            print(f"{key:<28} {scenario['expected']:<20} {scenario['description']}")
        return 0

    services = build_services()
    services.sync.initialize()

    if args.scenario:
        results = [run_scenario(services, args.scenario, args.json)]
    elif args.all:
        results = [run_scenario(services, key, args.json) for key in SCENARIOS]
    else:
        parser.error("Specify --scenario, --all, or --list")

    print("\n" + "=" * 70)
    print("SUMMARY")
    print("=" * 70)
    matched = sum(1 for r in results if r["matched"])
    print(f"\n{matched}/{len(results)} scenarios matched expectations")
    for r in results:
        if not r["matched"]:
            print(f"  MISMATCH: {r['scenario']} -> {r['outcome']}")

    return 0 if matched == len(results) else 1


if __name__ == "__main__":
    sys.exit(main())
