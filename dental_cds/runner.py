#!/usr/bin/env python3
"""CLI entry point for the dental clinical rules engine.

Usage:
    # Synchronize and validate the reference data
    python -m dental_cds.runner --sync

    # Show the persisted sync status
    python -m dental_cds.runner --status

    # Calculate a dose
    python -m dental_cds.runner --dose amoxicillin --age 8 --weight 30

    # Renal adjustment for an elderly patient
    python -m dental_cds.runner --dose amoxicillin --age 70 --weight 60 --creatinine 2.5

    # Check interactions
    python -m dental_cds.runner --interactions ibuprofen naproxen --age 45 --weight 80

    # Debug logging
    python -m dental_cds.runner --status --verbose
"""

import argparse
import json
import logging
import sys

from .config import config
from .exceptions import InvalidPatientError, NotFoundError
from .models import PatientParameters
from .services import build_services
from .store import CacheStore
from .validation import validation_summary

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _patient_from_args(args) -> PatientParameters:
    return PatientParameters(
        age=args.age,
        weight=args.weight,
        gender=args.gender,
        conditions=args.condition or [],
        allergies=args.allergy or [],
        creatinine=args.creatinine,
    )


def _print_status(status, services) -> None:
    quality = status.data_quality
    print(f"State:           {status.state.value}")
    print(f"Last sync:       {status.last_sync.isoformat() if status.last_sync else 'never'}")
    print(f"Quality score:   {quality.overall_score}%")
    for name in ("drugs", "procedures", "materials"):
        stats = getattr(quality, name)
        print(f"  {name:<12}   {stats.valid}/{stats.total} valid, "
              f"{stats.warnings} warnings, {stats.errors} errors")
    if status.errors:
        print(f"Sync errors:     {len(status.errors)}")
        for err in status.errors:
            print(f"  - {err.service}: {err.message} (retries: {err.retry_count})")
    print(f"\n{services.sync.quality_summary()}")


def _print_dose(result) -> None:
    print(f"Drug:            {result.drug_name}")
    print(f"Dosage:          {result.dosage}")
    print(f"Frequency:       {result.frequency}")
    print(f"Duration:        {result.duration}")
    print(f"Total quantity:  {result.total_quantity}")
    if result.contraindications:
        print("Contraindications:")
        for reason in result.contraindications:
            print(f"  - {reason}")
    if result.warnings:
        print("Warnings:")
        for warning in result.warnings:
            print(f"  [{warning.level.value}] {warning.message} - {warning.recommendation}")
    if result.clinical_notes:
        print("Notes:")
        for note in result.clinical_notes:
            print(f"  - {note}")


def _print_interactions(result) -> None:
    print(f"Overall risk:    {result.overall_risk.value}")
    for interaction in result.interactions:
        print(f"  {interaction.drug1} + {interaction.drug2}: "
              f"{interaction.severity.value} - {interaction.effect}")
        print(f"      Management: {interaction.management}")
    for contra in result.contraindications:
        print(f"  Contraindication: {contra}")
    for warning in result.warnings:
        print(f"  [{warning.level.value}] {warning.message}")


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Dental clinical rules engine - dosing, interactions and data quality",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("--sync", action="store_true", help="Force a full reference data sync")
    mode.add_argument("--status", action="store_true", help="Initialize and print the sync status")
    mode.add_argument("--dose", metavar="DRUG", help="Calculate a dose for DRUG")
    mode.add_argument("--interactions", nargs="+", metavar="DRUG", help="Check interactions between drugs")

    patient = parser.add_argument_group("patient")
    patient.add_argument("--age", type=float, default=None, help="Age in years")
    patient.add_argument("--weight", type=float, default=None, help="Weight in kg")
    patient.add_argument("--gender", choices=["male", "female"], default=None)
    patient.add_argument("--creatinine", type=float, default=None, help="Serum creatinine (mg/dL)")
    patient.add_argument("--condition", action="append", help="Medical condition (repeatable)")
    patient.add_argument("--allergy", action="append", help="Allergy (repeatable)")
    patient.add_argument("--procedure", default="", help="Procedure the drug is prescribed for")

    parser.add_argument("--db-path", type=str, default=None, help="Cache database path (default from config)")
    parser.add_argument("--data-dir", type=str, default=None, help="Reference data directory")
    parser.add_argument("--parallel", action="store_true", help="Fetch reference categories concurrently")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.db_path:
        config.DB_PATH = args.db_path
    if args.data_dir:
        config.DATA_DIR = args.data_dir
    if args.parallel:
        config.SYNC_PARALLEL = True

    services = build_services(store=CacheStore(config.DB_PATH), data_dir=config.DATA_DIR)

    if args.sync or args.status:
        status = services.sync.force_refresh() if args.sync else services.sync.initialize()
        if args.json:
            print(json.dumps(status.to_dict(), indent=2))
        else:
            _print_status(status, services)
        return 0

    needs_patient = args.dose is not None
    if needs_patient and (args.age is None or args.weight is None):
        parser.error("--dose requires --age and --weight")

    services.sync.initialize()
    patient = _patient_from_args(args) if args.age is not None and args.weight is not None else None

    if args.dose:
        try:
            result = services.dose_calculator.calculate_dose(patient, args.dose, args.procedure)
        except (InvalidPatientError, NotFoundError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        gate = services.dose_calculator.validate_for_patient(patient, args.dose)
        if args.json:
            print(json.dumps(result.to_dict(), indent=2))
        else:
            _print_dose(result)
            print(f"\n{validation_summary(gate)}")
        return 0

    result = services.interaction_checker.check_interactions(args.interactions, patient)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        _print_interactions(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
