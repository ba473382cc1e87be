"""Dental clinical rules engine: dosing, interactions, content validation and reference data sync."""

from .dosing import DoseCalculator
from .exceptions import (
    ComparisonError,
    DataLoadError,
    DentalCDSError,
    InvalidPatientError,
    NotFoundError,
)
from .interactions import InteractionChecker
from .models import DoseResult, Drug, Material, PatientParameters, Procedure
from .services import ClinicalServices, build_services

__version__ = "0.1.0"

__all__ = [
    "ClinicalServices",
    "ComparisonError",
    "DataLoadError",
    "DentalCDSError",
    "DoseResult",
    "DoseCalculator",
    "Drug",
    "InteractionChecker",
    "InvalidPatientError",
    "Material",
    "NotFoundError",
    "PatientParameters",
    "Procedure",
    "build_services",
]
