"""Content validation for reference records and patient input."""

from .models import (
    AlertSeverity,
    AlertType,
    ClinicalAlert,
    ErrorSeverity,
    FieldError,
    FieldWarning,
    ValidationResult,
)
from .validator import ContentValidator, validation_summary

__all__ = [
    "AlertSeverity",
    "AlertType",
    "ClinicalAlert",
    "ErrorSeverity",
    "FieldError",
    "FieldWarning",
    "ValidationResult",
    "ContentValidator",
    "validation_summary",
]
