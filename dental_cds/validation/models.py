"""Validation result models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Severity of a structural validation error."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AlertSeverity(str, Enum):
    """Severity of a clinical alert."""
    CRITICAL = "critical"
    MAJOR = "major"
    MODERATE = "moderate"
    MINOR = "minor"


class AlertType(str, Enum):
    CONTRAINDICATION = "contraindication"
    INTERACTION = "interaction"
    DOSAGE = "dosage"
    ALLERGY = "allergy"
    AGE_RESTRICTION = "age_restriction"


@dataclass
class FieldError:
    field: str
    message: str
    severity: ErrorSeverity
    code: str

    def to_dict(self) -> dict:
        return {
            "field": self.field,
            "message": self.message,
            "severity": self.severity.value,
            "code": self.code,
        }


@dataclass
class FieldWarning:
    field: str
    message: str
    recommendation: str

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message, "recommendation": self.recommendation}


@dataclass
class ClinicalAlert:
    type: AlertType
    message: str
    severity: AlertSeverity
    action: str

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "message": self.message,
            "severity": self.severity.value,
            "action": self.action,
        }


@dataclass
class ValidationResult:
    """Errors, warnings and clinical alerts for one validated input.

    Use ``from_findings`` to build a result whose ``is_valid`` follows the
    usual rule: no errors and no critical clinical alerts.
    """
    is_valid: bool
    errors: list[FieldError] = field(default_factory=list)
    warnings: list[FieldWarning] = field(default_factory=list)
    clinical_alerts: list[ClinicalAlert] = field(default_factory=list)

    @classmethod
    def from_findings(
        cls,
        errors: list[FieldError],
        warnings: list[FieldWarning],
        clinical_alerts: list[ClinicalAlert],
    ) -> "ValidationResult":
        is_valid = not errors and not any(
            a.severity == AlertSeverity.CRITICAL for a in clinical_alerts
        )
        return cls(is_valid, errors, warnings, clinical_alerts)

    @property
    def critical_alerts(self) -> list[ClinicalAlert]:
        return [a for a in self.clinical_alerts if a.severity == AlertSeverity.CRITICAL]

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "clinical_alerts": [a.to_dict() for a in self.clinical_alerts],
        }
