"""Sync status and data-quality models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from ..validation import ValidationResult

CATEGORIES = ("drugs", "procedures", "materials")


class SyncState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


@dataclass
class SyncError:
    """A category that could not be fetched after exhausting retries."""
    service: str
    message: str
    timestamp: datetime
    retry_count: int = 1

    def to_dict(self) -> dict:
        return {
            "service": self.service,
            "message": self.message,
            "timestamp": _iso(self.timestamp),
            "retry_count": self.retry_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SyncError":
        return cls(
            service=data["service"],
            message=data["message"],
            timestamp=_parse_iso(data.get("timestamp")),
            retry_count=int(data.get("retry_count", 1)),
        )


@dataclass
class CategoryQuality:
    total: int = 0
    valid: int = 0
    warnings: int = 0
    errors: int = 0

    @classmethod
    def from_results(cls, results: list[ValidationResult]) -> "CategoryQuality":
        return cls(
            total=len(results),
            valid=sum(1 for r in results if r.is_valid),
            warnings=sum(len(r.warnings) for r in results),
            errors=sum(len(r.errors) for r in results),
        )

    def to_dict(self) -> dict:
        return {"total": self.total, "valid": self.valid, "warnings": self.warnings, "errors": self.errors}

    @classmethod
    def from_dict(cls, data: dict | None) -> "CategoryQuality":
        data = data or {}
        return cls(
            total=int(data.get("total", 0)),
            valid=int(data.get("valid", 0)),
            warnings=int(data.get("warnings", 0)),
            errors=int(data.get("errors", 0)),
        )


@dataclass
class DataQualityReport:
    drugs: CategoryQuality = field(default_factory=CategoryQuality)
    procedures: CategoryQuality = field(default_factory=CategoryQuality)
    materials: CategoryQuality = field(default_factory=CategoryQuality)
    overall_score: int = 0      # 0-100

    @classmethod
    def from_validations(cls, validations: dict[str, list[ValidationResult]]) -> "DataQualityReport":
        """Per-category stats plus the share of valid records across all categories."""
        stats = {c: CategoryQuality.from_results(validations.get(c, [])) for c in CATEGORIES}
        total = sum(s.total for s in stats.values())
        valid = sum(s.valid for s in stats.values())
        score = int(valid * 100 / total + 0.5) if total else 0
        return cls(overall_score=score, **stats)

    @property
    def total_items(self) -> int:
        return self.drugs.total + self.procedures.total + self.materials.total

    @property
    def total_errors(self) -> int:
        return self.drugs.errors + self.procedures.errors + self.materials.errors

    @property
    def total_warnings(self) -> int:
        return self.drugs.warnings + self.procedures.warnings + self.materials.warnings

    def to_dict(self) -> dict:
        return {
            "drugs": self.drugs.to_dict(),
            "procedures": self.procedures.to_dict(),
            "materials": self.materials.to_dict(),
            "overall_score": self.overall_score,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "DataQualityReport":
        data = data or {}
        return cls(
            drugs=CategoryQuality.from_dict(data.get("drugs")),
            procedures=CategoryQuality.from_dict(data.get("procedures")),
            materials=CategoryQuality.from_dict(data.get("materials")),
            overall_score=int(data.get("overall_score", 0)),
        )


@dataclass
class SyncStatus:
    state: SyncState = SyncState.IDLE
    last_sync: datetime | None = None
    errors: list[SyncError] = field(default_factory=list)
    data_quality: DataQualityReport = field(default_factory=DataQualityReport)

    @property
    def is_loading(self) -> bool:
        return self.state == SyncState.LOADING

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "is_loading": self.is_loading,
            "last_sync": _iso(self.last_sync),
            "errors": [e.to_dict() for e in self.errors],
            "data_quality": self.data_quality.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SyncStatus":
        return cls(
            state=SyncState(data.get("state", SyncState.IDLE.value)),
            last_sync=_parse_iso(data.get("last_sync")),
            errors=[SyncError.from_dict(e) for e in data.get("errors") or []],
            data_quality=DataQualityReport.from_dict(data.get("data_quality")),
        )
