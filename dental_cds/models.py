"""Data models for reference records, patient input and dose results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class IndicationType(str, Enum):
    """Why a drug is given."""
    PROPHYLAXIS = "Prophylaxis"
    TREATMENT = "Treatment"


class WarningLevel(str, Enum):
    """Severity of a dosing or interaction warning."""
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


# --- Drug ---


@dataclass
class Indication:
    type: str
    description: str
    evidence_level: str = ""

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "description": self.description,
            "evidence_level": self.evidence_level,
        }


@dataclass
class DoseSpec:
    """Dose string, regimen string and maximum daily dose for one age band."""
    dose: str = ""
    regimen: str = ""
    max_daily: str = ""

    def to_dict(self) -> dict:
        return {"dose": self.dose, "regimen": self.regimen, "max_daily": self.max_daily}

    @classmethod
    def from_dict(cls, data: dict | None) -> "DoseSpec | None":
        if data is None:
            return None
        return cls(
            dose=data.get("dose") or "",
            regimen=data.get("regimen") or "",
            max_daily=data.get("max_daily") or "",
        )


@dataclass
class Dosage:
    adults: DoseSpec = field(default_factory=DoseSpec)
    pediatrics: DoseSpec | None = None

    def to_dict(self) -> dict:
        return {
            "adults": self.adults.to_dict(),
            "pediatrics": self.pediatrics.to_dict() if self.pediatrics else None,
        }


@dataclass
class Administration:
    route: str = ""
    instructions: str = ""
    bioavailability: str = ""

    def to_dict(self) -> dict:
        return {
            "route": self.route,
            "instructions": self.instructions,
            "bioavailability": self.bioavailability,
        }


@dataclass
class AdjustmentRule:
    """Renal or hepatic adjustment.

    For renal rules ``condition`` is a clearance predicate such as
    ``"CrCl <30 mL/min"`` or ``"CrCl 10–50 mL/min"``. For hepatic rules it
    names the impairment tier (``"Child-Pugh B"``).
    """
    condition: str
    adjustment: str
    dose_amount: str = ""

    def to_dict(self) -> dict:
        return {
            "condition": self.condition,
            "adjustment": self.adjustment,
            "dose_amount": self.dose_amount,
        }


@dataclass
class SideEffects:
    common: list[str] = field(default_factory=list)
    serious: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"common": list(self.common), "serious": list(self.serious)}


@dataclass
class DrugInteraction:
    """Interaction entry listed on a drug record."""
    drug: str
    effect: str
    management: str = ""

    def to_dict(self) -> dict:
        return {"drug": self.drug, "effect": self.effect, "management": self.management}


@dataclass
class Drug:
    id: str
    name: str
    drug_class: str
    indications: list[Indication] = field(default_factory=list)
    dosage: Dosage = field(default_factory=Dosage)
    administration: Administration = field(default_factory=Administration)
    renal_adjustment: list[AdjustmentRule] = field(default_factory=list)
    hepatic_adjustment: list[AdjustmentRule] = field(default_factory=list)
    contraindications: list[str] = field(default_factory=list)
    side_effects: SideEffects = field(default_factory=SideEffects)
    interactions: list[DrugInteraction] = field(default_factory=list)
    category: str | None = None

    @property
    def is_usable(self) -> bool:
        """Name and class are both present."""
        return bool(self.name.strip()) and bool(self.drug_class.strip())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary in the dataset's field layout."""
        return {
            "id": self.id,
            "name": self.name,
            "class": self.drug_class,
            "category": self.category,
            "indications": [i.to_dict() for i in self.indications],
            "dosage": self.dosage.to_dict(),
            "administration": self.administration.to_dict(),
            "renal_adjustment": [r.to_dict() for r in self.renal_adjustment],
            "hepatic_adjustment": [h.to_dict() for h in self.hepatic_adjustment],
            "contraindications": list(self.contraindications),
            "side_effects": self.side_effects.to_dict(),
            "interactions": [i.to_dict() for i in self.interactions],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Drug":
        """Build a Drug from a dataset entry.

        Missing sections become empty values so that incomplete records can
        still reach the validator.
        """
        name = data.get("name") or ""
        dosage = data.get("dosage") or {}
        administration = data.get("administration") or {}
        side_effects = data.get("side_effects") or {}
        return cls(
            id=data.get("id") or _slugify(name),
            name=name,
            drug_class=data.get("class") or data.get("drug_class") or "",
            category=data.get("category"),
            indications=[
                Indication(
                    type=ind.get("type", ""),
                    description=ind.get("description", ""),
                    evidence_level=ind.get("evidence_level") or "",
                )
                for ind in data.get("indications") or []
            ],
            dosage=Dosage(
                adults=DoseSpec.from_dict(dosage.get("adults") or {}),
                pediatrics=DoseSpec.from_dict(dosage.get("pediatrics")),
            ),
            administration=Administration(
                route=administration.get("route") or "",
                instructions=administration.get("instructions") or "",
                bioavailability=administration.get("bioavailability") or "",
            ),
            renal_adjustment=[
                AdjustmentRule(r.get("condition", ""), r.get("adjustment", ""), r.get("dose_amount", ""))
                for r in data.get("renal_adjustment") or []
            ],
            hepatic_adjustment=[
                AdjustmentRule(h.get("condition", ""), h.get("adjustment", ""), h.get("dose_amount", ""))
                for h in data.get("hepatic_adjustment") or []
            ],
            contraindications=list(data.get("contraindications") or []),
            side_effects=SideEffects(
                common=list(side_effects.get("common") or []),
                serious=list(side_effects.get("serious") or []),
            ),
            interactions=[
                DrugInteraction(i.get("drug", ""), i.get("effect", ""), i.get("management", ""))
                for i in data.get("interactions") or []
            ],
        )


# --- Procedure ---


@dataclass
class ManagementStep:
    step: int
    title: str
    description: str

    def to_dict(self) -> dict:
        return {"step": self.step, "title": self.title, "description": self.description}


@dataclass
class Procedure:
    id: str
    name: str
    category: str
    diagnosis: str
    differential_diagnosis: list[str] = field(default_factory=list)
    investigations: list[str] = field(default_factory=list)
    management_plan: list[ManagementStep] = field(default_factory=list)
    references: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "diagnosis": self.diagnosis,
            "differential_diagnosis": list(self.differential_diagnosis),
            "investigations": list(self.investigations),
            "management_plan": [s.to_dict() for s in self.management_plan],
            "references": list(self.references),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Procedure":
        name = data.get("name") or ""
        return cls(
            id=data.get("id") or _slugify(name),
            name=name,
            category=data.get("category") or "",
            diagnosis=data.get("diagnosis") or "",
            differential_diagnosis=list(data.get("differential_diagnosis") or []),
            investigations=list(data.get("investigations") or []),
            management_plan=[
                ManagementStep(
                    step=int(s.get("step", index + 1)),
                    title=s.get("title") or "",
                    description=s.get("description") or "",
                )
                for index, s in enumerate(data.get("management_plan") or [])
            ],
            references=list(data.get("references") or []),
        )


# --- Material ---


@dataclass
class Material:
    id: str
    name: str
    category: str
    properties: dict[str, Any] = field(default_factory=dict)
    indications: list[str] = field(default_factory=list)
    contraindications: list[str] = field(default_factory=list)
    handling_characteristics: list[str] = field(default_factory=list)
    longevity: str = ""
    cost_considerations: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "properties": dict(self.properties),
            "indications": list(self.indications),
            "contraindications": list(self.contraindications),
            "handling_characteristics": list(self.handling_characteristics),
            "longevity": self.longevity,
            "cost_considerations": self.cost_considerations,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Material":
        name = data.get("name") or ""
        return cls(
            id=data.get("id") or _slugify(name),
            name=name,
            category=data.get("category") or "",
            properties=dict(data.get("properties") or {}),
            indications=list(data.get("indications") or []),
            contraindications=list(data.get("contraindications") or []),
            handling_characteristics=list(data.get("handling_characteristics") or []),
            longevity=data.get("longevity") or "",
            cost_considerations=data.get("cost_considerations") or "",
        )


# --- Patient input and dose output ---


@dataclass
class PatientParameters:
    """Patient profile supplied by the caller."""
    age: float
    weight: float
    gender: str | None = None
    conditions: list[str] = field(default_factory=list)
    allergies: list[str] = field(default_factory=list)
    creatinine: float | None = None     # mg/dL

    @property
    def is_female(self) -> bool:
        return (self.gender or "").lower() == Gender.FEMALE.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "age": self.age,
            "weight": self.weight,
            "gender": self.gender,
            "conditions": list(self.conditions),
            "allergies": list(self.allergies),
            "creatinine": self.creatinine,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PatientParameters":
        creatinine = data.get("creatinine")
        return cls(
            age=float(data.get("age") or 0),
            weight=float(data.get("weight") or 0),
            gender=data.get("gender"),
            conditions=list(data.get("conditions") or []),
            allergies=list(data.get("allergies") or []),
            creatinine=float(creatinine) if creatinine is not None else None,
        )


@dataclass
class DoseWarning:
    level: WarningLevel
    message: str
    recommendation: str

    def to_dict(self) -> dict:
        return {
            "level": self.level.value if isinstance(self.level, WarningLevel) else self.level,
            "message": self.message,
            "recommendation": self.recommendation,
        }


@dataclass
class DoseResult:
    """Outcome of a dose calculation."""
    drug_name: str
    dosage: str
    frequency: str
    duration: str
    total_quantity: str
    clinical_notes: list[str] = field(default_factory=list)
    warnings: list[DoseWarning] = field(default_factory=list)
    contraindications: list[str] = field(default_factory=list)
    adjustments: dict[str, str] = field(default_factory=dict)

    @property
    def is_contraindicated(self) -> bool:
        return self.dosage == CONTRAINDICATED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "drug_name": self.drug_name,
            "dosage": self.dosage,
            "frequency": self.frequency,
            "duration": self.duration,
            "total_quantity": self.total_quantity,
            "clinical_notes": list(self.clinical_notes),
            "warnings": [w.to_dict() for w in self.warnings],
            "contraindications": list(self.contraindications),
            "adjustments": dict(self.adjustments),
        }


CONTRAINDICATED = "CONTRAINDICATED"


def _slugify(name: str) -> str:
    return "".join(c if c.isalnum() else "-" for c in name.lower())
