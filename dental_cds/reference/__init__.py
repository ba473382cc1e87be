"""Read-only reference data providers (drugs, procedures, materials)."""

from .base import ReferenceProvider, json_file_loader
from .drugs import DrugProvider
from .procedures import ProcedureProvider
from .materials import MaterialProvider, MaterialComparison

__all__ = [
    "ReferenceProvider",
    "json_file_loader",
    "DrugProvider",
    "ProcedureProvider",
    "MaterialProvider",
    "MaterialComparison",
]
