"""Drug reference data provider."""

import logging

from ..models import Drug
from ..rules.contraindication_rules import matching_condition_contraindications
from .base import ReferenceProvider

logger = logging.getLogger(__name__)


class DrugProvider(ReferenceProvider[Drug]):
    """Drug records grouped in the dataset by therapeutic family."""

    kind = "drug"
    data_file = "drugs.json"
    collection_keys = ("antibiotics", "analgesics", "local_anesthetics")

    def _build(self, data: dict) -> Drug:
        return Drug.from_dict(data)

    def search(self, query: str) -> list[Drug]:
        """Match name, class, or indication text. An empty query returns everything."""
        if not query or not query.strip():
            return list(self.records)

        term = query.strip().lower()
        results = []
        for drug in self.records:
            if term in drug.name.lower() or term in drug.drug_class.lower():
                results.append(drug)
                continue
            if any(
                term in ind.description.lower() or term in ind.type.lower()
                for ind in drug.indications
            ):
                results.append(drug)
        return results

    def get_by_name(self, name: str) -> Drug | None:
        target = name.strip().lower()
        for drug in self.records:
            if drug.name.lower() == target:
                return drug
        return None

    def get_by_id(self, drug_id: str) -> Drug | None:
        """Find by id, accepting a case-insensitive name as well."""
        target = drug_id.strip().lower()
        for drug in self.records:
            if drug.id == drug_id or drug.name.lower() == target:
                return drug
        return None

    def resolve(self, name_or_id: str) -> Drug | None:
        """Exact name first, then id."""
        return self.get_by_name(name_or_id) or self.get_by_id(name_or_id)

    def get_by_class(self, drug_class: str) -> list[Drug]:
        target = drug_class.lower()
        return [d for d in self.records if d.drug_class.lower() == target]

    def get_for_indication(self, indication: str) -> list[Drug]:
        term = indication.lower()
        return [
            d for d in self.records
            if any(term in i.description.lower() or term in i.type.lower() for i in d.indications)
        ]

    def get_classes(self) -> list[str]:
        return sorted({d.drug_class for d in self.records})

    def check_contraindications(self, drug_name: str, conditions: list[str]) -> list[str]:
        """Drug-listed contraindications matching any of the patient's conditions.

        Returns an empty list when the drug is unknown.
        """
        drug = self.get_by_name(drug_name)
        if drug is None:
            return []
        return matching_condition_contraindications(drug, conditions)

    def stats(self) -> dict:
        return {
            "total_drugs": len(self.records),
            "drug_classes": len(self.get_classes()),
            "loaded": self.is_loaded,
        }
