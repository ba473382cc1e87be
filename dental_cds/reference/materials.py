"""Material reference data provider, with side-by-side comparison and ranking."""

import logging
from dataclasses import dataclass, field

from ..exceptions import ComparisonError
from ..models import Material
from .base import ReferenceProvider

logger = logging.getLogger(__name__)

MIN_COMPARE = 2
MAX_COMPARE = 4
STANDARD_COMPARISON_FIELDS = ("category", "longevity", "cost_considerations")
MISSING_VALUE = "N/A"

# Recommendation relevance weights
CATEGORY_MATCH_SCORE = 10
INDICATION_MATCH_SCORE = 8
AESTHETICS_MATCH_SCORE = 5
STRENGTH_MATCH_SCORE = 5


def format_property_name(prop: str) -> str:
    """``cost_considerations`` -> ``Cost Considerations``."""
    return " ".join(word.capitalize() for word in prop.replace("_", " ").split(" "))


def property_text(material: Material, prop: str) -> str:
    if prop == "category":
        return material.category
    if prop == "longevity":
        return material.longevity
    if prop == "cost_considerations":
        return material.cost_considerations
    value = material.properties.get(prop)
    if isinstance(value, list):
        return ", ".join(value)
    return value or MISSING_VALUE


@dataclass
class MaterialComparison:
    materials: list[Material]
    rows: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "materials": [m.to_dict() for m in self.materials],
            "comparison": self.rows,
        }


class MaterialProvider(ReferenceProvider[Material]):

    kind = "material"
    data_file = "materials.json"
    collection_keys = ("materials",)

    def _build(self, data: dict) -> Material:
        return Material.from_dict(data)

    def search(self, query: str) -> list[Material]:
        """Match name, category, property keys/values, indications or handling notes."""
        if not query or not query.strip():
            return list(self.records)

        term = query.strip().lower()

        def property_matches(key: str, value) -> bool:
            if term in key.lower():
                return True
            if isinstance(value, list):
                return any(term in v.lower() for v in value)
            return bool(value) and term in str(value).lower()

        results = []
        for material in self.records:
            if (
                term in material.name.lower()
                or term in material.category.lower()
                or any(property_matches(k, v) for k, v in material.properties.items())
                or any(term in i.lower() for i in material.indications)
                or any(term in h.lower() for h in material.handling_characteristics)
            ):
                results.append(material)
        return results

    def get_by_id(self, material_id: str) -> Material | None:
        for material in self.records:
            if material.id == material_id:
                return material
        return None

    def get_by_category(self, category: str) -> list[Material]:
        target = category.lower()
        return [m for m in self.records if m.category.lower() == target]

    def get_categories(self) -> list[str]:
        return sorted({m.category for m in self.records})

    def get_available_properties(self) -> list[str]:
        return sorted({prop for m in self.records for prop in m.properties})

    def get_with_contraindication(self, contraindication: str) -> list[Material]:
        term = contraindication.lower()
        return [
            m for m in self.records
            if any(term in c.lower() for c in m.contraindications)
        ]

    def compare(self, material_ids: list[str]) -> MaterialComparison:
        """Build a property-by-property comparison table for 2-4 materials.

        Raises:
            ComparisonError: Fewer than two or more than four ids were given,
                or fewer than two of them exist.
        """
        if len(material_ids) < MIN_COMPARE:
            raise ComparisonError("At least 2 materials required for comparison")
        if len(material_ids) > MAX_COMPARE:
            raise ComparisonError("Maximum 4 materials can be compared at once")

        materials = [m for m in (self.get_by_id(i) for i in material_ids) if m is not None]
        if len(materials) < MIN_COMPARE:
            raise ComparisonError("Could not find enough materials for comparison")

        props: list[str] = []
        for material in materials:
            for prop in material.properties:
                if prop not in props:
                    props.append(prop)
        for prop in STANDARD_COMPARISON_FIELDS:
            if prop not in props:
                props.append(prop)

        rows = [
            {
                "property": format_property_name(prop),
                "values": [
                    {
                        "material_id": m.id,
                        "material_name": m.name,
                        "value": property_text(m, prop),
                    }
                    for m in materials
                ],
            }
            for prop in props
        ]
        return MaterialComparison(materials=materials, rows=rows)

    def recommend(self, criteria: dict) -> list[Material]:
        """Filter by the given criteria and rank by how many they satisfy.

        Args:
            criteria: Any of ``indication``, ``category``, ``aesthetics``,
                ``strength`` and ``durability``. Each present criterion is a
                filter; text matches are case-insensitive substrings, except
                category which must match exactly.
        """
        indication = (criteria.get("indication") or "").lower()
        category = (criteria.get("category") or "").lower()
        aesthetics = (criteria.get("aesthetics") or "").lower()
        strength = (criteria.get("strength") or "").lower()
        durability = (criteria.get("durability") or "").lower()

        def prop(material: Material, name: str) -> str:
            return str(material.properties.get(name) or "").lower()

        filtered = list(self.records)
        if indication:
            filtered = [m for m in filtered if any(indication in i.lower() for i in m.indications)]
        if category:
            filtered = [m for m in filtered if m.category.lower() == category]
        if aesthetics:
            filtered = [m for m in filtered if aesthetics in prop(m, "aesthetics")]
        if strength:
            filtered = [m for m in filtered if strength in prop(m, "strength")]
        if durability:
            filtered = [
                m for m in filtered
                if durability in prop(m, "durability") or durability in m.longevity.lower()
            ]

        def score(m: Material) -> int:
            total = 0
            if category and m.category.lower() == category:
                total += CATEGORY_MATCH_SCORE
            if aesthetics and aesthetics in prop(m, "aesthetics"):
                total += AESTHETICS_MATCH_SCORE
            if strength and strength in prop(m, "strength"):
                total += STRENGTH_MATCH_SCORE
            if indication and any(indication in i.lower() for i in m.indications):
                total += INDICATION_MATCH_SCORE
            return total

        return sorted(filtered, key=score, reverse=True)

    def stats(self) -> dict:
        return {
            "total_materials": len(self.records),
            "categories": len(self.get_categories()),
            "properties": len(self.get_available_properties()),
            "loaded": self.is_loaded,
        }
