"""Procedure reference data provider."""

import re

from ..models import Procedure
from .base import ReferenceProvider

EMERGENCY_CATEGORY = "Emergency"
RELATED_LIMIT = 5
MAX_KEYWORDS = 10

STOP_WORDS = frozenset(["the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"])

# Relevance weights for related-procedure ranking
SAME_CATEGORY_SCORE = 10
SHARED_KEYWORD_SCORE = 2
SHARED_DIFFERENTIAL_SCORE = 1


def extract_keywords(text: str) -> list[str]:
    """First ten significant words of a diagnosis text."""
    words = re.sub(r"[^\w\s]", " ", text.lower()).split()
    return [w for w in words if len(w) > 2 and w not in STOP_WORDS][:MAX_KEYWORDS]


class ProcedureProvider(ReferenceProvider[Procedure]):

    kind = "procedure"
    data_file = "procedures.json"
    collection_keys = ("procedures",)

    def _build(self, data: dict) -> Procedure:
        return Procedure.from_dict(data)

    def search(self, query: str) -> list[Procedure]:
        """Match name, category, diagnosis, differentials, investigations or plan steps."""
        if not query or not query.strip():
            return list(self.records)

        term = query.strip().lower()

        def matches(p: Procedure) -> bool:
            if term in p.name.lower() or term in p.category.lower() or term in p.diagnosis.lower():
                return True
            if any(term in d.lower() for d in p.differential_diagnosis):
                return True
            if any(term in i.lower() for i in p.investigations):
                return True
            return any(
                term in s.title.lower() or term in s.description.lower()
                for s in p.management_plan
            )

        return [p for p in self.records if matches(p)]

    def get_by_id(self, procedure_id: str) -> Procedure | None:
        for procedure in self.records:
            if procedure.id == procedure_id:
                return procedure
        return None

    def get_by_category(self, category: str) -> list[Procedure]:
        target = category.lower()
        return [p for p in self.records if p.category.lower() == target]

    def get_categories(self) -> list[str]:
        return sorted({p.category for p in self.records})

    def search_by_condition(self, condition: str) -> list[Procedure]:
        term = condition.strip().lower()
        return [
            p for p in self.records
            if term in p.diagnosis.lower() or any(term in d.lower() for d in p.differential_diagnosis)
        ]

    def get_with_investigation(self, investigation: str) -> list[Procedure]:
        term = investigation.strip().lower()
        return [p for p in self.records if any(term in i.lower() for i in p.investigations)]

    def get_emergency(self) -> list[Procedure]:
        return self.get_by_category(EMERGENCY_CATEGORY)

    def get_related(self, procedure_id: str) -> list[Procedure]:
        """Procedures sharing the category or diagnosis keywords, best first.

        Returns at most five procedures; an unknown id yields an empty list.
        """
        main = self.get_by_id(procedure_id)
        if main is None:
            return []

        main_keywords = extract_keywords(main.diagnosis)
        candidates = []
        for procedure in self.records:
            if procedure.id == main.id:
                continue
            if procedure.category == main.category:
                candidates.append(procedure)
                continue
            keywords = extract_keywords(procedure.diagnosis)
            if any(k in keywords for k in main_keywords):
                candidates.append(procedure)

        candidates.sort(key=lambda p: self._relevance(p, main), reverse=True)
        return candidates[:RELATED_LIMIT]

    @staticmethod
    def _relevance(procedure: Procedure, main: Procedure) -> int:
        score = 0
        if procedure.category == main.category:
            score += SAME_CATEGORY_SCORE

        keywords = extract_keywords(procedure.diagnosis)
        shared = [k for k in extract_keywords(main.diagnosis) if k in keywords]
        score += len(shared) * SHARED_KEYWORD_SCORE

        for diff in procedure.differential_diagnosis:
            diff_lower = diff.lower()
            if any(m.lower() in diff_lower or diff_lower in m.lower() for m in main.differential_diagnosis):
                score += SHARED_DIFFERENTIAL_SCORE
        return score

    def stats(self) -> dict:
        return {
            "total_procedures": len(self.records),
            "categories": len(self.get_categories()),
            "emergency_procedures": len(self.get_emergency()),
            "loaded": self.is_loaded,
        }
