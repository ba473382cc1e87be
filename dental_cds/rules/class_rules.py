"""Class-based interaction heuristics.

Used only when neither drug lists an explicit interaction with the other.
Explicit pairwise data in the dataset is sparse, so these rules fill the most
common dental prescribing gaps. They are a best-effort supplement and not an
interaction database.
"""

from dataclasses import dataclass

from .severity_rules import InteractionSeverity

CLASS_RULE_EVIDENCE = "Class-based interaction"


@dataclass(frozen=True)
class ClassInteractionRule:
    """Interaction implied by the therapeutic classes of two drugs."""
    first_class_keywords: tuple[str, ...]
    second_class_keywords: tuple[str, ...]
    severity: InteractionSeverity
    effect: str
    management: str

    def matches(self, first_class: str, second_class: str) -> bool:
        first = first_class.lower()
        second = second_class.lower()
        return (
            any(k in first for k in self.first_class_keywords)
            and any(k in second for k in self.second_class_keywords)
        )


CLASS_INTERACTION_RULES: list[ClassInteractionRule] = [
    ClassInteractionRule(
        first_class_keywords=("nsaids", "analgesics"),
        second_class_keywords=("nsaids", "analgesics"),
        severity=InteractionSeverity.MODERATE,
        effect="Increased risk of gastrointestinal bleeding and ulceration",
        management="Use lowest effective doses, consider gastroprotection",
    ),
    ClassInteractionRule(
        first_class_keywords=("antibiotic", "penicillin"),
        second_class_keywords=("oral contraceptive",),
        severity=InteractionSeverity.MODERATE,
        effect="Reduced oral contraceptive efficacy",
        management="Use backup contraception",
    ),
    ClassInteractionRule(
        first_class_keywords=("macrolide",),
        second_class_keywords=("statin",),
        severity=InteractionSeverity.MAJOR,
        effect="Increased risk of rhabdomyolysis and myopathy",
        management="Temporarily discontinue statin or choose alternative antibiotic",
    ),
]


def match_class_rule(
    first_class: str, second_class: str
) -> tuple[ClassInteractionRule, bool] | None:
    """Find the first class rule matching a pair of drug classes.

    Returns:
        ``(rule, swapped)`` where ``swapped`` is True when the rule matched
        with the classes in reverse order, or None when nothing matches.
    """
    for rule in CLASS_INTERACTION_RULES:
        if rule.matches(first_class, second_class):
            return rule, False
        if rule.matches(second_class, first_class):
            return rule, True
    return None
