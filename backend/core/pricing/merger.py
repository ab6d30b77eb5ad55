"""
core/pricing/merger.py

Choice-override merger - latest price per choice across all rules of a date.

Rule history is append-only: a price change inserts a new record instead of
editing the old one. The current price of a choice is therefore the value
from whichever record touching that choice was updated last, independent of
which rule the resolver picks for the channel.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from core.pricing.records import ChoicePriceOverride, PricingRule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergedChoiceOverride:
    """
    Winning override for one choice.

    Attributes:
        choice_id: Choice identifier
        override: Override values
        source_rule: Rule record the override came from
    """

    choice_id: str
    override: ChoicePriceOverride
    source_rule: PricingRule


@dataclass
class ChoiceMergeResult:
    """
    Output of ``merge_choice_overrides``.

    Attributes:
        overrides: Choice id -> latest override, newest choices first
        base_rule: Latest rule without choice overrides (the "no choice" path)
        skipped_rule_ids: Rules whose choices_pricing could not be parsed
    """

    overrides: Dict[str, MergedChoiceOverride] = field(default_factory=dict)
    base_rule: Optional[PricingRule] = None
    skipped_rule_ids: List[str] = field(default_factory=list)

    def get(self, choice_id: Optional[str]) -> Optional[MergedChoiceOverride]:
        if not choice_id:
            return None
        return self.overrides.get(choice_id)

    def override_for(self, choice_id: Optional[str]) -> Optional[ChoicePriceOverride]:
        merged = self.get(choice_id)
        return merged.override if merged else None

    def choice_ids(self) -> List[str]:
        return list(self.overrides)


def sort_latest_first(rules: Iterable[PricingRule]) -> List[PricingRule]:
    """Newest ``updated_at`` first; missing timestamps sort as oldest. Ties keep input order."""
    return sorted(rules, key=lambda r: r.updated_at or "", reverse=True)


def merge_choice_overrides(rules_for_date: Iterable[PricingRule]) -> ChoiceMergeResult:
    """
    Merge choice overrides from every rule recorded for one date.

    Args:
        rules_for_date: Rules for one canonical date.

    Returns:
        ChoiceMergeResult with, per choice id, the override from the most
        recently updated rule that defines it, plus the most recent rule
        that carries no choice overrides.
    """
    result = ChoiceMergeResult()

    for rule in sort_latest_first(rules_for_date):
        if rule.choices_pricing_invalid:
            logger.debug(f"Skipping choice overrides of rule {rule.id}: unparseable choices_pricing")
            result.skipped_rule_ids.append(rule.id)
            continue

        if not rule.has_choices:
            if result.base_rule is None:
                result.base_rule = rule
            continue

        for choice_id, override in rule.choices_pricing.items():
            if choice_id not in result.overrides:
                result.overrides[choice_id] = MergedChoiceOverride(
                    choice_id=choice_id, override=override, source_rule=rule
                )

    return result
