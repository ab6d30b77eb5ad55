"""
core/pricing/history.py

Pricing history - the save events of one (product, channel, date), newest first.

A batch save may write several records with the same ``updated_at``; those
belong to one save event and are shown as a single entry.
"""
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List

from core.pricing.merger import sort_latest_first
from core.pricing.records import ChoicePriceOverride, PricingRule


@dataclass
class HistoryEntry:
    """
    One save event.

    Attributes:
        updated_at: Save timestamp shared by the grouped records
        rule: Combined rule values for the event
        rule_ids: Ids of the records grouped into this entry
    """

    updated_at: str
    rule: PricingRule
    rule_ids: List[str] = field(default_factory=list)


def _combine(existing: PricingRule, later: PricingRule) -> PricingRule:
    choices: Dict[str, ChoicePriceOverride] = dict(existing.choices_pricing or {})
    choices.update(later.choices_pricing or {})
    # Coerced scalars are never null; the later record wins
    return replace(
        later,
        id=existing.id,
        choices_pricing=choices or None,
        choices_pricing_invalid=existing.choices_pricing_invalid and later.choices_pricing_invalid,
    )


def group_history(rules: Iterable[PricingRule]) -> List[HistoryEntry]:
    """Group rules by identical ``updated_at``, newest event first."""
    entries: List[HistoryEntry] = []
    by_timestamp: Dict[str, HistoryEntry] = {}

    for rule in sort_latest_first(rules):
        entry = by_timestamp.get(rule.updated_at)
        if entry is None:
            entry = HistoryEntry(updated_at=rule.updated_at, rule=rule, rule_ids=[rule.id])
            by_timestamp[rule.updated_at] = entry
            entries.append(entry)
        else:
            entry.rule = _combine(entry.rule, rule)
            entry.rule_ids.append(rule.id)

    return entries
