"""
core/pricing/index.py

Rule index - groups pricing rules by normalized date.
"""
import logging
from typing import Any, Dict, Iterable, List

from core.pricing.dates import normalize_date
from core.pricing.records import PricingRule

logger = logging.getLogger(__name__)


def build_rule_index(rules: Iterable[PricingRule]) -> Dict[str, List[PricingRule]]:
    """
    Group rules by canonical date, preserving input order inside each bucket.

    Rules whose date cannot be normalized are dropped; no lookup can reach them.
    """
    index: Dict[str, List[PricingRule]] = {}
    dropped = 0
    for rule in rules:
        key = normalize_date(rule.date)
        if not key:
            dropped += 1
            continue
        index.setdefault(key, []).append(rule)
    if dropped:
        logger.debug(f"Dropped {dropped} rule(s) with unparseable dates")
    return index


class RuleIndex:
    """
    Read-only view over ``build_rule_index``.

    Lookups normalize the requested date too, so callers may pass any
    supported date form. The index is cheap to rebuild; build one per
    rule collection rather than patching it after edits.

    Example:
        >>> index = RuleIndex(rules)
        >>> index.rules_for("2024/7/1")
        [...]
    """

    def __init__(self, rules: Iterable[PricingRule]):
        self._buckets = build_rule_index(rules)

    def rules_for(self, value: Any) -> List[PricingRule]:
        key = normalize_date(value)
        if not key:
            return []
        return list(self._buckets.get(key, []))

    def dates(self) -> List[str]:
        """Canonical dates that have at least one rule, ascending."""
        return sorted(self._buckets)

    def __contains__(self, value: Any) -> bool:
        return bool(self.rules_for(value))

    def __len__(self) -> int:
        return len(self._buckets)
