"""
core/pricing/choice_matcher.py

Choice key matching for choice overrides.

Choice ids change when a product's choice groups are edited, so stored
``choices_pricing`` keys may not match the current combination exactly.
Combination keys join option keys with ``+`` and group order is not stable.
"""
import logging
from typing import Mapping, Optional, Tuple

from core.pricing.records import ChoicePriceOverride

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "+"


def _segments(key: str):
    return key.split(KEY_SEPARATOR)


def _sorted_key(key: str) -> str:
    return KEY_SEPARATOR.join(sorted(_segments(key)))


def _partial_match(key: str, choice_id: str, combination_key: Optional[str]) -> bool:
    if combination_key:
        available = _segments(key)
        if all(any(a in part or part in a for a in available) for part in _segments(combination_key)):
            return True
    return bool(choice_id) and (choice_id in key or key in choice_id)


def find_choice_override(
    choice_id: str,
    overrides: Optional[Mapping[str, ChoicePriceOverride]],
    combination_key: Optional[str] = None,
) -> Tuple[Optional[ChoicePriceOverride], Optional[str]]:
    """
    Find the override stored for a choice.

    Tries in order: exact id, exact combination key, order-insensitive
    combination key, then a partial segment match.

    Returns:
        (override, matched_key), or (None, None) when nothing matches.
    """
    if not overrides:
        return None, None

    if choice_id in overrides:
        return overrides[choice_id], choice_id

    if combination_key:
        if combination_key in overrides:
            return overrides[combination_key], combination_key
        wanted = _sorted_key(combination_key)
        for key in overrides:
            if _sorted_key(key) == wanted:
                return overrides[key], key

    for key in overrides:
        if _partial_match(key, choice_id, combination_key):
            logger.debug(f"Choice {choice_id!r} matched stored key {key!r} partially")
            return overrides[key], key

    return None, None


def fallback_ota_sale_price(
    key: str,
    overrides: Optional[Mapping[str, ChoicePriceOverride]],
):
    """
    Largest OTA sale price to use when a combination has none of its own.

    Prefers keys with the same number of segments as ``key``; otherwise
    considers every key. Returns None when no key carries an OTA price.
    """
    if not overrides:
        return None
    part_count = len(_segments(key)) if key else 0
    same_structure = None
    any_structure = None
    for stored_key, override in overrides.items():
        price = override.ota_sale_price
        if price is None:
            continue
        if part_count and len(_segments(stored_key)) == part_count:
            if same_structure is None or price > same_structure:
                same_structure = price
        if any_structure is None or price > any_structure:
            any_structure = price
    return same_structure if same_structure is not None else any_structure
