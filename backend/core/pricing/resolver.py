"""
core/pricing/resolver.py

Rule resolver - picks the single effective rule for one date.

Policy is first-match in input order, not most-recent. Recency only matters
for choice overrides (see ``core.pricing.merger``).
"""
from typing import Callable, Optional, Sequence

from core.pricing.records import ChannelType, PricingRule

# Channel ids of self-operated channels start with this prefix
SELF_CHANNEL_PREFIX = "B"

ChannelIdMapper = Callable[[str], str]


def identity_channel_id(channel_id: str) -> str:
    """Default mapping from UI-facing channel id to persisted channel id."""
    return channel_id


def is_self_channel_id(channel_id: str, prefix: str = SELF_CHANNEL_PREFIX) -> bool:
    return bool(channel_id) and channel_id.startswith(prefix)


def _channel_type(value) -> Optional[ChannelType]:
    if value is None or isinstance(value, ChannelType):
        return value
    try:
        return ChannelType(str(value).strip().lower())
    except ValueError:
        return None


def resolve_effective_rule(
    rules_for_date: Sequence[PricingRule],
    channel_id: Optional[str] = None,
    channel_type=None,
    id_mapper: ChannelIdMapper = identity_channel_id,
    self_prefix: str = SELF_CHANNEL_PREFIX,
) -> Optional[PricingRule]:
    """
    Select the effective rule among the rules recorded for one date.

    Precedence:
        1. ``channel_id`` given: first rule whose channel matches the mapped id;
           when none matches, fall through to the type hint.
        2. ``channel_type`` SELF: first rule on a self channel (prefix match).
        3. ``channel_type`` OTA: first rule not on a self channel.
        4. Otherwise the first rule.

    Args:
        rules_for_date: Rules for one canonical date, in source order.
        channel_id: Requested channel id (UI-facing).
        channel_type: "self"/"ota" hint, case-insensitive, or a ChannelType.
        id_mapper: Maps the UI-facing id to the persisted channel id.
        self_prefix: Prefix marking self-operated channel ids.

    Returns:
        The effective rule, or None if nothing applies.
    """
    if channel_id:
        target = id_mapper(channel_id)
        match = next((r for r in rules_for_date if r.channel_id == target), None)
        if match is not None:
            return match

    kind = _channel_type(channel_type)
    if kind == ChannelType.SELF:
        return next(
            (r for r in rules_for_date if is_self_channel_id(r.channel_id, self_prefix)), None
        )
    if kind == ChannelType.OTA:
        return next(
            (r for r in rules_for_date if not is_self_channel_id(r.channel_id, self_prefix)), None
        )

    return rules_for_date[0] if rules_for_date else None
