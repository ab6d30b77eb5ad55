"""
core/pricing/records.py

Pricing records and the ingestion boundary.

Rows coming from the rule source are loosely typed: prices may be missing,
strings or None, and ``choices_pricing`` may be a dict, a JSON string, or
garbage. Everything is coerced here once, so the resolver, merger and
calculator can rely on fully typed values.
"""
import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Largest magnitude accepted from a rule source; larger values are treated as unset
MAX_AMOUNT = Decimal("1e12")

PRICE_CATEGORIES = ("adult", "child", "infant")


class ChannelType(str, Enum):
    """Sales channel category."""
    SELF = "self"          # direct sales
    OTA = "ota"            # external marketplace
    PARTNER = "partner"    # reseller / agency


class NotIncludedType(str, Enum):
    """How a channel treats the not-included surcharge."""
    NONE = "none"
    AMOUNT_ONLY = "amount_only"
    AMOUNT_AND_CHOICE = "amount_and_choice"


class ChoicesPricingError(ValueError):
    """Raised when a ``choices_pricing`` payload cannot be parsed."""


def to_decimal(value: Any) -> Decimal:
    """Coerce a loosely typed numeric value; anything unusable becomes 0."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return ZERO
    if not result.is_finite():
        return ZERO
    if abs(result) >= MAX_AMOUNT:
        logger.warning(f"Ignoring out-of-range amount {value!r}")
        return ZERO
    return result


def _to_positive(value: Any) -> Optional[Decimal]:
    # Zero, negative and missing all mean "no override"
    amount = to_decimal(value)
    return amount if amount > 0 else None


def _to_bool(value: Any, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        text = value.strip().lower()
        if not text:
            return default
        return text not in ("false", "0", "no", "off")
    return bool(value)


def _to_timestamp(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


@dataclass(frozen=True)
class ChoicePriceOverride:
    """
    Per-choice price override embedded in a rule's ``choices_pricing``.

    Attributes:
        adult_price: Adult price for this choice
        child_price: Child price for this choice
        infant_price: Infant price for this choice
        ota_sale_price: Channel-facing list price, None when not overridden
        not_included_price: Choice-specific surcharge, None when not overridden
        is_sale_available: Whether this choice is on sale
    """

    adult_price: Decimal = ZERO
    child_price: Decimal = ZERO
    infant_price: Decimal = ZERO
    ota_sale_price: Optional[Decimal] = None
    not_included_price: Optional[Decimal] = None
    is_sale_available: bool = True

    def price_for(self, category: str) -> Decimal:
        return getattr(self, f"{category}_price")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "adult_price": self.adult_price,
            "child_price": self.child_price,
            "infant_price": self.infant_price,
            "is_sale_available": self.is_sale_available,
        }
        if self.ota_sale_price is not None:
            data["ota_sale_price"] = self.ota_sale_price
        if self.not_included_price is not None:
            data["not_included_price"] = self.not_included_price
        return data


@dataclass(frozen=True)
class PricingRule:
    """
    One persisted pricing record for (product, channel, date).

    ``date`` is kept exactly as received; only the rule index normalizes it.
    ``choices_pricing`` is None when the record has no choice overrides and
    ``choices_pricing_invalid`` marks a record whose payload failed to parse.
    """

    id: str
    channel_id: str
    date: Any
    product_id: str = ""
    adult_price: Decimal = ZERO
    child_price: Decimal = ZERO
    infant_price: Decimal = ZERO
    markup_amount: Decimal = ZERO
    markup_percent: Decimal = ZERO
    coupon_percent: Decimal = ZERO
    commission_percent: Decimal = ZERO
    not_included_price: Decimal = ZERO
    is_sale_available: bool = True
    choices_pricing: Optional[Dict[str, ChoicePriceOverride]] = None
    choices_pricing_invalid: bool = False
    updated_at: str = ""

    @property
    def has_choices(self) -> bool:
        return bool(self.choices_pricing)

    def price_for(self, category: str) -> Decimal:
        return getattr(self, f"{category}_price")


@dataclass(frozen=True)
class ChannelPolicy:
    """
    Channel attributes that drive price calculation.

    Attributes:
        channel_id: Channel identifier
        type: Channel category
        not_included_type: Surcharge handling mode
        not_included_price: Channel-level surcharge amount
        commission_base_price_only: Commission is levied on the sale price only
        pricing_type: "separate" (per category) or "single" (one price)
    """

    channel_id: str = ""
    type: ChannelType = ChannelType.SELF
    not_included_type: NotIncludedType = NotIncludedType.NONE
    not_included_price: Decimal = ZERO
    commission_base_price_only: bool = False
    pricing_type: str = "separate"

    @property
    def is_ota(self) -> bool:
        return self.type == ChannelType.OTA


def _get(source: Any, name: str, default: Any = None) -> Any:
    if isinstance(source, Mapping):
        return source.get(name, default)
    return getattr(source, name, default)


def coerce_choice_override(raw: Mapping[str, Any]) -> ChoicePriceOverride:
    """Build an override from a raw entry, accepting ``adult``/``adult_price`` spellings."""
    prices = {}
    for category in PRICE_CATEGORIES:
        long_value = to_decimal(raw.get(f"{category}_price"))
        prices[f"{category}_price"] = long_value or to_decimal(raw.get(category))
    return ChoicePriceOverride(
        ota_sale_price=_to_positive(raw.get("ota_sale_price")),
        not_included_price=_to_positive(raw.get("not_included_price")),
        is_sale_available=_to_bool(raw.get("is_sale_available")),
        **prices,
    )


def parse_choices_pricing(raw: Any) -> Optional[Dict[str, ChoicePriceOverride]]:
    """
    Parse a ``choices_pricing`` payload.

    Accepts a mapping, a JSON text form, or the legacy
    ``{"combinations": {...}}`` wrapper. Non-mapping entries are skipped.

    Returns:
        Mapping of choice id to override, or None when the payload is empty.

    Raises:
        ChoicesPricingError: If the payload is neither a mapping nor valid JSON
            encoding one.
    """
    if raw is None:
        return None
    if isinstance(raw, (str, bytes)):
        if not raw.strip():
            return None
        try:
            raw = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise ChoicesPricingError(f"invalid choices_pricing JSON: {e}") from e
        if raw is None:
            return None
    if not isinstance(raw, Mapping):
        raise ChoicesPricingError(f"choices_pricing must be a mapping, got {type(raw).__name__}")

    combinations = raw.get("combinations")
    if isinstance(combinations, Mapping):
        raw = combinations

    overrides: Dict[str, ChoicePriceOverride] = {}
    for choice_id, entry in raw.items():
        if not isinstance(entry, Mapping):
            logger.debug(f"Skipping non-mapping choice entry {choice_id!r}")
            continue
        overrides[str(choice_id)] = coerce_choice_override(entry)
    return overrides or None


def coerce_pricing_rule(record: Any) -> PricingRule:
    """
    Convert a raw rule record (mapping or ORM row) into a ``PricingRule``.

    A ``choices_pricing`` payload that cannot be parsed is logged and dropped;
    the rule's own prices are still usable.
    """
    rule_id = str(_get(record, "id", "") or "")
    invalid = False
    try:
        choices = parse_choices_pricing(_get(record, "choices_pricing"))
    except ChoicesPricingError as e:
        logger.warning(f"Ignoring choices_pricing of rule {rule_id}: {e}")
        choices = None
        invalid = True

    return PricingRule(
        id=rule_id,
        channel_id=str(_get(record, "channel_id", "") or ""),
        date=_get(record, "date"),
        product_id=str(_get(record, "product_id", "") or ""),
        adult_price=to_decimal(_get(record, "adult_price")),
        child_price=to_decimal(_get(record, "child_price")),
        infant_price=to_decimal(_get(record, "infant_price")),
        markup_amount=to_decimal(_get(record, "markup_amount")),
        markup_percent=to_decimal(_get(record, "markup_percent")),
        coupon_percent=to_decimal(_get(record, "coupon_percent")),
        commission_percent=to_decimal(_get(record, "commission_percent")),
        not_included_price=to_decimal(_get(record, "not_included_price")),
        is_sale_available=_to_bool(_get(record, "is_sale_available")),
        choices_pricing=choices,
        choices_pricing_invalid=invalid,
        updated_at=_to_timestamp(_get(record, "updated_at")),
    )


def _enum_text(value: Any, default: str) -> str:
    if isinstance(value, Enum):
        value = value.value
    return str(value) if value else default


def _to_enum(enum_cls, value: Any, default):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, Enum):
        value = value.value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        if value is not None:
            logger.warning(f"Unknown {enum_cls.__name__} {value!r}, using {default.value}")
        return default


def coerce_channel_policy(record: Any) -> ChannelPolicy:
    """Convert a raw channel record (mapping or ORM row) into a ``ChannelPolicy``."""
    return ChannelPolicy(
        channel_id=str(_get(record, "id", "") or _get(record, "channel_id", "") or ""),
        type=_to_enum(ChannelType, _get(record, "type"), ChannelType.SELF),
        not_included_type=_to_enum(
            NotIncludedType, _get(record, "not_included_type"), NotIncludedType.NONE
        ),
        not_included_price=to_decimal(_get(record, "not_included_price")),
        commission_base_price_only=_to_bool(_get(record, "commission_base_price_only"), False),
        pricing_type=_enum_text(_get(record, "pricing_type"), "separate"),
    )
