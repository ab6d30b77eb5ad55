"""
core/pricing/calculator.py

Price calculator - derives list, discounted and net prices from a rule.

Pure function of (rule, channel policy, optional choice override). Shared by
the calendar view, the list view and the save preview so all three agree.
"""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Dict, Optional

from core.pricing.records import (
    PRICE_CATEGORIES,
    ZERO,
    ChannelPolicy,
    ChoicePriceOverride,
    NotIncludedType,
    PricingRule,
)

HUNDRED = Decimal("100")
ONE = Decimal("1")
CENT = Decimal("0.01")


def round_price(value: Decimal) -> Decimal:
    """Round half-up to cents; precision grows with the magnitude so quantize cannot fail."""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _rate(percent: Decimal) -> Decimal:
    return percent / HUNDRED


@dataclass(frozen=True)
class PriceBreakdown:
    """
    Calculated prices for one rule, channel and category.

    Attributes:
        max_sale_price: Channel-facing list price
        discount_price: List price after coupon
        net_price: Amount remitted to the seller after commission
        category: adult / child / infant
        base_price: Rule base price used for the markup path
        ota_sale_price: OTA list price override in effect (0 when none)
        choice_price: Choice price added back after commission (0 when none)
        not_included_price: Surcharge amount selected for this calculation
    """

    max_sale_price: Decimal
    discount_price: Decimal
    net_price: Decimal
    category: str = "adult"
    base_price: Decimal = ZERO
    ota_sale_price: Decimal = ZERO
    choice_price: Decimal = ZERO
    not_included_price: Decimal = ZERO

    @property
    def is_unset(self) -> bool:
        """All-zero output means no price was set for this cell."""
        return self.max_sale_price == 0 and self.discount_price == 0 and self.net_price == 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "category": self.category,
            "max_sale_price": self.max_sale_price,
            "discount_price": self.discount_price,
            "net_price": self.net_price,
            "base_price": self.base_price,
            "ota_sale_price": self.ota_sale_price,
            "choice_price": self.choice_price,
            "not_included_price": self.not_included_price,
        }


def select_not_included_price(
    rule: PricingRule,
    policy: ChannelPolicy,
    choice_override: Optional[ChoicePriceOverride] = None,
) -> Decimal:
    """
    Surcharge used for this calculation.

    A positive choice-level amount wins; otherwise the channel amount when the
    channel opts in, otherwise the rule amount.
    """
    if choice_override is not None and choice_override.not_included_price:
        return choice_override.not_included_price
    if policy.not_included_type != NotIncludedType.NONE and policy.not_included_price > 0:
        return policy.not_included_price
    return rule.not_included_price


def calculate(
    rule: PricingRule,
    policy: ChannelPolicy,
    choice_override: Optional[ChoicePriceOverride] = None,
    category: str = "adult",
) -> PriceBreakdown:
    """
    Calculate max sale, discount and net prices.

    Formula:
        max      = ota_sale_price                        (OTA channel with override)
                 = base + markup_amount + base * markup%  (otherwise)
        discount = max * (1 - coupon%)
        net      = ota * (1 - coupon%) * (1 - commission%) + not_included + choice
                       (OTA override, commission on base price only, amount_and_choice)
                 = ota * (1 - coupon%) * (1 - commission%)   (other OTA override cases)
                 = discount * (1 - commission%)              (otherwise)

    Args:
        rule: Effective rule, never None; callers render "no price" instead.
        policy: Channel policy of the channel being priced.
        choice_override: Selected choice's override, if any.
        category: Price category, one of adult / child / infant.

    Returns:
        PriceBreakdown with every amount rounded half-up to 2 decimals.
    """
    if category not in PRICE_CATEGORIES:
        raise ValueError(f"Unknown price category: {category}")

    base_price = rule.price_for(category)
    ota_sale_price = ZERO
    choice_price = ZERO
    if policy.is_ota and choice_override is not None and choice_override.ota_sale_price:
        ota_sale_price = choice_override.ota_sale_price
        choice_price = choice_override.price_for(category)

    not_included_price = select_not_included_price(rule, policy, choice_override)
    coupon_factor = ONE - _rate(rule.coupon_percent)
    commission_factor = ONE - _rate(rule.commission_percent)

    if ota_sale_price > 0:
        max_sale_price = ota_sale_price
    else:
        max_sale_price = base_price + rule.markup_amount + base_price * _rate(rule.markup_percent)

    discount_price = max_sale_price * coupon_factor

    if ota_sale_price > 0:
        net_price = ota_sale_price * coupon_factor * commission_factor
        if (policy.commission_base_price_only
                and policy.not_included_type == NotIncludedType.AMOUNT_AND_CHOICE):
            net_price += not_included_price + choice_price
    else:
        net_price = discount_price * commission_factor

    return PriceBreakdown(
        max_sale_price=round_price(max_sale_price),
        discount_price=round_price(discount_price),
        net_price=round_price(net_price),
        category=category,
        base_price=round_price(base_price),
        ota_sale_price=round_price(ota_sale_price),
        choice_price=round_price(choice_price),
        not_included_price=round_price(not_included_price),
    )


def calculate_categories(
    rule: PricingRule,
    policy: ChannelPolicy,
    choice_override: Optional[ChoicePriceOverride] = None,
) -> Dict[str, PriceBreakdown]:
    """Run ``calculate`` for adult, child and infant."""
    return {
        category: calculate(rule, policy, choice_override, category)
        for category in PRICE_CATEGORIES
    }
