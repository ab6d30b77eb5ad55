"""
测试 core.pricing.calculator - 价格计算
"""
from decimal import Decimal

import pytest

from core.pricing import (
    ChannelPolicy,
    ChannelType,
    ChoicePriceOverride,
    NotIncludedType,
    PricingRule,
    calculate,
    calculate_categories,
    coerce_pricing_rule,
    round_price,
    select_not_included_price,
)


def _make_rule(**values):
    data = {"id": "1", "channel_id": "B001", "date": "2024-07-01"}
    data.update({k: Decimal(str(v)) if isinstance(v, (int, float, str)) else v
                 for k, v in values.items()})
    return PricingRule(**data)


OTA_POLICY = ChannelPolicy(
    channel_id="M001",
    type=ChannelType.OTA,
    not_included_type=NotIncludedType.AMOUNT_AND_CHOICE,
    commission_base_price_only=True,
)


class TestCalculateStandard:
    """测试非 OTA 计算路径"""

    def test_markup_coupon_commission(self):
        """测试加价、优惠券、佣金"""
        rule = _make_rule(adult_price=100, markup_amount=10, coupon_percent=10, commission_percent=20)
        result = calculate(rule, ChannelPolicy(channel_id="B001"))
        assert result.max_sale_price == Decimal("110.00")
        assert result.discount_price == Decimal("99.00")
        assert result.net_price == Decimal("79.20")
        assert result.base_price == Decimal("100.00")

    def test_markup_percent(self):
        """测试百分比加价"""
        rule = _make_rule(adult_price=200, markup_amount=0, markup_percent=15)
        result = calculate(rule, ChannelPolicy())
        assert result.max_sale_price == Decimal("230.00")
        assert result.net_price == Decimal("230.00")

    def test_half_up_rounding(self):
        """测试四舍五入到分"""
        assert round_price(Decimal("0.125")) == Decimal("0.13")
        rule = _make_rule(adult_price="33.335")
        assert calculate(rule, ChannelPolicy()).max_sale_price == Decimal("33.34")

    def test_all_zero(self):
        """测试全零规则结果为零，而非缺失"""
        result = calculate(_make_rule(), ChannelPolicy())
        assert (result.max_sale_price, result.discount_price, result.net_price) == (0, 0, 0)
        assert result.is_unset

    def test_categories(self):
        """测试成人/儿童/婴儿分别计算"""
        rule = _make_rule(adult_price=100, child_price=60, infant_price=0)
        results = calculate_categories(rule, ChannelPolicy())
        assert results["adult"].max_sale_price == Decimal("100.00")
        assert results["child"].max_sale_price == Decimal("60.00")
        assert results["infant"].is_unset

    def test_unknown_category(self):
        """测试未知价格类别"""
        with pytest.raises(ValueError):
            calculate(_make_rule(), ChannelPolicy(), category="senior")

    def test_ota_override_ignored_for_self_channel(self):
        """测试非 OTA 渠道忽略 OTA 售价"""
        rule = _make_rule(adult_price=100)
        override = ChoicePriceOverride(ota_sale_price=Decimal("200"))
        result = calculate(rule, ChannelPolicy(type=ChannelType.SELF), override)
        assert result.max_sale_price == Decimal("100.00")
        assert result.ota_sale_price == Decimal("0.00")


class TestCalculateOta:
    """测试 OTA 售价计算路径"""

    def test_add_back(self):
        """测试佣金仅按售价时回加不含费用与选项价格"""
        rule = _make_rule(coupon_percent=10, commission_percent=15, not_included_price=20)
        override = ChoicePriceOverride(adult_price=Decimal("5"), ota_sale_price=Decimal("200"))
        result = calculate(rule, OTA_POLICY, override)
        assert result.max_sale_price == Decimal("200.00")
        assert result.discount_price == Decimal("180.00")
        assert result.net_price == Decimal("178.00")
        assert result.choice_price == Decimal("5.00")
        assert result.not_included_price == Decimal("20.00")

    def test_no_add_back_without_flag(self):
        """测试未开启佣金仅按售价时不回加"""
        rule = _make_rule(coupon_percent=10, commission_percent=15, not_included_price=20)
        override = ChoicePriceOverride(adult_price=Decimal("5"), ota_sale_price=Decimal("200"))
        policy = ChannelPolicy(type=ChannelType.OTA, not_included_type=NotIncludedType.AMOUNT_AND_CHOICE)
        assert calculate(rule, policy, override).net_price == Decimal("153.00")

    def test_no_add_back_amount_only(self):
        """测试仅金额模式不回加"""
        rule = _make_rule(commission_percent=10)
        override = ChoicePriceOverride(ota_sale_price=Decimal("100"))
        policy = ChannelPolicy(
            type=ChannelType.OTA,
            not_included_type=NotIncludedType.AMOUNT_ONLY,
            not_included_price=Decimal("30"),
            commission_base_price_only=True,
        )
        assert calculate(rule, policy, override).net_price == Decimal("90.00")

    def test_without_override_uses_markup_path(self):
        """测试 OTA 渠道无 OTA 售价时走加价路径"""
        rule = _make_rule(adult_price=100, markup_amount=20)
        assert calculate(rule, OTA_POLICY).max_sale_price == Decimal("120.00")


class TestSelectNotIncludedPrice:
    """测试不含费用取值顺序"""

    def test_choice_level_wins(self):
        rule = _make_rule(not_included_price=10)
        policy = ChannelPolicy(not_included_type=NotIncludedType.AMOUNT_ONLY, not_included_price=Decimal("15"))
        override = ChoicePriceOverride(not_included_price=Decimal("25"))
        assert select_not_included_price(rule, policy, override) == Decimal("25")
        assert select_not_included_price(rule, policy) == Decimal("15")

    def test_rule_amount(self):
        rule = _make_rule(not_included_price=10)
        assert select_not_included_price(rule, ChannelPolicy(not_included_price=Decimal("15"))) == Decimal("10")


class TestOutOfRangeAmounts:
    """测试超大金额不会导致计算异常"""

    def test_oversized_price_ingested_as_unset(self):
        """测试超出范围的金额在摄取时视为 0"""
        rule = coerce_pricing_rule({"id": "1", "channel_id": "B001", "date": "2024-07-01", "adult_price": "1e30"})
        result = calculate(rule, ChannelPolicy())
        assert rule.adult_price == Decimal("0")
        assert result.is_unset

    def test_round_large_value(self):
        """测试超过默认精度的数值仍可四舍五入"""
        assert round_price(Decimal("1e30")) == Decimal("1e30")
        assert round_price(Decimal("1e30")).as_tuple().exponent == -2

    def test_extreme_percents(self):
        """测试各字段均在上限附近时计算不抛异常"""
        big = "999999999999"
        rule = _make_rule(adult_price=big, markup_amount=big, markup_percent=big,
                          coupon_percent=big, commission_percent=big)
        result = calculate(rule, ChannelPolicy())
        assert result.max_sale_price.as_tuple().exponent == -2
        assert result.net_price.as_tuple().exponent == -2
