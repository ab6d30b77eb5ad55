"""
测试 core.pricing.records - 摄取边界
"""
import json
from datetime import datetime
from decimal import Decimal

import pytest

from core.pricing import (
    ChannelType,
    ChoicesPricingError,
    NotIncludedType,
    coerce_channel_policy,
    coerce_pricing_rule,
    parse_choices_pricing,
    to_decimal,
)


class TestToDecimal:
    """测试数值转换"""

    def test_values(self):
        assert to_decimal("12.5") == Decimal("12.5")
        assert to_decimal(3) == Decimal("3")
        assert to_decimal(None) == Decimal("0")
        assert to_decimal("abc") == Decimal("0")
        assert to_decimal(float("nan")) == Decimal("0")
        assert to_decimal(True) == Decimal("0")


class TestParseChoicesPricing:
    """测试 choices_pricing 解析"""

    def test_json_text(self):
        """测试 JSON 文本形式"""
        raw = json.dumps({"A": {"adult_price": 10, "ota_sale_price": 0}})
        result = parse_choices_pricing(raw)
        assert result["A"].adult_price == Decimal("10")
        # 0 表示未覆盖
        assert result["A"].ota_sale_price is None

    def test_short_keys_and_wrapper(self):
        """测试 adult/child 简写与 combinations 包装"""
        result = parse_choices_pricing({"combinations": {"A": {"adult": 12, "child": "8"}}})
        assert result["A"].adult_price == Decimal("12")
        assert result["A"].child_price == Decimal("8")

    def test_empty(self):
        """测试空内容"""
        assert parse_choices_pricing(None) is None
        assert parse_choices_pricing("") is None
        assert parse_choices_pricing("{}") is None
        assert parse_choices_pricing({"A": "junk"}) is None

    def test_invalid(self):
        """测试无法解析的内容"""
        with pytest.raises(ChoicesPricingError):
            parse_choices_pricing("{not json")
        with pytest.raises(ChoicesPricingError):
            parse_choices_pricing("[1, 2]")


class TestCoercePricingRule:
    """测试规则记录转换"""

    def test_defaults(self):
        """测试缺失字段的默认值"""
        rule = coerce_pricing_rule({"id": 7, "channel_id": "B001", "date": "2024-07-01"})
        assert rule.id == "7"
        assert rule.adult_price == Decimal("0")
        assert rule.is_sale_available is True
        assert rule.choices_pricing is None
        assert rule.updated_at == ""

    def test_invalid_choices_flagged(self):
        """测试无效 choices_pricing 被标记而规则仍可用"""
        rule = coerce_pricing_rule({
            "id": 1, "channel_id": "B001", "date": "2024-07-01",
            "adult_price": "100", "choices_pricing": "{broken",
        })
        assert rule.choices_pricing_invalid is True
        assert rule.choices_pricing is None
        assert rule.adult_price == Decimal("100")

    def test_timestamp(self):
        """测试时间戳统一为 ISO 字符串"""
        rule = coerce_pricing_rule({"id": 1, "updated_at": datetime(2024, 6, 1, 9, 0)})
        assert rule.updated_at == "2024-06-01T09:00:00"


class TestCoerceChannelPolicy:
    """测试渠道策略转换"""

    def test_case_insensitive(self):
        """测试渠道类型大小写不敏感"""
        policy = coerce_channel_policy({
            "id": "M001", "type": "OTA", "not_included_type": "Amount_And_Choice",
            "not_included_price": "20", "commission_base_price_only": True,
        })
        assert policy.type == ChannelType.OTA
        assert policy.is_ota
        assert policy.not_included_type == NotIncludedType.AMOUNT_AND_CHOICE
        assert policy.not_included_price == Decimal("20")

    def test_unknown_type_defaults(self):
        """测试未知类型回退为默认值"""
        policy = coerce_channel_policy({"id": "X", "type": "mystery"})
        assert policy.type == ChannelType.SELF
        assert policy.commission_base_price_only is False


class TestLooseValues:
    """测试来源数据中的宽松取值"""

    def test_out_of_range_amount(self):
        """测试超出范围的金额视为 0"""
        assert to_decimal("1e30") == Decimal("0")
        assert to_decimal(Decimal("-1e15")) == Decimal("0")
        assert to_decimal("999999999.99") == Decimal("999999999.99")

    @pytest.mark.parametrize("value", ["", "  "])
    def test_blank_sale_flag_uses_default(self, value):
        """测试空字符串的在售标记按缺省处理"""
        rule = coerce_pricing_rule({"id": 1, "is_sale_available": value})
        assert rule.is_sale_available is True

    def test_explicit_false_sale_flag(self):
        assert coerce_pricing_rule({"id": 1, "is_sale_available": "false"}).is_sale_available is False
        assert coerce_pricing_rule({"id": 1, "is_sale_available": 0}).is_sale_available is False
