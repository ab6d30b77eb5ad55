"""
测试 core.pricing.merger / history - 选项价格合并与历史分组
"""
import logging
from decimal import Decimal

from core.pricing import (
    ChoicePriceOverride,
    PricingRule,
    group_history,
    merge_choice_overrides,
    sort_latest_first,
)


def _make_rule(rule_id, updated_at, choices=None, invalid=False, adult_price="0"):
    return PricingRule(
        id=rule_id,
        channel_id="B001",
        date="2024-07-01",
        adult_price=Decimal(adult_price),
        choices_pricing=choices,
        choices_pricing_invalid=invalid,
        updated_at=updated_at,
    )


def _override(adult):
    return ChoicePriceOverride(adult_price=Decimal(adult))


class TestMergeChoiceOverrides:
    """测试按 updated_at 最新者胜出的选项合并"""

    def test_latest_wins(self):
        """测试较新的记录覆盖较旧的同一选项"""
        older = _make_rule("1", "2024-01-01", {"choice_A": _override(10)})
        newer = _make_rule("2", "2024-06-01", {"choice_A": _override(15)})
        result = merge_choice_overrides([newer, older])
        assert result.override_for("choice_A").adult_price == Decimal("15")
        assert result.get("choice_A").source_rule is newer

        # 输入顺序不影响结果
        result = merge_choice_overrides([older, newer])
        assert result.override_for("choice_A").adult_price == Decimal("15")

    def test_per_choice_scope(self):
        """测试各选项独立取最新值"""
        older = _make_rule("1", "2024-01-01", {"A": _override(10), "B": _override(20)})
        newer = _make_rule("2", "2024-06-01", {"A": _override(15)})
        result = merge_choice_overrides([older, newer])
        assert result.override_for("A").adult_price == Decimal("15")
        assert result.override_for("B").adult_price == Decimal("20")
        assert result.choice_ids() == ["A", "B"]

    def test_base_rule(self):
        """测试最新的无选项记录作为基础规则"""
        plain_old = _make_rule("1", "2024-01-01", adult_price="90")
        plain_new = _make_rule("2", "2024-03-01", adult_price="95")
        with_choice = _make_rule("3", "2024-06-01", {"A": _override(15)})
        result = merge_choice_overrides([plain_old, with_choice, plain_new])
        assert result.base_rule is plain_new

    def test_invalid_rules_skipped(self):
        """测试无效 choices_pricing 的记录被跳过"""
        broken = _make_rule("1", "2024-06-01", invalid=True)
        good = _make_rule("2", "2024-01-01", {"A": _override(10)})
        result = merge_choice_overrides([broken, good])
        assert result.skipped_rule_ids == ["1"]
        assert result.base_rule is None
        assert result.override_for("A").adult_price == Decimal("10")

    def test_invalid_rules_not_warned_twice(self, caplog):
        """测试合并时对无效记录只记录调试日志（摄取阶段已告警）"""
        caplog.set_level(logging.DEBUG, logger="core.pricing.merger")
        merge_choice_overrides([_make_rule("1", "2024-06-01", invalid=True)])
        merger_records = [r for r in caplog.records if r.name == "core.pricing.merger"]
        assert merger_records
        assert all(r.levelno < logging.WARNING for r in merger_records)

    def test_missing_timestamp_is_oldest(self):
        """测试缺少时间戳的记录视为最旧"""
        undated = _make_rule("1", "", {"A": _override(99)})
        dated = _make_rule("2", "2024-01-01", {"A": _override(10)})
        assert merge_choice_overrides([undated, dated]).override_for("A").adult_price == Decimal("10")

    def test_empty(self):
        """测试空输入与空选项查询"""
        result = merge_choice_overrides([])
        assert result.overrides == {}
        assert result.override_for(None) is None
        assert result.override_for("A") is None

    def test_sort_is_stable(self):
        """测试相同时间戳保持输入顺序"""
        rules = [_make_rule("1", "2024-01-01"), _make_rule("2", "2024-01-01")]
        assert [r.id for r in sort_latest_first(rules)] == ["1", "2"]


class TestGroupHistory:
    """测试价格历史分组"""

    def test_groups_same_timestamp(self):
        """测试同一次保存的记录合并为一条"""
        rules = [
            _make_rule("1", "2024-01-01T10:00:00", {"A": _override(10)}, adult_price="100"),
            _make_rule("2", "2024-01-01T10:00:00", {"B": _override(20)}, adult_price="105"),
            _make_rule("3", "2024-06-01T10:00:00", adult_price="120"),
        ]
        history = group_history(rules)
        assert [h.updated_at for h in history] == ["2024-06-01T10:00:00", "2024-01-01T10:00:00"]

        first_save = history[1]
        assert first_save.rule_ids == ["1", "2"]
        assert first_save.rule.id == "1"
        assert first_save.rule.adult_price == Decimal("105")
        assert set(first_save.rule.choices_pricing) == {"A", "B"}

    def test_empty(self):
        """测试无记录"""
        assert group_history([]) == []
