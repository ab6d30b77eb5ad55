"""
core/pricing - 动态定价引擎

包含定价引擎的核心组件：
- dates: 日期规范化（任意日期表示 -> YYYY-MM-DD）
- records: 定价记录与摄取边界（类型转换、choices_pricing 解析）
- index: 规则索引（按日期分组）
- resolver: 规则解析（按渠道选出生效规则）
- merger: 选项价格合并（按 updated_at 最新者胜出）
- calculator: 价格计算（最高售价 / 折扣价 / 净价）
- choice_matcher: 选项键匹配
- history: 价格历史分组

使用方式:
    >>> from core.pricing import RuleIndex, resolve_effective_rule, calculate
    >>> index = RuleIndex(rules)
    >>> rule = resolve_effective_rule(index.rules_for("2024-07-01"), channel_id="B001")
    >>> calculate(rule, policy)
"""

# 日期规范化
from core.pricing.dates import normalize_date

# 定价记录
from core.pricing.records import (
    PRICE_CATEGORIES,
    ChannelType,
    NotIncludedType,
    ChoicesPricingError,
    ChoicePriceOverride,
    PricingRule,
    ChannelPolicy,
    to_decimal,
    parse_choices_pricing,
    coerce_choice_override,
    coerce_pricing_rule,
    coerce_channel_policy,
)

# 规则索引与解析
from core.pricing.index import RuleIndex, build_rule_index
from core.pricing.resolver import (
    SELF_CHANNEL_PREFIX,
    ChannelIdMapper,
    identity_channel_id,
    is_self_channel_id,
    resolve_effective_rule,
)

# 选项价格合并
from core.pricing.merger import (
    MergedChoiceOverride,
    ChoiceMergeResult,
    sort_latest_first,
    merge_choice_overrides,
)

# 价格计算
from core.pricing.calculator import (
    PriceBreakdown,
    round_price,
    select_not_included_price,
    calculate,
    calculate_categories,
)

# 选项键匹配与历史
from core.pricing.choice_matcher import find_choice_override, fallback_ota_sale_price
from core.pricing.history import HistoryEntry, group_history

__all__ = [
    # 日期
    "normalize_date",
    # 记录
    "PRICE_CATEGORIES",
    "ChannelType",
    "NotIncludedType",
    "ChoicesPricingError",
    "ChoicePriceOverride",
    "PricingRule",
    "ChannelPolicy",
    "to_decimal",
    "parse_choices_pricing",
    "coerce_choice_override",
    "coerce_pricing_rule",
    "coerce_channel_policy",
    # 索引与解析
    "RuleIndex",
    "build_rule_index",
    "SELF_CHANNEL_PREFIX",
    "ChannelIdMapper",
    "identity_channel_id",
    "is_self_channel_id",
    "resolve_effective_rule",
    # 合并
    "MergedChoiceOverride",
    "ChoiceMergeResult",
    "sort_latest_first",
    "merge_choice_overrides",
    # 计算
    "PriceBreakdown",
    "round_price",
    "select_not_included_price",
    "calculate",
    "calculate_categories",
    # 匹配与历史
    "find_choice_override",
    "fallback_ota_sale_price",
    "HistoryEntry",
    "group_history",
]
