"""
core - 定价引擎框架层

与存储、Web 框架无关的纯计算组件：
- pricing: 动态定价引擎（日期规范化, 规则索引, 规则解析, 选项价格合并, 价格计算）

使用方式:
    >>> from core.pricing import normalize_date, RuleIndex, resolve_effective_rule
    >>> from core.pricing import merge_choice_overrides, calculate

架构原则:
    - 纯函数，无共享可变状态
    - 摄取边界一次性完成类型转换
    - 历史记录只追加，最新者胜出
"""

__version__ = "0.1.0"
