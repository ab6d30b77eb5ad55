"""
价格服务 - 本体操作层
管理 DynamicPricing 对象（只追加），并驱动定价引擎生成日历、列表、保存预览

日历、列表、预览三个入口都走同一条路径：
规范化日期 -> 规则索引 -> 解析生效规则（独立合并选项价格） -> 价格计算
"""
import calendar
import json
import logging
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.models.ontology import DynamicPricing, ProductChoice, utcnow
from app.models.schemas import PricePreviewRequest, PricingRuleBatchCreate
from app.services.channel_service import ChannelService
from core.pricing import (
    ChannelIdMapper,
    ChannelPolicy,
    ChoiceMergeResult,
    ChoicePriceOverride,
    PricingRule,
    RuleIndex,
    calculate,
    calculate_categories,
    coerce_pricing_rule,
    fallback_ota_sale_price,
    find_choice_override,
    group_history,
    identity_channel_id,
    merge_choice_overrides,
    normalize_date,
    resolve_effective_rule,
)


logger = logging.getLogger(__name__)

# (已完成数, 总数, 新记录)
ProgressCallback = Callable[[int, int, DynamicPricing], None]


def _breakdowns_to_dict(breakdowns) -> Dict[str, dict]:
    return {category: b.to_dict() for category, b in breakdowns.items()}


class DynamicPricingService:
    """动态价格服务"""

    def __init__(self, db: Session, id_mapper: ChannelIdMapper = identity_channel_id,
                 channel_service: Optional[ChannelService] = None,
                 self_prefix: Optional[str] = None):
        self.db = db
        # 界面渠道ID -> 存储渠道ID 的映射，默认原样返回
        self._id_mapper = id_mapper
        self.channels = channel_service or ChannelService(db)
        self._self_prefix = self_prefix or settings.SELF_CHANNEL_PREFIX

    # ============== 规则读取 ==============

    def _query_rows(self, product_id: str, channel_id: Optional[str] = None) -> List[DynamicPricing]:
        query = self.db.query(DynamicPricing).filter(DynamicPricing.product_id == product_id)
        if channel_id:
            query = query.filter(DynamicPricing.channel_id == self._id_mapper(channel_id))
        # 按插入顺序，保证同一次解析内读取顺序稳定
        return query.order_by(DynamicPricing.id).all()

    @staticmethod
    def _in_range(key: str, start: str, end: str) -> bool:
        if not key:
            return False
        if start and key < start:
            return False
        if end and key > end:
            return False
        return True

    def _filter_rows(self, rows: List[DynamicPricing], start_date: Any = None,
                     end_date: Any = None) -> List[Tuple[DynamicPricing, PricingRule]]:
        start = normalize_date(start_date) if start_date else ""
        end = normalize_date(end_date) if end_date else ""
        result = []
        for row in rows:
            rule = coerce_pricing_rule(row)
            if (start or end) and not self._in_range(normalize_date(rule.date), start, end):
                continue
            result.append((row, rule))
        return result

    def get_rules(self, product_id: str, start_date: Any = None, end_date: Any = None,
                  channel_id: Optional[str] = None) -> List[PricingRule]:
        """获取产品的价格规则（日期范围按规范化后的日期过滤）"""
        rows = self._query_rows(product_id, channel_id)
        return [rule for _, rule in self._filter_rows(rows, start_date, end_date)]

    def get_rule_records(self, product_id: str, start_date: Any = None, end_date: Any = None,
                         channel_id: Optional[str] = None) -> List[dict]:
        """获取价格规则原始记录及规范化日期"""
        rows = self._query_rows(product_id, channel_id)
        records = []
        for row, rule in self._filter_rows(rows, start_date, end_date):
            records.append({
                "id": row.id,
                "product_id": row.product_id,
                "channel_id": row.channel_id,
                "date": row.date,
                "normalized_date": normalize_date(rule.date),
                "adult_price": rule.adult_price,
                "child_price": rule.child_price,
                "infant_price": rule.infant_price,
                "markup_amount": rule.markup_amount,
                "markup_percent": rule.markup_percent,
                "coupon_percent": rule.coupon_percent,
                "commission_percent": rule.commission_percent,
                "not_included_price": rule.not_included_price,
                "is_sale_available": rule.is_sale_available,
                "choices_pricing": (
                    {cid: o.to_dict() for cid, o in rule.choices_pricing.items()}
                    if rule.choices_pricing else None
                ),
                "updated_at": row.updated_at,
            })
        return records

    # ============== 选项目录 ==============

    def get_choices(self, product_id: str) -> List[ProductChoice]:
        """获取产品选项目录"""
        return self.db.query(ProductChoice).filter(
            ProductChoice.product_id == product_id
        ).order_by(ProductChoice.id).all()

    def get_choice_names(self, product_id: str) -> Dict[str, str]:
        """选项ID -> 显示名称"""
        return {choice.id: choice.name for choice in self.get_choices(product_id)}

    def _combination_key(self, product_id: str, choice_id: str) -> Optional[str]:
        choice = self.db.query(ProductChoice).filter(
            ProductChoice.product_id == product_id,
            ProductChoice.id == choice_id
        ).first()
        return choice.combination_key if choice else None

    # ============== 引擎调用 ==============

    def _policy_for(self, rule: PricingRule, channel_id: Optional[str]) -> ChannelPolicy:
        # 指定渠道时按该渠道计算，否则按规则所属渠道
        target = self._id_mapper(channel_id) if channel_id else rule.channel_id
        policy = self.channels.get_policies().get(target)
        if policy is None:
            logger.warning(f"Channel {target} not found, using default policy")
            policy = ChannelPolicy(channel_id=target)
        return policy

    def _choice_override(self, merged: ChoiceMergeResult, policy: ChannelPolicy,
                         choice_id: Optional[str],
                         combination_key: Optional[str]) -> Optional[ChoicePriceOverride]:
        if not choice_id:
            return None
        overrides = {cid: m.override for cid, m in merged.overrides.items()}
        override, matched_key = find_choice_override(choice_id, overrides, combination_key)
        if override is not None:
            return override
        if policy.is_ota:
            # 未匹配到的选项按同结构键中最高的 OTA 售价计算
            fallback = fallback_ota_sale_price(combination_key or choice_id, overrides)
            if fallback is not None:
                return ChoicePriceOverride(ota_sale_price=fallback)
        return None

    def _resolve(self, day_rules: List[PricingRule], channel_id: Optional[str],
                 channel_type: Optional[str]) -> Optional[PricingRule]:
        return resolve_effective_rule(
            day_rules,
            channel_id=channel_id,
            channel_type=channel_type,
            id_mapper=self._id_mapper,
            self_prefix=self._self_prefix,
        )

    # ============== 日历视图 ==============

    def get_calendar(self, product_id: str, year: int, month: int,
                     channel_id: Optional[str] = None, channel_type: Optional[str] = None,
                     choice_id: Optional[str] = None, category: str = "adult") -> dict:
        """获取价格日历（每天一个单元格）"""
        if month < 1 or month > 12:
            raise ValueError("月份必须在 1-12 之间")

        days_in_month = calendar.monthrange(year, month)[1]
        first_day = date(year, month, 1)
        last_day = date(year, month, days_in_month)

        index = RuleIndex(self.get_rules(product_id, first_day, last_day))
        combination_key = self._combination_key(product_id, choice_id) if choice_id else None

        cells = []
        for day in range(1, days_in_month + 1):
            day_key = normalize_date(date(year, month, day))
            day_rules = index.rules_for(day_key)
            rule = self._resolve(day_rules, channel_id, channel_type)

            if rule is None:
                cells.append({
                    "date": day_key,
                    "rule_count": len(day_rules),
                    "has_price": False,
                })
                continue

            policy = self._policy_for(rule, channel_id)
            override = self._choice_override(
                merge_choice_overrides(day_rules), policy, choice_id, combination_key
            )
            breakdown = calculate(rule, policy, override, category)
            cells.append({
                "date": day_key,
                "rule_count": len(day_rules),
                "has_price": True,
                "rule_id": rule.id,
                "rule_channel_id": rule.channel_id,
                "is_sale_available": rule.is_sale_available,
                "prices": breakdown.to_dict(),
            })

        return {
            "product_id": product_id,
            "year": year,
            "month": month,
            "channel_id": channel_id,
            "choice_id": choice_id,
            "cells": cells,
        }

    # ============== 列表视图 ==============

    def get_price_list(self, product_id: str, start_date: date, end_date: date,
                       channel_id: Optional[str] = None, channel_type: Optional[str] = None,
                       choice_id: Optional[str] = None) -> List[dict]:
        """获取价格列表（每个有规则的日期一行）"""
        if end_date < start_date:
            raise ValueError("结束日期不能早于开始日期")
        if (end_date - start_date).days > settings.LIST_MAX_RANGE_DAYS:
            raise ValueError(f"日期范围不能超过 {settings.LIST_MAX_RANGE_DAYS} 天")

        index = RuleIndex(self.get_rules(product_id, start_date, end_date))
        names = self.get_choice_names(product_id)
        combination_key = self._combination_key(product_id, choice_id) if choice_id else None

        rows = []
        for day_key in index.dates():
            day_rules = index.rules_for(day_key)
            merged = merge_choice_overrides(day_rules)
            rule = self._resolve(day_rules, channel_id, channel_type)

            row = {
                "date": day_key,
                "rule_count": len(day_rules),
                "base_rule_id": merged.base_rule.id if merged.base_rule else None,
                "choices": [
                    {
                        "choice_id": m.choice_id,
                        # 目录中找不到时显示原始ID
                        "choice_name": names.get(m.choice_id, m.choice_id),
                        "source_rule_id": m.source_rule.id,
                        "updated_at": m.source_rule.updated_at,
                        **m.override.to_dict(),
                    }
                    for m in merged.overrides.values()
                ],
            }
            if rule is not None:
                policy = self._policy_for(rule, channel_id)
                override = self._choice_override(merged, policy, choice_id, combination_key)
                row.update({
                    "rule_id": rule.id,
                    "rule_channel_id": rule.channel_id,
                    "is_sale_available": rule.is_sale_available,
                    "prices": _breakdowns_to_dict(calculate_categories(rule, policy, override)),
                })
            rows.append(row)

        return rows

    # ============== 保存预览 ==============

    def preview(self, data: PricePreviewRequest) -> dict:
        """保存前预览价格，与日历/列表共用摄取和计算逻辑"""
        policy = self.channels.get_policy(self._id_mapper(data.channel_id))
        payload = data.model_dump(exclude={"choice_id"})
        payload.update({"id": "preview", "channel_id": self._id_mapper(data.channel_id)})
        rule = coerce_pricing_rule(payload)

        override, _ = find_choice_override(data.choice_id, rule.choices_pricing) \
            if data.choice_id else (None, None)

        return {
            "channel_id": data.channel_id,
            "choice_id": data.choice_id,
            "prices": _breakdowns_to_dict(calculate_categories(rule, policy, override)),
            "choices": {
                cid: _breakdowns_to_dict(calculate_categories(rule, policy, choice_override))
                for cid, choice_override in (rule.choices_pricing or {}).items()
            },
        }

    # ============== 批量保存 ==============

    @staticmethod
    def _expand_dates(data: PricingRuleBatchCreate) -> List[date]:
        if data.dates:
            return sorted(set(data.dates))
        weekdays = set(data.weekdays) if data.weekdays else None
        result = []
        current = data.start_date
        while current <= data.end_date:
            if weekdays is None or current.weekday() in weekdays:
                result.append(current)
            current += timedelta(days=1)
        return result

    @staticmethod
    def _serialize_choices(data: PricingRuleBatchCreate) -> Optional[str]:
        if not data.choices_pricing:
            return None
        choices = {
            cid: choice.model_dump(exclude_none=True)
            for cid, choice in data.choices_pricing.items()
        }
        return json.dumps(choices, default=str, ensure_ascii=False)

    def save_rules(self, data: PricingRuleBatchCreate,
                   progress: Optional[ProgressCallback] = None) -> dict:
        """
        批量保存价格规则
        每个 日期 × 渠道 插入一条新记录（不覆盖旧记录），同一批次共享 updated_at
        """
        dates = self._expand_dates(data)
        if not dates:
            raise ValueError("没有符合条件的日期")

        channel_ids = [self._id_mapper(cid) for cid in data.channel_ids]
        for channel_id in channel_ids:
            self.channels.get_policy(channel_id)

        now = utcnow()
        choices_json = self._serialize_choices(data)
        values = data.model_dump(include={
            "adult_price", "child_price", "infant_price", "markup_amount", "markup_percent",
            "coupon_percent", "commission_percent", "not_included_price", "is_sale_available",
        })

        total = len(dates) * len(channel_ids)
        rule_ids: List[int] = []
        try:
            for day in dates:
                for channel_id in channel_ids:
                    row = DynamicPricing(
                        product_id=data.product_id,
                        channel_id=channel_id,
                        date=day.isoformat(),
                        choices_pricing=choices_json,
                        created_at=now,
                        updated_at=now,
                        **values,
                    )
                    self.db.add(row)
                    self.db.flush()
                    rule_ids.append(row.id)
                    logger.info(
                        f"Saved pricing rule {len(rule_ids)}/{total}: "
                        f"product={data.product_id} channel={channel_id} date={row.date}"
                    )
                    if progress:
                        progress(len(rule_ids), total, row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Batch pricing save failed after {len(rule_ids)}/{total} items: {e}")
            raise

        return {"total": total, "created": len(rule_ids), "rule_ids": rule_ids}

    # ============== 历史与删除 ==============

    def get_history(self, product_id: str, target_date: Any, channel_id: str) -> List[dict]:
        """获取某日期某渠道的价格变更历史（同一次保存合并为一条）"""
        day_key = normalize_date(target_date)
        if not day_key:
            raise ValueError("日期格式无效")

        rules = [
            rule for rule in self.get_rules(product_id, channel_id=channel_id)
            if normalize_date(rule.date) == day_key
        ]
        history = []
        for entry in group_history(rules):
            rule = entry.rule
            history.append({
                "updated_at": entry.updated_at,
                "rule_ids": entry.rule_ids,
                "adult_price": rule.adult_price,
                "child_price": rule.child_price,
                "infant_price": rule.infant_price,
                "markup_amount": rule.markup_amount,
                "markup_percent": rule.markup_percent,
                "coupon_percent": rule.coupon_percent,
                "commission_percent": rule.commission_percent,
                "not_included_price": rule.not_included_price,
                "is_sale_available": rule.is_sale_available,
                "choices": {cid: o.to_dict() for cid, o in (rule.choices_pricing or {}).items()},
            })
        return history

    def delete_rule(self, rule_id: int) -> bool:
        """删除价格规则记录"""
        row = self.db.query(DynamicPricing).filter(DynamicPricing.id == rule_id).first()
        if not row:
            raise ValueError("价格规则不存在")

        self.db.delete(row)
        self.db.commit()
        logger.info(f"Deleted pricing rule {rule_id}")
        return True
