"""
本体对象定义 (Ontology Objects)
渠道、动态价格规则、产品选项目录
价格规则只追加：每次保存插入新记录，最新 updated_at 的记录胜出
"""
from datetime import datetime, UTC
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, DateTime, Text, Boolean, Numeric, Enum as SQLEnum, Index
)
from app.database import Base


def utcnow() -> datetime:
    """当前 UTC 时间（无时区，便于 SQLite 存储）"""
    return datetime.now(UTC).replace(tzinfo=None)


# ============== 枚举定义 ==============

class ChannelTypeEnum(str, Enum):
    """渠道类型"""
    SELF = "self"          # 自营
    OTA = "ota"            # 第三方平台
    PARTNER = "partner"    # 合作代理


class NotIncludedTypeEnum(str, Enum):
    """不含费用处理方式"""
    NONE = "none"                            # 不单独计算
    AMOUNT_ONLY = "amount_only"              # 仅金额
    AMOUNT_AND_CHOICE = "amount_and_choice"  # 金额 + 选项价格


class PricingTypeEnum(str, Enum):
    """渠道价格展示方式"""
    SEPARATE = "separate"  # 成人/儿童/婴儿分开定价
    SINGLE = "single"      # 单一价格


# ============== 本体对象 ==============

class Channel(Base):
    """
    销售渠道对象
    渠道策略（类型、不含费用、佣金基数）为只读参考数据
    """
    __tablename__ = "channels"

    id = Column(String(50), primary_key=True)                    # 渠道ID（自营渠道以 B 开头）
    name = Column(String(100), nullable=False)                   # 渠道名称
    type = Column(SQLEnum(ChannelTypeEnum), default=ChannelTypeEnum.SELF, nullable=False)
    not_included_type = Column(SQLEnum(NotIncludedTypeEnum), default=NotIncludedTypeEnum.NONE)
    not_included_price = Column(Numeric(10, 2), default=0)       # 渠道级不含费用
    commission_base_price_only = Column(Boolean, default=False)  # 佣金仅按销售价计算
    pricing_type = Column(SQLEnum(PricingTypeEnum), default=PricingTypeEnum.SEPARATE)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class DynamicPricing(Base):
    """
    动态价格规则对象
    每个 (产品, 渠道, 日期) 每次保存一条记录，同一组合可能存在多条
    """
    __tablename__ = "dynamic_pricing"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(String(50), nullable=False, index=True)
    channel_id = Column(String(50), nullable=False)
    date = Column(String(32), nullable=False)                    # 日期（原样保存，读取时规范化）
    adult_price = Column(Numeric(10, 2), default=0)
    child_price = Column(Numeric(10, 2), default=0)
    infant_price = Column(Numeric(10, 2), default=0)
    markup_amount = Column(Numeric(10, 2), default=0)            # 加价金额
    markup_percent = Column(Numeric(5, 2), default=0)            # 加价比例 %
    coupon_percent = Column(Numeric(5, 2), default=0)            # 优惠券折扣 %
    commission_percent = Column(Numeric(5, 2), default=0)        # 渠道佣金 %
    not_included_price = Column(Numeric(10, 2), default=0)       # 不含费用
    is_sale_available = Column(Boolean, default=True)
    choices_pricing = Column(Text)                               # 选项价格(JSON)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        Index("ix_dynamic_pricing_product_channel", "product_id", "channel_id"),
    )


class ProductChoice(Base):
    """
    产品选项目录
    仅用于显示选项名称，价格计算不依赖此表
    """
    __tablename__ = "product_choices"

    id = Column(String(100), primary_key=True)                   # 选项ID（即 choices_pricing 的键）
    product_id = Column(String(50), nullable=False, index=True)
    combination_key = Column(String(200))                        # 组合键（option+option）
    name = Column(String(200), nullable=False)
    name_ko = Column(String(200))
    created_at = Column(DateTime, default=utcnow)
