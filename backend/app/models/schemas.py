"""
Pydantic 模式定义
用于 API 请求/响应验证
"""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, ConfigDict, model_validator
from app.models.ontology import ChannelTypeEnum, NotIncludedTypeEnum, PricingTypeEnum


# ============== 渠道 Schemas ==============

class ChannelBase(BaseModel):
    name: str = Field(..., max_length=100)
    type: ChannelTypeEnum = ChannelTypeEnum.SELF
    not_included_type: NotIncludedTypeEnum = NotIncludedTypeEnum.NONE
    not_included_price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    commission_base_price_only: bool = False
    pricing_type: PricingTypeEnum = PricingTypeEnum.SEPARATE


class ChannelCreate(ChannelBase):
    id: str = Field(..., min_length=1, max_length=50)


class ChannelUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    type: Optional[ChannelTypeEnum] = None
    not_included_type: Optional[NotIncludedTypeEnum] = None
    not_included_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    commission_base_price_only: Optional[bool] = None
    pricing_type: Optional[PricingTypeEnum] = None
    is_active: Optional[bool] = None


class ChannelResponse(ChannelBase):
    id: str
    is_active: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ============== 价格规则 Schemas ==============

class ChoicePriceInput(BaseModel):
    adult_price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    child_price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    infant_price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    ota_sale_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    not_included_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    is_sale_available: bool = True


class PricingValues(BaseModel):
    """一次保存中所有日期 × 渠道共用的价格设置"""
    adult_price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    child_price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    infant_price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    markup_amount: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    markup_percent: Decimal = Field(default=Decimal("0"), ge=-100, le=Decimal("999.99"), max_digits=5, decimal_places=2)
    coupon_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100, max_digits=5, decimal_places=2)
    commission_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100, max_digits=5, decimal_places=2)
    not_included_price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    is_sale_available: bool = True
    choices_pricing: Optional[Dict[str, ChoicePriceInput]] = None


class PricingRuleBatchCreate(PricingValues):
    """批量保存：显式日期列表，或起止日期 + 星期筛选"""
    product_id: str = Field(..., min_length=1, max_length=50)
    channel_ids: List[str] = Field(..., min_length=1)
    dates: Optional[List[date]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    weekdays: Optional[List[int]] = None  # 0=周一 ... 6=周日

    @model_validator(mode="after")
    def check_dates(self):
        if not self.dates and not (self.start_date and self.end_date):
            raise ValueError("必须提供 dates 或 start_date/end_date")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("结束日期不能早于开始日期")
        if self.weekdays and any(d < 0 or d > 6 for d in self.weekdays):
            raise ValueError("weekdays 取值范围为 0-6")
        return self


class BatchSaveResult(BaseModel):
    total: int
    created: int
    rule_ids: List[int]


class PricingRuleResponse(BaseModel):
    id: int
    product_id: str
    channel_id: str
    date: str
    normalized_date: str
    adult_price: Decimal
    child_price: Decimal
    infant_price: Decimal
    markup_amount: Decimal
    markup_percent: Decimal
    coupon_percent: Decimal
    commission_percent: Decimal
    not_included_price: Decimal
    is_sale_available: bool
    choices_pricing: Optional[Dict[str, Any]] = None
    updated_at: Optional[datetime] = None


# ============== 价格计算 Schemas ==============

class PriceBreakdownResponse(BaseModel):
    category: str
    max_sale_price: Decimal
    discount_price: Decimal
    net_price: Decimal
    base_price: Decimal
    ota_sale_price: Decimal
    choice_price: Decimal
    not_included_price: Decimal


class PricePreviewRequest(PricingValues):
    """保存前预览：使用与日历/列表相同的计算路径"""
    channel_id: str = Field(..., min_length=1)
    choice_id: Optional[str] = None


class PricePreviewResponse(BaseModel):
    channel_id: str
    choice_id: Optional[str] = None
    prices: Dict[str, PriceBreakdownResponse]
    choices: Dict[str, Dict[str, PriceBreakdownResponse]] = {}


class ChoiceOverrideView(BaseModel):
    choice_id: str
    choice_name: str
    source_rule_id: str
    updated_at: str
    adult_price: Decimal
    child_price: Decimal
    infant_price: Decimal
    ota_sale_price: Optional[Decimal] = None
    not_included_price: Optional[Decimal] = None
    is_sale_available: bool = True


class CalendarCell(BaseModel):
    date: str
    rule_count: int
    has_price: bool
    rule_id: Optional[str] = None
    rule_channel_id: Optional[str] = None
    is_sale_available: Optional[bool] = None
    prices: Optional[PriceBreakdownResponse] = None


class CalendarResponse(BaseModel):
    product_id: str
    year: int
    month: int
    channel_id: Optional[str] = None
    choice_id: Optional[str] = None
    cells: List[CalendarCell]


class PriceListRow(BaseModel):
    date: str
    rule_count: int
    rule_id: Optional[str] = None
    rule_channel_id: Optional[str] = None
    base_rule_id: Optional[str] = None
    is_sale_available: Optional[bool] = None
    prices: Optional[Dict[str, PriceBreakdownResponse]] = None
    choices: List[ChoiceOverrideView] = []


class PricingHistoryItem(BaseModel):
    updated_at: str
    rule_ids: List[str]
    adult_price: Decimal
    child_price: Decimal
    infant_price: Decimal
    markup_amount: Decimal
    markup_percent: Decimal
    coupon_percent: Decimal
    commission_percent: Decimal
    not_included_price: Decimal
    is_sale_available: bool
    choices: Dict[str, Dict[str, Any]] = {}


class ProductChoiceResponse(BaseModel):
    id: str
    product_id: str
    combination_key: Optional[str] = None
    name: str
    name_ko: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)
