"""
动态价格路由
"""
from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.schemas import (
    PricingRuleBatchCreate, BatchSaveResult, PricingRuleResponse,
    PricePreviewRequest, PricePreviewResponse, CalendarResponse, PriceListRow,
    PricingHistoryItem, ProductChoiceResponse
)
from app.services.price_service import DynamicPricingService

router = APIRouter(prefix="/prices", tags=["动态价格"])


@router.get("/rules", response_model=List[PricingRuleResponse])
def list_rules(
    product_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    channel_id: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """获取价格规则记录"""
    service = DynamicPricingService(db)
    return service.get_rule_records(product_id, start_date, end_date, channel_id)


@router.post("/rules/batch", response_model=BatchSaveResult)
def save_rules(
    data: PricingRuleBatchCreate,
    db: Session = Depends(get_db)
):
    """批量保存价格规则"""
    service = DynamicPricingService(db)
    try:
        return service.save_rules(data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/rules/{rule_id}")
def delete_rule(
    rule_id: int,
    db: Session = Depends(get_db)
):
    """删除价格规则"""
    service = DynamicPricingService(db)
    try:
        service.delete_rule(rule_id)
        return {"message": "价格规则已删除"}
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/calendar", response_model=CalendarResponse)
def get_calendar(
    product_id: str,
    year: int = Query(..., ge=1, le=9999),
    month: int = Query(..., ge=1, le=12),
    channel_id: Optional[str] = None,
    channel_type: Optional[str] = None,
    choice_id: Optional[str] = None,
    category: str = "adult",
    db: Session = Depends(get_db)
):
    """获取价格日历"""
    service = DynamicPricingService(db)
    try:
        return service.get_calendar(
            product_id, year, month,
            channel_id=channel_id, channel_type=channel_type,
            choice_id=choice_id, category=category
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/list", response_model=List[PriceListRow])
def get_price_list(
    product_id: str,
    start_date: date,
    end_date: date,
    channel_id: Optional[str] = None,
    channel_type: Optional[str] = None,
    choice_id: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """获取价格列表"""
    service = DynamicPricingService(db)
    try:
        return service.get_price_list(
            product_id, start_date, end_date,
            channel_id=channel_id, channel_type=channel_type, choice_id=choice_id
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/preview", response_model=PricePreviewResponse)
def preview_prices(
    data: PricePreviewRequest,
    db: Session = Depends(get_db)
):
    """保存前价格预览"""
    service = DynamicPricingService(db)
    try:
        return service.preview(data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/history", response_model=List[PricingHistoryItem])
def get_history(
    product_id: str,
    channel_id: str,
    target_date: str = Query(..., alias="date"),
    db: Session = Depends(get_db)
):
    """获取价格变更历史"""
    service = DynamicPricingService(db)
    try:
        return service.get_history(product_id, target_date, channel_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/choices", response_model=List[ProductChoiceResponse])
def list_choices(
    product_id: str,
    db: Session = Depends(get_db)
):
    """获取产品选项目录"""
    service = DynamicPricingService(db)
    return service.get_choices(product_id)
