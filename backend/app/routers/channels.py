"""
渠道管理路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.schemas import ChannelCreate, ChannelUpdate, ChannelResponse
from app.services.channel_service import ChannelService

router = APIRouter(prefix="/channels", tags=["渠道管理"])


@router.get("", response_model=List[ChannelResponse])
def list_channels(
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db)
):
    """获取渠道列表"""
    service = ChannelService(db)
    return service.get_channels(is_active)


@router.get("/{channel_id}", response_model=ChannelResponse)
def get_channel(
    channel_id: str,
    db: Session = Depends(get_db)
):
    """获取渠道详情"""
    service = ChannelService(db)
    channel = service.get_channel(channel_id)
    if not channel:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="渠道不存在")
    return channel


@router.post("", response_model=ChannelResponse)
def create_channel(
    data: ChannelCreate,
    db: Session = Depends(get_db)
):
    """创建渠道"""
    service = ChannelService(db)
    try:
        return service.create_channel(data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/{channel_id}", response_model=ChannelResponse)
def update_channel(
    channel_id: str,
    data: ChannelUpdate,
    db: Session = Depends(get_db)
):
    """更新渠道"""
    service = ChannelService(db)
    try:
        return service.update_channel(channel_id, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
