"""
渠道服务 - 本体操作层
管理 Channel 对象，并向定价引擎提供只读的渠道策略
"""
from typing import Dict, List, Optional
import logging
from sqlalchemy.orm import Session
from app.models.ontology import Channel
from app.models.schemas import ChannelCreate, ChannelUpdate
from core.pricing import ChannelPolicy, coerce_channel_policy

logger = logging.getLogger(__name__)


class ChannelService:
    """渠道服务"""

    def __init__(self, db: Session):
        self.db = db
        # 单次调用内缓存渠道策略
        self._policies: Optional[Dict[str, ChannelPolicy]] = None

    def get_channels(self, is_active: Optional[bool] = None) -> List[Channel]:
        """获取渠道列表"""
        query = self.db.query(Channel)
        if is_active is not None:
            query = query.filter(Channel.is_active == is_active)
        return query.order_by(Channel.id).all()

    def get_channel(self, channel_id: str) -> Optional[Channel]:
        """获取单个渠道"""
        return self.db.query(Channel).filter(Channel.id == channel_id).first()

    def create_channel(self, data: ChannelCreate) -> Channel:
        """创建渠道"""
        if self.get_channel(data.id):
            raise ValueError(f"渠道 {data.id} 已存在")

        channel = Channel(**data.model_dump())
        self.db.add(channel)
        self.db.commit()
        self.db.refresh(channel)
        self._policies = None
        logger.info(f"Channel created: {channel.id} ({channel.type.value})")
        return channel

    def update_channel(self, channel_id: str, data: ChannelUpdate) -> Channel:
        """更新渠道"""
        channel = self.get_channel(channel_id)
        if not channel:
            raise ValueError("渠道不存在")

        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(channel, key, value)

        self.db.commit()
        self.db.refresh(channel)
        self._policies = None
        return channel

    # ============== 渠道策略 ==============

    def get_policies(self) -> Dict[str, ChannelPolicy]:
        """所有渠道的定价策略（按渠道ID）"""
        if self._policies is None:
            self._policies = {
                channel.id: coerce_channel_policy(channel)
                for channel in self.db.query(Channel).all()
            }
        return self._policies

    def get_policy(self, channel_id: str) -> ChannelPolicy:
        """获取渠道定价策略"""
        policy = self.get_policies().get(channel_id)
        if policy is None:
            raise ValueError(f"渠道 {channel_id} 不存在")
        return policy
