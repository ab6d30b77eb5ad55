# Business Services
from app.services.channel_service import ChannelService
from app.services.price_service import DynamicPricingService

__all__ = ['ChannelService', 'DynamicPricingService']
