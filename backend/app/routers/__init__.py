# API Routers
from app.routers import channels, prices

__all__ = ['channels', 'prices']
