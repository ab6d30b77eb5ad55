"""
应用配置
从环境变量 / .env 读取配置
"""
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用设置"""

    # 应用基础配置
    APP_NAME: str = "TourOps Pricing"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # 数据库配置
    DATABASE_URL: str = "sqlite:///./tourops.db"

    # 定价配置
    SELF_CHANNEL_PREFIX: str = "B"          # 自营渠道 ID 前缀
    LIST_MAX_RANGE_DAYS: int = 366          # 列表视图最大日期跨度

    model_config = ConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


# 全局设置实例
settings = Settings()
