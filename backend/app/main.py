"""
TourOps 动态定价服务入口
渠道价格规则的维护与日历/列表/预览计算
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.database import init_db
from app.routers import channels, prices

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 启动时初始化数据库
    init_db()
    logger.info(f"{settings.APP_NAME} started (self channel prefix: {settings.SELF_CHANNEL_PREFIX})")

    yield


# 创建应用
app = FastAPI(
    title=settings.APP_NAME,
    description="旅游产品多渠道动态定价服务",
    version="0.1.0",
    lifespan=lifespan
)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 生产环境应限制具体域名
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册路由
app.include_router(channels.router)
app.include_router(prices.router)


@app.get("/")
def root():
    """根路径"""
    return {
        "name": settings.APP_NAME,
        "version": "0.1.0",
    }


@app.get("/health")
def health_check():
    """健康检查"""
    return {"status": "healthy"}
