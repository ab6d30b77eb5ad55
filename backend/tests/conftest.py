"""
Pytest 配置和共享 fixtures
"""
import json
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from datetime import datetime
from decimal import Decimal
from fastapi.testclient import TestClient

from app.database import Base, get_db
from app.models import ontology  # noqa
from app.models.ontology import (
    Channel, ChannelTypeEnum, NotIncludedTypeEnum, DynamicPricing, ProductChoice
)
from app.main import app


@pytest.fixture(scope="function")
def db_engine():
    """创建内存数据库引擎"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """创建数据库会话"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """创建测试客户端"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============== 实体相关 Fixtures ==============

@pytest.fixture
def self_channel(db_session):
    """创建自营渠道"""
    channel = Channel(id="B001", name="官网直销", type=ChannelTypeEnum.SELF)
    db_session.add(channel)
    db_session.commit()
    db_session.refresh(channel)
    return channel


@pytest.fixture
def ota_channel(db_session):
    """创建 OTA 渠道（佣金仅按售价、不含费用 + 选项价格回加）"""
    channel = Channel(
        id="M001",
        name="Klook",
        type=ChannelTypeEnum.OTA,
        not_included_type=NotIncludedTypeEnum.AMOUNT_AND_CHOICE,
        not_included_price=Decimal("0"),
        commission_base_price_only=True,
    )
    db_session.add(channel)
    db_session.commit()
    db_session.refresh(channel)
    return channel


@pytest.fixture
def make_rule(db_session):
    """创建价格规则记录的工厂"""
    def _make_rule(channel_id="B001", rule_date="2024-07-01", product_id="P1",
                   updated_at=datetime(2024, 6, 1, 9, 0), choices=None, **values):
        row = DynamicPricing(
            product_id=product_id,
            channel_id=channel_id,
            date=rule_date,
            choices_pricing=json.dumps(choices) if isinstance(choices, dict) else choices,
            created_at=updated_at,
            updated_at=updated_at,
            **values,
        )
        db_session.add(row)
        db_session.commit()
        db_session.refresh(row)
        return row
    return _make_rule


@pytest.fixture
def sample_choices(db_session):
    """创建产品选项目录"""
    choices = [
        ProductChoice(id="c-std", product_id="P1", combination_key="lang_en+pickup_yes", name="英文团 含接送"),
        ProductChoice(id="c-vip", product_id="P1", combination_key="lang_en+pickup_no", name="英文团 不含接送"),
    ]
    db_session.add_all(choices)
    db_session.commit()
    return choices
