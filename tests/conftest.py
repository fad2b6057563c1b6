"""
测试配置文件 - pytest fixtures和共用配置
"""

import pytest
import pytest_asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.dependencies import get_otp_service
from app.core.database import Base, get_db_session
from app.core.redis import OtpStore, RedisManager
from app.main import app
from app.models import database  # noqa: F401  注册所有数据表
from app.models.coupon import Coupon, CouponCreate, CouponType
from app.models.delivery import Coordinate, DeliveryFeeConfig, DeliveryZone
from app.services.otp_service import OtpService


@pytest_asyncio.fixture(scope="function")
async def test_db_engine():
    """测试数据库引擎 - 内存SQLite，每个测试独立建表"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_db_engine) -> AsyncSession:
    """测试数据库会话"""
    session_maker = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@pytest.fixture
def store_location():
    """门店坐标"""
    return Coordinate(latitude=-0.570582, longitude=37.315697)


@pytest.fixture
def fee_config():
    """默认配送费策略"""
    return DeliveryFeeConfig(free_radius_km=0.70, base_fee=4000, per_km_fee=1000, rounding=1000)


@pytest.fixture
def concentric_zones(store_location):
    """同一中心的收费区域(5km)和免费区域(1km)，收费区域排在前面"""
    return [
        DeliveryZone(
            zone_id="ZONE_PAID",
            name="Town",
            center=store_location,
            radius_km=5.0,
            free_delivery=False,
            delivery_fee=8000,
            estimated_minutes=60
        ),
        DeliveryZone(
            zone_id="ZONE_FREE",
            name="Nduini",
            center=store_location,
            radius_km=1.0,
            free_delivery=True,
            delivery_fee=0,
            estimated_minutes=30
        ),
    ]


@pytest.fixture
def now():
    return datetime.now(timezone.utc)


@pytest.fixture
def make_coupon(now):
    """构造优惠券的工厂，默认为当前有效的10%折扣券"""

    def _make(**overrides) -> Coupon:
        values = dict(
            coupon_id="CPN_TEST",
            code="SAVE10",
            discount_type=CouponType.PERCENTAGE,
            discount_value=10,
            used_count=0,
            start_date=now - timedelta(days=1),
            end_date=now + timedelta(days=30),
            is_active=True
        )
        values.update(overrides)
        return Coupon(**values)

    return _make


@pytest.fixture
def coupon_create(now):
    """示例优惠券创建数据"""
    return CouponCreate(
        code="welcome100",
        discount_type=CouponType.FIXED,
        discount_value=10000,
        min_order_amount=50000,
        max_uses_global=2,
        max_uses_per_user=1,
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=30),
        description="New customer welcome coupon"
    )


class InMemoryRedisManager(RedisManager):
    """只保存值和过期时间，不做真实过期"""

    def __init__(self):
        super().__init__()
        self.data = {}
        self.expiry = {}

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key, value, expire=None) -> bool:
        self.data[key] = value
        if expire:
            self.expiry[key] = expire
        return True

    async def delete(self, *keys: str) -> bool:
        removed = [self.data.pop(key, None) for key in keys]
        return any(value is not None for value in removed)

    async def incr(self, key: str, expire: Optional[int] = None) -> Optional[int]:
        self.data[key] = int(self.data.get(key, 0)) + 1
        if self.data[key] == 1 and expire:
            self.expiry[key] = expire
        return self.data[key]

    async def ttl(self, key: str) -> int:
        return self.expiry.get(key, -2)


@pytest.fixture
def memory_redis():
    """内存版Redis管理器"""
    return InMemoryRedisManager()


@pytest.fixture
def otp_service(memory_redis):
    return OtpService(OtpStore(memory_redis, ttl_seconds=600), max_requests=3, max_attempts=5)


@pytest_asyncio.fixture
async def api_client(db_session, otp_service):
    """
    HTTP测试客户端
    路由共用测试会话，请求成功提交、失败回滚，与 get_db_session 行为一致；不触发应用生命周期
    """

    async def override_db_session():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_otp_service] = lambda: otp_service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
