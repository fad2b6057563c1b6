"""
路由依赖注入
同一请求内的仓储共用 get_db_session 提供的会话，即共用一个事务
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.redis import otp_store
from app.repositories.coupon_repository import CouponRepository
from app.repositories.delivery_zone_repository import DeliveryZoneRepository
from app.repositories.order_repository import OrderRepository
from app.repositories.reward_repository import RewardRepository
from app.repositories.spin_repository import SpinRepository
from app.services.coupon_service import CouponService
from app.services.delivery_service import DeliveryService
from app.services.order_service import OrderService
from app.services.otp_service import OtpService
from app.services.reward_service import RewardService
from app.services.spin_service import SpinService


def get_delivery_service(db: AsyncSession = Depends(get_db_session)) -> DeliveryService:
    return DeliveryService(DeliveryZoneRepository(db))


def get_coupon_service(db: AsyncSession = Depends(get_db_session)) -> CouponService:
    return CouponService(CouponRepository(db))


def get_reward_service(db: AsyncSession = Depends(get_db_session)) -> RewardService:
    return RewardService(RewardRepository(db))


def get_spin_service(
    db: AsyncSession = Depends(get_db_session),
    coupon_service: CouponService = Depends(get_coupon_service)
) -> SpinService:
    return SpinService(SpinRepository(db), RewardRepository(db), coupon_service)


def get_order_service(
    db: AsyncSession = Depends(get_db_session),
    delivery_service: DeliveryService = Depends(get_delivery_service),
    coupon_service: CouponService = Depends(get_coupon_service),
    reward_service: RewardService = Depends(get_reward_service)
) -> OrderService:
    return OrderService(OrderRepository(db), delivery_service, coupon_service, reward_service)


def get_otp_service() -> OtpService:
    return OtpService(otp_store)
