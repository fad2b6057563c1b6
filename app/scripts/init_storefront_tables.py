"""
店铺数据库表初始化脚本

运行方式:
python -m app.scripts.init_storefront_tables
"""

import asyncio
import logging

from app.core.config import settings
from app.core.database import close_database, create_tables, init_database, session_scope
from app.config.reward_options import get_default_spin_rewards
from app.models.delivery import DeliveryZoneCreate
from app.repositories.delivery_zone_repository import DeliveryZoneRepository
from app.repositories.spin_repository import SpinRepository

logger = logging.getLogger(__name__)

ADDITIONAL_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_coupons_validity ON coupons(start_date, end_date);",
    "CREATE INDEX IF NOT EXISTS idx_coupon_usage_user_coupon ON coupon_usage(user_id, coupon_id);",
    "CREATE INDEX IF NOT EXISTS idx_orders_user_status ON orders(user_id, status);",
    "CREATE INDEX IF NOT EXISTS idx_reward_transactions_user_time ON reward_transactions(user_id, created_at);",
    "CREATE INDEX IF NOT EXISTS idx_delivery_zones_active_order ON delivery_zones(is_active, sort_order);",
]

LOCAL_AREA_RADIUS_KM = 5.0
LOCAL_AREA_FEE = 8000


def default_zones() -> list:
    """门店周边的免费区域和收费区域"""
    return [
        DeliveryZoneCreate(
            name=f"{settings.store_name} - Free Delivery",
            latitude=settings.store_latitude,
            longitude=settings.store_longitude,
            radius_km=settings.free_delivery_radius_km,
            free_delivery=True,
            estimated_minutes=30,
            sort_order=0
        ),
        DeliveryZoneCreate(
            name=f"{settings.store_name} - Local Area",
            latitude=settings.store_latitude,
            longitude=settings.store_longitude,
            radius_km=LOCAL_AREA_RADIUS_KM,
            delivery_fee=LOCAL_AREA_FEE,
            estimated_minutes=60,
            sort_order=1
        ),
    ]


async def seed_initial_data(spin_repo: SpinRepository, zone_repo: DeliveryZoneRepository) -> None:
    """写入默认转盘奖品和配送区域，已有数据时跳过"""
    if not await spin_repo.get_active_rewards():
        rewards = await spin_repo.create_rewards(get_default_spin_rewards())
        logger.info(f"写入默认转盘奖品 {len(rewards)} 个")

    if not await zone_repo.get_active_zones():
        for zone_data in default_zones():
            await zone_repo.create(zone_data)
        logger.info("写入默认配送区域")


async def create_storefront_tables():
    """创建所有数据表、索引并写入初始数据"""
    try:
        await init_database()

        logger.info("开始创建数据表...")
        await create_tables(ADDITIONAL_INDEXES)
        logger.info("数据表和索引创建成功")

        async with session_scope() as session:
            await seed_initial_data(SpinRepository(session), DeliveryZoneRepository(session))

        logger.info("数据库初始化完成")

    except Exception as e:
        logger.error(f"创建数据表失败: {e}")
        raise
    finally:
        await close_database()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    asyncio.run(create_storefront_tables())
