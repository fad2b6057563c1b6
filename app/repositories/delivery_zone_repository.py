"""
配送区域数据库操作层
"""

import uuid
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.delivery import Coordinate, DeliveryZone, DeliveryZoneCreate
from app.models.database.delivery_zone_db import DeliveryZoneDB


class DeliveryZoneRepository:
    """配送区域数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_zone_id(self, zone_id: str) -> Optional[DeliveryZoneDB]:
        """根据区域ID获取配送区域"""
        result = await self.db.execute(
            select(DeliveryZoneDB).where(DeliveryZoneDB.zone_id == zone_id)
        )
        return result.scalar_one_or_none()

    async def get_active_zones(self) -> List[DeliveryZoneDB]:
        """获取启用的配送区域，按匹配顺序排列"""
        result = await self.db.execute(
            select(DeliveryZoneDB)
            .where(DeliveryZoneDB.is_active.is_(True))
            .order_by(DeliveryZoneDB.sort_order, DeliveryZoneDB.created_at)
        )
        return list(result.scalars().all())

    async def create(self, zone_data: DeliveryZoneCreate) -> DeliveryZoneDB:
        """创建配送区域"""
        db_zone = DeliveryZoneDB(
            zone_id=f"ZONE_{uuid.uuid4().hex[:12].upper()}",
            is_active=True,
            **zone_data.model_dump()
        )
        self.db.add(db_zone)
        await self.db.flush()
        return db_zone

    async def set_active(self, zone_id: str, is_active: bool) -> bool:
        """启用或停用配送区域"""
        result = await self.db.execute(
            update(DeliveryZoneDB)
            .where(DeliveryZoneDB.zone_id == zone_id)
            .values(is_active=is_active)
        )
        return result.rowcount > 0

    def to_model(self, db_zone: DeliveryZoneDB) -> DeliveryZone:
        """转换为Pydantic模型"""
        return DeliveryZone(
            zone_id=db_zone.zone_id,
            name=db_zone.name,
            center=Coordinate(latitude=db_zone.latitude, longitude=db_zone.longitude),
            radius_km=db_zone.radius_km,
            free_delivery=db_zone.free_delivery,
            delivery_fee=db_zone.delivery_fee,
            estimated_minutes=db_zone.estimated_minutes
        )
