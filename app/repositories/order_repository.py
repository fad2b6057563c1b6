"""
订单数据库操作层
"""

from typing import List, Optional
from datetime import datetime, timezone

from sqlalchemy import select, and_, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.order import Order
from app.models.database.order_db import OrderDB


class OrderRepository:
    """订单数据库操作层"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_order_id(self, order_id: str) -> Optional[OrderDB]:
        """根据订单ID获取订单"""
        result = await self.db.execute(
            select(OrderDB).where(OrderDB.order_id == order_id)
        )
        return result.scalar_one_or_none()

    async def get_user_orders(
        self,
        user_id: str,
        limit: int = 20,
        offset: int = 0,
        status_filter: Optional[str] = None
    ) -> List[OrderDB]:
        """获取用户订单列表"""
        conditions = [OrderDB.user_id == user_id]

        if status_filter:
            conditions.append(OrderDB.status == status_filter)

        query = select(OrderDB).where(
            and_(*conditions)
        ).order_by(desc(OrderDB.created_at)).limit(limit).offset(offset)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create(self, order: Order) -> OrderDB:
        """创建订单"""
        db_order = OrderDB(
            order_id=order.order_id,
            user_id=order.user_id,
            subtotal=order.subtotal,
            coupon_code=order.coupon_code,
            coupon_discount=order.coupon_discount,
            delivery_fee=order.delivery_fee,
            total=order.total,
            latitude=order.latitude,
            longitude=order.longitude,
            distance_km=order.distance_km,
            status=order.status.value,
            created_at=order.created_at or datetime.now(timezone.utc)
        )
        self.db.add(db_order)
        await self.db.flush()
        return db_order

    def to_model(self, db_order: OrderDB) -> Order:
        """转换为Pydantic模型"""
        return Order(
            order_id=db_order.order_id,
            user_id=db_order.user_id,
            subtotal=db_order.subtotal,
            coupon_code=db_order.coupon_code,
            coupon_discount=db_order.coupon_discount or 0,
            delivery_fee=db_order.delivery_fee or 0,
            distance_km=db_order.distance_km,
            total=db_order.total,
            latitude=db_order.latitude,
            longitude=db_order.longitude,
            status=db_order.status,
            created_at=db_order.created_at
        )
