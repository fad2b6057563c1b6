"""
优惠券数据库操作层
"""

import uuid
from typing import List, Optional, Dict, Any
from datetime import datetime, timezone

from sqlalchemy import select, update, and_, or_, desc, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.coupon import Coupon, CouponCreate, CouponUpdate, normalize_coupon_code
from app.models.database.coupon_db import CouponDB, CouponUsageDB


class CouponRepository:
    """优惠券数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_code(self, code: str) -> Optional[CouponDB]:
        """根据优惠券代码获取优惠券(不区分大小写)"""
        result = await self.db.execute(
            select(CouponDB).where(CouponDB.code == normalize_coupon_code(code))
        )
        return result.scalar_one_or_none()

    async def get_by_coupon_id(self, coupon_id: str) -> Optional[CouponDB]:
        """根据优惠券ID获取优惠券"""
        result = await self.db.execute(
            select(CouponDB).where(CouponDB.coupon_id == coupon_id)
        )
        return result.scalar_one_or_none()

    async def list_coupons(
        self,
        active_only: bool = False,
        limit: int = 50,
        offset: int = 0
    ) -> List[CouponDB]:
        """获取优惠券列表"""
        query = select(CouponDB)
        if active_only:
            query = query.where(CouponDB.is_active.is_(True))
        query = query.order_by(desc(CouponDB.created_at)).limit(limit).offset(offset)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create(self, coupon_data: CouponCreate) -> CouponDB:
        """创建优惠券"""
        values = coupon_data.model_dump()
        values["discount_type"] = coupon_data.discount_type.value
        now = datetime.now(timezone.utc)
        db_coupon = CouponDB(
            coupon_id=f"CPN_{uuid.uuid4().hex[:12].upper()}",
            used_count=0,
            is_active=True,
            created_at=now,
            updated_at=now,
            **values
        )
        self.db.add(db_coupon)
        await self.db.flush()
        return db_coupon

    async def update(self, coupon_id: str, coupon_data: CouponUpdate) -> Optional[CouponDB]:
        """更新优惠券，只更新传入的字段"""
        values = coupon_data.model_dump(exclude_unset=True)
        if values:
            await self.db.execute(
                update(CouponDB)
                .where(CouponDB.coupon_id == coupon_id)
                .values(**values)
            )
        db_coupon = await self.get_by_coupon_id(coupon_id)
        if db_coupon is not None:
            await self.db.refresh(db_coupon)
        return db_coupon

    async def get_user_coupon_usage_count(self, user_id: str, coupon_id: str) -> int:
        """获取用户对特定优惠券的使用次数"""
        result = await self.db.execute(
            select(func.count(CouponUsageDB.usage_id)).where(
                and_(
                    CouponUsageDB.user_id == user_id,
                    CouponUsageDB.coupon_id == coupon_id
                )
            )
        )
        return result.scalar() or 0

    async def increment_usage(self, coupon_id: str) -> bool:
        """
        带条件的使用次数自增
        只有在启用且未达到总次数上限时更新成功，并发兑换时由行锁串行化
        """
        result = await self.db.execute(
            update(CouponDB)
            .where(
                and_(
                    CouponDB.coupon_id == coupon_id,
                    CouponDB.is_active.is_(True),
                    or_(
                        CouponDB.max_uses_global.is_(None),
                        CouponDB.used_count < CouponDB.max_uses_global
                    )
                )
            )
            .values(used_count=CouponDB.used_count + 1)
        )
        return result.rowcount == 1

    async def record_usage(
        self,
        coupon_id: str,
        user_id: str,
        order_id: str,
        discount_amount: int
    ) -> CouponUsageDB:
        """记录优惠券使用，(coupon_id, order_id) 唯一"""
        usage = CouponUsageDB(
            usage_id=str(uuid.uuid4()),
            coupon_id=coupon_id,
            user_id=user_id,
            order_id=order_id,
            discount_amount=discount_amount,
            used_at=datetime.now(timezone.utc)
        )
        self.db.add(usage)
        await self.db.flush()
        return usage

    async def get_coupon_stats(self, coupon_id: str) -> Dict[str, Any]:
        """获取优惠券统计信息"""
        coupon = await self.get_by_coupon_id(coupon_id)
        if not coupon:
            return {}

        usage_stats = await self.db.execute(
            select(
                func.count(CouponUsageDB.usage_id).label("total_usage"),
                func.sum(CouponUsageDB.discount_amount).label("total_discount"),
                func.count(func.distinct(CouponUsageDB.user_id)).label("unique_users")
            ).where(CouponUsageDB.coupon_id == coupon_id)
        )
        stats_row = usage_stats.fetchone()

        return {
            "coupon_id": coupon.coupon_id,
            "code": coupon.code,
            "is_active": coupon.is_active,
            "max_uses_global": coupon.max_uses_global,
            "used_count": coupon.used_count,
            "remaining_count": (
                coupon.max_uses_global - coupon.used_count
                if coupon.max_uses_global is not None else None
            ),
            "total_usage": stats_row.total_usage or 0,
            "total_discount": int(stats_row.total_discount or 0),
            "unique_users": stats_row.unique_users or 0
        }

    def to_model(self, db_coupon: CouponDB) -> Coupon:
        """转换为Pydantic模型"""
        return Coupon(
            coupon_id=db_coupon.coupon_id,
            code=db_coupon.code,
            discount_type=db_coupon.discount_type,
            discount_value=db_coupon.discount_value,
            min_order_amount=db_coupon.min_order_amount,
            max_uses_global=db_coupon.max_uses_global,
            max_uses_per_user=db_coupon.max_uses_per_user,
            used_count=db_coupon.used_count or 0,
            start_date=db_coupon.start_date,
            end_date=db_coupon.end_date,
            is_active=db_coupon.is_active,
            description=db_coupon.description,
            created_at=db_coupon.created_at,
            updated_at=db_coupon.updated_at
        )
