"""
优惠券Repository数据库操作测试 - 使用内存SQLite数据库
"""

import pytest
from sqlalchemy.exc import IntegrityError

from app.models.coupon import CouponUpdate
from app.repositories.coupon_repository import CouponRepository


@pytest.mark.asyncio
class TestCouponRepository:
    """优惠券Repository数据库操作测试类"""

    async def test_create_and_get_coupon(self, db_session, coupon_create):
        """测试创建和获取优惠券，代码不区分大小写"""
        coupon_repo = CouponRepository(db_session)

        db_coupon = await coupon_repo.create(coupon_create)

        assert db_coupon.coupon_id.startswith("CPN_")
        assert db_coupon.code == "WELCOME100"
        assert db_coupon.used_count == 0

        retrieved = await coupon_repo.get_by_code(" Welcome100 ")
        assert retrieved is not None
        assert retrieved.coupon_id == db_coupon.coupon_id

        coupon = coupon_repo.to_model(retrieved)
        assert coupon.discount_value == 10000
        assert coupon.start_date.tzinfo is not None

    async def test_get_nonexistent_coupon(self, db_session):
        """测试获取不存在的优惠券"""
        coupon_repo = CouponRepository(db_session)
        assert await coupon_repo.get_by_code("NONEXISTENT") is None
        assert await coupon_repo.get_by_coupon_id("CPN_NONE") is None

    async def test_increment_usage_stops_at_global_limit(self, db_session, coupon_create):
        """测试带条件的自增在达到总次数上限后失败"""
        coupon_repo = CouponRepository(db_session)
        db_coupon = await coupon_repo.create(coupon_create)

        assert await coupon_repo.increment_usage(db_coupon.coupon_id) is True
        assert await coupon_repo.increment_usage(db_coupon.coupon_id) is True
        assert await coupon_repo.increment_usage(db_coupon.coupon_id) is False

        await db_session.refresh(db_coupon)
        assert db_coupon.used_count == 2

    async def test_increment_usage_rejects_inactive(self, db_session, coupon_create):
        """停用的优惠券不能再计数"""
        coupon_repo = CouponRepository(db_session)
        db_coupon = await coupon_repo.create(coupon_create)

        await coupon_repo.update(db_coupon.coupon_id, CouponUpdate(is_active=False))

        assert await coupon_repo.increment_usage(db_coupon.coupon_id) is False

    async def test_record_usage_unique_per_order(self, db_session, coupon_create):
        """同一订单不能重复记录同一优惠券"""
        coupon_repo = CouponRepository(db_session)
        db_coupon = await coupon_repo.create(coupon_create)

        await coupon_repo.record_usage(db_coupon.coupon_id, "user_1", "ORDER_1", 10000)
        assert await coupon_repo.get_user_coupon_usage_count("user_1", db_coupon.coupon_id) == 1

        with pytest.raises(IntegrityError):
            await coupon_repo.record_usage(db_coupon.coupon_id, "user_1", "ORDER_1", 10000)

        await db_session.rollback()

    async def test_usage_count_per_user(self, db_session, coupon_create):
        """使用次数按用户统计"""
        coupon_repo = CouponRepository(db_session)
        db_coupon = await coupon_repo.create(coupon_create)

        await coupon_repo.record_usage(db_coupon.coupon_id, "user_1", "ORDER_1", 10000)
        await coupon_repo.record_usage(db_coupon.coupon_id, "user_1", "ORDER_2", 10000)
        await coupon_repo.record_usage(db_coupon.coupon_id, "user_2", "ORDER_3", 10000)

        assert await coupon_repo.get_user_coupon_usage_count("user_1", db_coupon.coupon_id) == 2
        assert await coupon_repo.get_user_coupon_usage_count("user_2", db_coupon.coupon_id) == 1
        assert await coupon_repo.get_user_coupon_usage_count("user_3", db_coupon.coupon_id) == 0

    async def test_update_coupon(self, db_session, coupon_create):
        """只更新传入的字段"""
        coupon_repo = CouponRepository(db_session)
        db_coupon = await coupon_repo.create(coupon_create)

        updated = await coupon_repo.update(
            db_coupon.coupon_id,
            CouponUpdate(discount_value=15000, description="Updated")
        )

        assert updated.discount_value == 15000
        assert updated.description == "Updated"
        assert updated.min_order_amount == 50000

    async def test_list_coupons_active_only(self, db_session, coupon_create):
        """测试获取启用的优惠券列表"""
        coupon_repo = CouponRepository(db_session)
        first = await coupon_repo.create(coupon_create)
        await coupon_repo.create(coupon_create.model_copy(update={"code": "SECOND"}))
        await coupon_repo.update(first.coupon_id, CouponUpdate(is_active=False))

        all_coupons = await coupon_repo.list_coupons()
        active_coupons = await coupon_repo.list_coupons(active_only=True)

        assert len(all_coupons) == 2
        assert [coupon.code for coupon in active_coupons] == ["SECOND"]

    async def test_coupon_stats(self, db_session, coupon_create):
        """测试优惠券统计"""
        coupon_repo = CouponRepository(db_session)
        db_coupon = await coupon_repo.create(coupon_create)

        for user_id, order_id in [("user_1", "ORDER_1"), ("user_2", "ORDER_2")]:
            await coupon_repo.increment_usage(db_coupon.coupon_id)
            await coupon_repo.record_usage(db_coupon.coupon_id, user_id, order_id, 10000)
        await db_session.refresh(db_coupon)

        stats = await coupon_repo.get_coupon_stats(db_coupon.coupon_id)

        assert stats["used_count"] == 2
        assert stats["remaining_count"] == 0
        assert stats["total_usage"] == 2
        assert stats["total_discount"] == 20000
        assert stats["unique_users"] == 2

    async def test_stats_for_missing_coupon(self, db_session):
        coupon_repo = CouponRepository(db_session)
        assert await coupon_repo.get_coupon_stats("CPN_NONE") == {}
