"""
优惠券业务服务层
提供优惠券校验定价、兑换记账以及管理相关的业务逻辑处理
"""

import logging
from typing import List, Optional, Dict, Any
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError

from app.api.exceptions import BusinessException, CouponException, ConflictException, NotFoundException
from app.models.coupon import (
    Coupon,
    CouponCreate,
    CouponUpdate,
    CouponValidation,
    CouponType,
    CouponError,
    as_utc,
    normalize_coupon_code
)
from app.repositories.coupon_repository import CouponRepository
from app.services.common_cache import coupon_cache
from app.core.config import settings

logger = logging.getLogger(__name__)


def calculate_discount(coupon: Coupon, order_amount: int) -> int:
    """计算折扣金额，百分比向下取整；固定金额不截断"""
    if coupon.discount_type == CouponType.PERCENTAGE:
        return order_amount * coupon.discount_value // 100
    return coupon.discount_value


def validate_and_price(
    coupon: Coupon,
    order_amount: int,
    user_prior_usage_count: int,
    now: Optional[datetime] = None
) -> CouponValidation:
    """
    校验优惠券是否可用并计算价格

    校验顺序(第一个失败即返回):
        1. 启用且在有效期内, 否则 EXPIRED
        2. 满足最小订单金额, 否则 BELOW_MINIMUM
        3. 未达到总使用次数上限, 否则 GLOBAL_LIMIT_REACHED
        4. 未达到单用户使用次数上限, 否则 USER_LIMIT_REACHED

    折扣超过订单金额时最终金额为0，折扣金额按原值返回。
    只基于快照计算，不保证并发兑换的原子性。
    """
    if now is None:
        now = datetime.now(timezone.utc)

    if not coupon.is_active or now < coupon.start_date or now > coupon.end_date:
        return CouponValidation(is_valid=False, error=CouponError.EXPIRED)

    if coupon.min_order_amount is not None and order_amount < coupon.min_order_amount:
        return CouponValidation(is_valid=False, error=CouponError.BELOW_MINIMUM)

    if coupon.max_uses_global is not None and coupon.used_count >= coupon.max_uses_global:
        return CouponValidation(is_valid=False, error=CouponError.GLOBAL_LIMIT_REACHED)

    if coupon.max_uses_per_user is not None and user_prior_usage_count >= coupon.max_uses_per_user:
        return CouponValidation(is_valid=False, error=CouponError.USER_LIMIT_REACHED)

    discount_amount = calculate_discount(coupon, order_amount)
    return CouponValidation(
        is_valid=True,
        discount_amount=discount_amount,
        final_amount=max(0, order_amount - discount_amount)
    )


class CouponService:
    """优惠券业务服务"""

    def __init__(self, coupon_repo: CouponRepository):
        self.coupon_repo = coupon_repo
        self.cache = coupon_cache
        self.cache_prefix = "detail"
        self.cache_ttl = settings.coupon_cache_ttl

    async def get_coupon_by_code(self, code: str, use_cache: bool = True) -> Optional[Coupon]:
        """根据优惠券代码获取优惠券"""
        code = normalize_coupon_code(code)
        cache_key = f"{self.cache_prefix}:code:{code}"

        if use_cache:
            cached_coupon = await self.cache.get_model(cache_key, Coupon)
            if cached_coupon:
                return cached_coupon

        db_coupon = await self.coupon_repo.get_by_code(code)
        if not db_coupon:
            return None

        coupon = self.coupon_repo.to_model(db_coupon)

        if use_cache:
            await self.cache.set_model(cache_key, coupon, ttl=self.cache_ttl)

        return coupon

    async def list_coupons(self, active_only: bool = False, limit: int = 50, offset: int = 0) -> List[Coupon]:
        """获取优惠券列表"""
        db_coupons = await self.coupon_repo.list_coupons(active_only=active_only, limit=limit, offset=offset)
        return [self.coupon_repo.to_model(db_coupon) for db_coupon in db_coupons]

    async def validate_coupon(
        self,
        code: str,
        user_id: str,
        order_amount: int
    ) -> CouponValidation:
        """校验用户能否使用优惠券并预估价格"""
        # 优惠券验证不使用缓存，确保实时性
        coupon = await self.get_coupon_by_code(code, use_cache=False)
        if coupon is None:
            return CouponValidation(is_valid=False, error=CouponError.NOT_FOUND)

        prior_usage = 0
        if coupon.max_uses_per_user is not None:
            prior_usage = await self.coupon_repo.get_user_coupon_usage_count(user_id, coupon.coupon_id)

        return validate_and_price(coupon, order_amount, prior_usage)

    async def redeem_coupon(
        self,
        code: str,
        user_id: str,
        order_id: str,
        order_amount: int
    ) -> CouponValidation:
        """
        在订单确认的事务中兑换优惠券
        使用次数自增带上限条件，自增后再检查单用户次数；任何失败都抛出CouponException，由会话回滚整个事务
        """
        coupon = await self.get_coupon_by_code(code, use_cache=False)
        if coupon is None:
            raise CouponException(CouponError.NOT_FOUND)

        prior_usage = await self.coupon_repo.get_user_coupon_usage_count(user_id, coupon.coupon_id)
        validation = validate_and_price(coupon, order_amount, prior_usage)
        if not validation.is_valid:
            raise CouponException(validation.error)

        if not await self.coupon_repo.increment_usage(coupon.coupon_id):
            logger.warning(f"优惠券并发兑换达到上限: {coupon.code}")
            raise CouponException(CouponError.GLOBAL_LIMIT_REACHED)

        # 自增已持有行锁，此时重新统计的单用户次数是准确的
        if coupon.max_uses_per_user is not None:
            user_usage = await self.coupon_repo.get_user_coupon_usage_count(user_id, coupon.coupon_id)
            if user_usage >= coupon.max_uses_per_user:
                raise CouponException(CouponError.USER_LIMIT_REACHED)

        try:
            await self.coupon_repo.record_usage(
                coupon_id=coupon.coupon_id,
                user_id=user_id,
                order_id=order_id,
                discount_amount=validation.discount_amount
            )
        except IntegrityError:
            raise ConflictException(f"订单 {order_id} 已使用过优惠券 {coupon.code}")

        await self._clear_coupon_caches(coupon.code)
        logger.info(f"优惠券兑换成功: {coupon.code} user={user_id} order={order_id}")
        return validation

    async def create_coupon(self, coupon_data: CouponCreate) -> Coupon:
        """创建优惠券，代码唯一"""
        existing = await self.coupon_repo.get_by_code(coupon_data.code)
        if existing:
            raise ConflictException(f"优惠券代码已存在: {coupon_data.code}")

        db_coupon = await self.coupon_repo.create(coupon_data)
        logger.info(f"优惠券创建成功: {coupon_data.code}")
        return self.coupon_repo.to_model(db_coupon)

    async def update_coupon(self, coupon_id: str, coupon_data: CouponUpdate) -> Coupon:
        """更新优惠券"""
        existing = await self.coupon_repo.get_by_coupon_id(coupon_id)
        if not existing:
            raise NotFoundException(f"优惠券不存在: {coupon_id}")

        start_date = coupon_data.start_date or as_utc(existing.start_date)
        end_date = coupon_data.end_date or as_utc(existing.end_date)
        if end_date <= start_date:
            raise BusinessException("INVALID_VALIDITY_PERIOD", "结束时间必须晚于开始时间")

        if (
            coupon_data.discount_value is not None
            and existing.discount_type == CouponType.PERCENTAGE.value
            and coupon_data.discount_value > 100
        ):
            raise BusinessException("INVALID_DISCOUNT_VALUE", "百分比折扣值不能超过100")

        db_coupon = await self.coupon_repo.update(coupon_id, coupon_data)
        if not db_coupon:
            raise NotFoundException(f"优惠券不存在: {coupon_id}")

        coupon = self.coupon_repo.to_model(db_coupon)
        await self._clear_coupon_caches(coupon.code)
        return coupon

    async def deactivate_coupon(self, coupon_id: str) -> Coupon:
        """停用优惠券(不做物理删除)"""
        return await self.update_coupon(coupon_id, CouponUpdate(is_active=False))

    async def get_coupon_stats(self, coupon_id: str) -> Dict[str, Any]:
        """获取优惠券统计信息"""
        stats = await self.coupon_repo.get_coupon_stats(coupon_id)
        if not stats:
            raise NotFoundException(f"优惠券不存在: {coupon_id}")
        return stats

    async def _clear_coupon_caches(self, code: str):
        """清除优惠券详情缓存"""
        await self.cache.delete(f"{self.cache_prefix}:code:{code}")
