"""
订单业务服务层
订单确认时在同一事务内完成配送费计算、优惠券兑换、订单写入和奖励记账
"""

import uuid
import logging
from typing import List, Optional
from datetime import datetime, timezone

from app.api.exceptions import NotFoundException
from app.models.coupon import normalize_coupon_code
from app.models.delivery import Coordinate
from app.models.order import Order, OrderConfirmRequest, OrderConfirmation, OrderStatus
from app.repositories.order_repository import OrderRepository
from app.services.coupon_service import CouponService
from app.services.delivery_service import DeliveryService
from app.services.reward_service import RewardService

logger = logging.getLogger(__name__)


def generate_order_id() -> str:
    return f"ORDER_{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S')}_{uuid.uuid4().hex[:8].upper()}"


class OrderService:
    """订单业务服务"""

    def __init__(
        self,
        order_repo: OrderRepository,
        delivery_service: DeliveryService,
        coupon_service: CouponService,
        reward_service: RewardService
    ):
        self.order_repo = order_repo
        self.delivery_service = delivery_service
        self.coupon_service = coupon_service
        self.reward_service = reward_service

    async def confirm_order(self, request: OrderConfirmRequest) -> OrderConfirmation:
        """
        确认订单

        应付金额 = max(0, 商品金额 - 优惠券折扣) + 配送费。
        所有写操作共用请求的数据库会话，任何一步抛出异常都会整体回滚，
        因此优惠券不会在订单失败时被计入使用次数。
        """
        order_id = generate_order_id()
        quote = self.delivery_service.quote(
            Coordinate(latitude=request.latitude, longitude=request.longitude)
        )

        coupon_code = None
        coupon_discount = 0
        goods_amount = request.subtotal
        if request.coupon_code:
            validation = await self.coupon_service.redeem_coupon(
                code=request.coupon_code,
                user_id=request.user_id,
                order_id=order_id,
                order_amount=request.subtotal
            )
            coupon_code = normalize_coupon_code(request.coupon_code)
            coupon_discount = validation.discount_amount
            goods_amount = validation.final_amount

        order = Order(
            order_id=order_id,
            user_id=request.user_id,
            subtotal=request.subtotal,
            coupon_code=coupon_code,
            coupon_discount=coupon_discount,
            delivery_fee=quote.delivery_fee,
            distance_km=quote.distance_km,
            total=goods_amount + quote.delivery_fee,
            latitude=request.latitude,
            longitude=request.longitude,
            status=OrderStatus.CONFIRMED
        )
        db_order = await self.order_repo.create(order)

        logger.info(f"订单确认成功: {order_id} user={request.user_id} total={order.total}")
        confirmation = OrderConfirmation(order=self.order_repo.to_model(db_order))

        # 奖励按实际支付的商品金额累计，不含配送费；全额抵扣的订单不计入档位
        if goods_amount > 0:
            reward = await self.reward_service.record_order_completion(request.user_id, goods_amount)
            confirmation.bracket_completed = reward.bracket_completed
            confirmation.reward_awarded = reward.reward_awarded
            confirmation.requires_manual_review = reward.requires_manual_review

        return confirmation

    async def get_order(self, order_id: str) -> Order:
        """获取订单详情"""
        db_order = await self.order_repo.get_by_order_id(order_id)
        if not db_order:
            raise NotFoundException(f"订单不存在: {order_id}")
        return self.order_repo.to_model(db_order)

    async def get_user_orders(
        self,
        user_id: str,
        limit: int = 20,
        offset: int = 0,
        status_filter: Optional[str] = None
    ) -> List[Order]:
        """获取用户订单列表"""
        db_orders = await self.order_repo.get_user_orders(
            user_id=user_id,
            limit=limit,
            offset=offset,
            status_filter=status_filter
        )
        return [self.order_repo.to_model(db_order) for db_order in db_orders]
