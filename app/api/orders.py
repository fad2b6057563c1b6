from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from app.api.dependencies import get_order_service
from app.models.order import Order, OrderConfirmRequest, OrderConfirmation
from app.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["订单"])


@router.post("/confirm", response_model=OrderConfirmation)
async def confirm_order(
    request: OrderConfirmRequest,
    service: OrderService = Depends(get_order_service)
):
    """
    确认订单
    配送费、优惠券兑换和奖励记账在同一事务内完成，任何一步失败整体回滚
    """
    return await service.confirm_order(request)


@router.get("/user/{user_id}", response_model=List[Order])
async def get_user_orders(
    user_id: str,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    status: Optional[str] = Query(None, description="按订单状态过滤"),
    service: OrderService = Depends(get_order_service)
):
    return await service.get_user_orders(user_id, limit=limit, offset=offset, status_filter=status)


@router.get("/{order_id}", response_model=Order)
async def get_order(order_id: str, service: OrderService = Depends(get_order_service)):
    return await service.get_order(order_id)
