from fastapi import APIRouter, Depends, Query, status
import logging

from app.api.dependencies import get_coupon_service
from app.api.exceptions import CouponException, NotFoundException
from app.models.coupon import (
    CouponCreate,
    CouponListResponse,
    CouponResponse,
    CouponUpdate,
    CouponValidateRequest,
    CouponValidation
)
from app.services.coupon_service import CouponService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/coupons", tags=["优惠券"])


@router.post("", response_model=CouponResponse, status_code=status.HTTP_201_CREATED)
async def create_coupon(
    coupon_data: CouponCreate,
    service: CouponService = Depends(get_coupon_service)
):
    """创建优惠券，代码统一转为大写"""
    coupon = await service.create_coupon(coupon_data)
    return CouponResponse.from_coupon(coupon)


@router.get("", response_model=CouponListResponse)
async def list_coupons(
    active_only: bool = Query(False, description="只返回启用的优惠券"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    service: CouponService = Depends(get_coupon_service)
):
    """获取优惠券列表"""
    coupons = await service.list_coupons(active_only=active_only, limit=limit, offset=offset)
    return CouponListResponse(
        coupons=[CouponResponse.from_coupon(coupon) for coupon in coupons],
        total=len(coupons)
    )


@router.post("/validate", response_model=CouponValidation)
async def validate_coupon(
    request: CouponValidateRequest,
    service: CouponService = Depends(get_coupon_service)
):
    """
    校验优惠券并预估价格
    不可用时返回对应的错误码(EXPIRED、BELOW_MINIMUM等)，不会计入使用次数
    """
    validation = await service.validate_coupon(
        code=request.code,
        user_id=request.user_id,
        order_amount=request.order_amount
    )
    if not validation.is_valid:
        raise CouponException(validation.error)
    return validation


@router.get("/{code}", response_model=CouponResponse)
async def get_coupon(code: str, service: CouponService = Depends(get_coupon_service)):
    coupon = await service.get_coupon_by_code(code)
    if coupon is None:
        raise NotFoundException(f"优惠券不存在: {code.upper()}")
    return CouponResponse.from_coupon(coupon)


@router.patch("/{coupon_id}", response_model=CouponResponse)
async def update_coupon(
    coupon_id: str,
    coupon_data: CouponUpdate,
    service: CouponService = Depends(get_coupon_service)
):
    """更新优惠券"""
    coupon = await service.update_coupon(coupon_id, coupon_data)
    return CouponResponse.from_coupon(coupon)


@router.post("/{coupon_id}/deactivate", response_model=CouponResponse)
async def deactivate_coupon(coupon_id: str, service: CouponService = Depends(get_coupon_service)):
    """停用优惠券，不做物理删除"""
    coupon = await service.deactivate_coupon(coupon_id)
    logger.info(f"优惠券已停用: {coupon.code}")
    return CouponResponse.from_coupon(coupon)


@router.get("/{coupon_id}/stats")
async def get_coupon_stats(coupon_id: str, service: CouponService = Depends(get_coupon_service)):
    """优惠券使用统计"""
    return await service.get_coupon_stats(coupon_id)
