"""
订单相关数据模型
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, validator
from enum import Enum


class OrderStatus(str, Enum):
    """订单状态枚举"""
    PENDING = "pending"  # 待处理
    CONFIRMED = "confirmed"  # 已确认
    DELIVERED = "delivered"  # 已送达
    CANCELLED = "cancelled"  # 已取消


class Order(BaseModel):
    """订单基础模型，金额单位为分"""

    order_id: str = Field(..., description="订单ID")
    user_id: str = Field(..., description="用户ID")
    subtotal: int = Field(..., ge=0, description="商品金额")
    coupon_code: Optional[str] = Field(None, description="使用的优惠券代码")
    coupon_discount: int = Field(default=0, ge=0, description="优惠券折扣")
    delivery_fee: int = Field(default=0, ge=0, description="配送费")
    distance_km: Optional[float] = Field(None, ge=0, description="配送距离")
    total: int = Field(..., ge=0, description="应付金额")
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: OrderStatus = Field(default=OrderStatus.CONFIRMED, description="订单状态")
    created_at: Optional[datetime] = None

    @validator('total')
    def validate_total(cls, v, values):
        """验证应付金额: 折扣后商品金额(不低于0)加配送费"""
        if all(k in values for k in ['subtotal', 'coupon_discount', 'delivery_fee']):
            expected = max(0, values['subtotal'] - values['coupon_discount']) + values['delivery_fee']
            if v != expected:
                raise ValueError('应付金额计算错误')
        return v


class OrderConfirmRequest(BaseModel):
    """确认订单请求"""

    user_id: str = Field(..., min_length=1, description="用户ID")
    subtotal: int = Field(..., ge=1, description="商品金额")
    latitude: float = Field(..., ge=-90, le=90, description="收货纬度")
    longitude: float = Field(..., ge=-180, le=180, description="收货经度")
    coupon_code: Optional[str] = Field(None, description="优惠券代码")


class OrderConfirmation(BaseModel):
    """确认订单结果"""

    order: Order
    bracket_completed: bool = False
    reward_awarded: int = 0
    requires_manual_review: bool = False
