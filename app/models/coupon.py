"""
优惠券相关数据模型
"""

from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, Field, validator
from enum import Enum


class CouponType(str, Enum):
    """优惠券类型枚举"""
    PERCENTAGE = "percentage"  # 百分比折扣券
    FIXED = "fixed"  # 固定金额折扣券


class CouponError(str, Enum):
    """优惠券校验失败原因，直接返回给用户"""
    EXPIRED = "EXPIRED"
    BELOW_MINIMUM = "BELOW_MINIMUM"
    GLOBAL_LIMIT_REACHED = "GLOBAL_LIMIT_REACHED"
    USER_LIMIT_REACHED = "USER_LIMIT_REACHED"
    NOT_FOUND = "NOT_FOUND"


COUPON_ERROR_MESSAGES = {
    CouponError.EXPIRED: "Coupon has expired",
    CouponError.BELOW_MINIMUM: "Order amount is below the coupon minimum",
    CouponError.GLOBAL_LIMIT_REACHED: "Coupon usage limit reached",
    CouponError.USER_LIMIT_REACHED: "You have reached the usage limit for this coupon",
    CouponError.NOT_FOUND: "Invalid coupon code",
}


def normalize_coupon_code(code: str) -> str:
    """优惠券代码不区分大小写，统一转为大写"""
    return code.strip().upper()


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """无时区时间按UTC处理，所有比较均在UTC下进行"""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class Coupon(BaseModel):
    """优惠券基础模型，金额单位为分"""

    coupon_id: str = Field(..., description="优惠券ID")
    code: str = Field(..., min_length=1, max_length=50, description="优惠券代码")
    discount_type: CouponType = Field(..., description="折扣类型")
    discount_value: int = Field(..., ge=0, description="折扣值: 百分比或固定金额")
    min_order_amount: Optional[int] = Field(None, ge=0, description="最小订单金额")
    max_uses_global: Optional[int] = Field(None, ge=1, description="总使用次数限制")
    max_uses_per_user: Optional[int] = Field(None, ge=1, description="单用户使用次数限制")
    used_count: int = Field(default=0, ge=0, description="已使用次数")
    start_date: datetime = Field(..., description="有效开始时间")
    end_date: datetime = Field(..., description="有效结束时间")
    is_active: bool = Field(default=True, description="是否启用")
    description: Optional[str] = Field(None, max_length=500, description="优惠券描述")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @validator('code')
    def validate_code(cls, v):
        return normalize_coupon_code(v)

    @validator('start_date', 'end_date', 'created_at', 'updated_at')
    def normalize_timezone(cls, v):
        return as_utc(v)

    @validator('end_date')
    def validate_validity_period(cls, v, values):
        """验证有效期"""
        if 'start_date' in values and v <= values['start_date']:
            raise ValueError('结束时间必须晚于开始时间')
        return v


class CouponCreate(BaseModel):
    """创建优惠券模型"""

    code: str = Field(..., min_length=1, max_length=50)
    discount_type: CouponType = Field(...)
    discount_value: int = Field(..., ge=1)
    min_order_amount: Optional[int] = Field(None, ge=0)
    max_uses_global: Optional[int] = Field(None, ge=1)
    max_uses_per_user: Optional[int] = Field(None, ge=1)
    start_date: datetime = Field(...)
    end_date: datetime = Field(...)
    description: Optional[str] = Field(None, max_length=500)

    @validator('code')
    def validate_code(cls, v):
        return normalize_coupon_code(v)

    @validator('start_date', 'end_date')
    def normalize_timezone(cls, v):
        return as_utc(v)

    @validator('end_date')
    def validate_validity_period(cls, v, values):
        if 'start_date' in values and v <= values['start_date']:
            raise ValueError('结束时间必须晚于开始时间')
        return v

    @validator('discount_value')
    def validate_discount_value(cls, v, values):
        """百分比折扣不能超过100"""
        if values.get('discount_type') == CouponType.PERCENTAGE and v > 100:
            raise ValueError('百分比折扣值不能超过100')
        return v


class CouponUpdate(BaseModel):
    """更新优惠券模型"""

    discount_value: Optional[int] = Field(None, ge=1)
    min_order_amount: Optional[int] = Field(None, ge=0)
    max_uses_global: Optional[int] = Field(None, ge=1)
    max_uses_per_user: Optional[int] = Field(None, ge=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: Optional[bool] = None
    description: Optional[str] = Field(None, max_length=500)

    @validator('start_date', 'end_date')
    def normalize_timezone(cls, v):
        return as_utc(v)


class CouponValidation(BaseModel):
    """优惠券校验及定价结果"""

    is_valid: bool = Field(..., description="是否有效")
    error: Optional[CouponError] = Field(None, description="失败原因")
    discount_amount: int = Field(default=0, ge=0, description="折扣金额")
    final_amount: int = Field(default=0, ge=0, description="最终金额")

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        return COUPON_ERROR_MESSAGES[self.error]


class CouponValidateRequest(BaseModel):
    """优惠券校验请求"""

    user_id: str = Field(..., min_length=1, description="用户ID")
    code: str = Field(..., min_length=1, description="优惠券代码")
    order_amount: int = Field(..., ge=1, description="订单金额")


class CouponResponse(BaseModel):
    """优惠券响应模型"""

    coupon_id: str
    code: str
    discount_type: CouponType
    discount_value: int
    min_order_amount: Optional[int]
    max_uses_global: Optional[int]
    max_uses_per_user: Optional[int]
    used_count: int
    start_date: datetime
    end_date: datetime
    is_active: bool
    description: Optional[str]

    @classmethod
    def from_coupon(cls, coupon: Coupon) -> "CouponResponse":
        """从Coupon模型创建响应对象"""
        return cls(
            coupon_id=coupon.coupon_id,
            code=coupon.code,
            discount_type=coupon.discount_type,
            discount_value=coupon.discount_value,
            min_order_amount=coupon.min_order_amount,
            max_uses_global=coupon.max_uses_global,
            max_uses_per_user=coupon.max_uses_per_user,
            used_count=coupon.used_count,
            start_date=coupon.start_date,
            end_date=coupon.end_date,
            is_active=coupon.is_active,
            description=coupon.description
        )


class CouponListResponse(BaseModel):
    coupons: List[CouponResponse]
    total: int
