"""
数据模型包初始化文件
"""

from .coupon import (
    Coupon,
    CouponCreate,
    CouponUpdate,
    CouponValidation,
    CouponType,
    CouponError
)
from .delivery import (
    Coordinate,
    DeliveryFeeConfig,
    DeliveryFee,
    DeliveryQuote,
    DeliveryZone,
    DeliveryInfo
)
from .order import Order, OrderStatus, OrderConfirmation
from .reward import (
    SpendingBracket,
    RewardBracketState,
    BracketResult,
    LoyaltyTier,
    LoyaltyStatus,
    SpinReward,
    SpinRewardType
)

__all__ = [
    "Coupon",
    "CouponCreate",
    "CouponUpdate",
    "CouponValidation",
    "CouponType",
    "CouponError",
    "Coordinate",
    "DeliveryFeeConfig",
    "DeliveryFee",
    "DeliveryQuote",
    "DeliveryZone",
    "DeliveryInfo",
    "Order",
    "OrderStatus",
    "OrderConfirmation",
    "SpendingBracket",
    "RewardBracketState",
    "BracketResult",
    "LoyaltyTier",
    "LoyaltyStatus",
    "SpinReward",
    "SpinRewardType"
]
