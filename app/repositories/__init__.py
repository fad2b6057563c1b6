"""
仓库包初始化文件 - 数据库访问层
"""

from .coupon_repository import CouponRepository
from .delivery_zone_repository import DeliveryZoneRepository
from .order_repository import OrderRepository
from .reward_repository import RewardRepository
from .spin_repository import SpinRepository

__all__ = [
    "CouponRepository",
    "DeliveryZoneRepository",
    "OrderRepository",
    "RewardRepository",
    "SpinRepository"
]
