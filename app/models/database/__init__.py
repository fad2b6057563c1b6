"""
数据库模型包初始化文件
"""

from .coupon_db import CouponDB, CouponUsageDB
from .delivery_zone_db import DeliveryZoneDB
from .order_db import OrderDB
from .reward_db import UserRewardsDB, RewardTransactionDB, SpinRewardDB, UserSpinsDB, SpinHistoryDB

__all__ = [
    "CouponDB",
    "CouponUsageDB",
    "DeliveryZoneDB",
    "OrderDB",
    "UserRewardsDB",
    "RewardTransactionDB",
    "SpinRewardDB",
    "UserSpinsDB",
    "SpinHistoryDB"
]
