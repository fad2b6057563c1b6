"""
奖励静态配置 - 消费档位、会员等级、转盘奖品
金额单位均为分(KES cents)
"""

from typing import Dict, List, Any

from app.models.reward import SpendingBracket, LoyaltyTier, SpinReward, SpinRewardType

# 每10笔订单为一个结算周期，按周期累计消费发放奖励
SPENDING_BRACKETS: List[SpendingBracket] = [
    SpendingBracket(min_spend=0, max_spend=30000, reward_value=1000),          # 300以下 = 10
    SpendingBracket(min_spend=30100, max_spend=50000, reward_value=2000),      # 301-500 = 20
    SpendingBracket(min_spend=50100, max_spend=70000, reward_value=3000),      # 501-700 = 30
    SpendingBracket(min_spend=70100, max_spend=90000, reward_value=4000),      # 701-900 = 40
    SpendingBracket(min_spend=90100, max_spend=110000, reward_value=5000),     # 901-1,100 = 50
    SpendingBracket(min_spend=110100, max_spend=130000, reward_value=6000),    # 1,101-1,300 = 60
    SpendingBracket(min_spend=130100, max_spend=150000, reward_value=7000),    # 1,301-1,500 = 70
    SpendingBracket(min_spend=150100, max_spend=190000, reward_value=8000),    # 1,501-1,900 = 80
    SpendingBracket(min_spend=190100, max_spend=230000, reward_value=9000),    # 1,901-2,300 = 90
    SpendingBracket(min_spend=230100, max_spend=300000, reward_value=10000),   # 2,301-3,000 = 100
    SpendingBracket(min_spend=300000, max_spend=None, reward_value=0, customizable=True),  # 3,000以上人工定制
]

# 会员等级，按累计消费升级
LOYALTY_TIERS: List[LoyaltyTier] = [
    LoyaltyTier(name="BRONZE", min_spend=0, discount_percentage=0, points_multiplier=1.0),
    LoyaltyTier(name="SILVER", min_spend=10000000, discount_percentage=5, points_multiplier=1.5),     # 100,000 KES
    LoyaltyTier(name="GOLD", min_spend=50000000, discount_percentage=10, points_multiplier=2.0),      # 500,000 KES
    LoyaltyTier(name="PLATINUM", min_spend=100000000, discount_percentage=15, points_multiplier=2.5), # 1,000,000 KES
]

# 各等级额外权益
LOYALTY_EXTRA_BENEFITS: Dict[str, List[str]] = {
    "SILVER": ["Early access to sales"],
    "GOLD": ["Exclusive members-only products"],
    "PLATINUM": ["VIP birthday gift", "Personal shopping assistant"],
}

# 推荐人数达到里程碑时赠送转盘次数 (推荐人数 -> 次数)
REFERRAL_SPIN_MILESTONES: Dict[int, int] = {
    3: 1,
    5: 2,
    10: 3,
    20: 5,
    50: 10,
}

# 默认转盘奖品，probability为相对权重
DEFAULT_SPIN_REWARDS: List[Dict[str, Any]] = [
    {"reward_id": "spin_points_10", "name": "10 KES Reward", "reward_type": SpinRewardType.POINTS, "reward_value": 1000, "probability": 30.0},
    {"reward_id": "spin_points_25", "name": "25 KES Reward", "reward_type": SpinRewardType.POINTS, "reward_value": 2500, "probability": 25.0},
    {"reward_id": "spin_points_50", "name": "50 KES Reward", "reward_type": SpinRewardType.POINTS, "reward_value": 5000, "probability": 20.0},
    {"reward_id": "spin_points_100", "name": "100 KES Reward", "reward_type": SpinRewardType.POINTS, "reward_value": 10000, "probability": 15.0},
    {"reward_id": "spin_free_delivery", "name": "Free Delivery", "reward_type": SpinRewardType.FREE_DELIVERY, "reward_value": 10000, "probability": 5.0},
    {"reward_id": "spin_discount_10", "name": "10% Discount", "reward_type": SpinRewardType.DISCOUNT, "reward_value": 10, "probability": 3.0},
    {"reward_id": "spin_jackpot_250", "name": "250 KES Jackpot", "reward_type": SpinRewardType.POINTS, "reward_value": 25000, "probability": 1.5},
    {"reward_id": "spin_mega_500", "name": "500 KES MEGA WIN", "reward_type": SpinRewardType.POINTS, "reward_value": 50000, "probability": 0.5},
]


def get_default_spin_rewards() -> List[SpinReward]:
    """获取默认转盘奖品配置"""
    return [SpinReward(**reward) for reward in DEFAULT_SPIN_REWARDS]
