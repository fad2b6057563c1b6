"""
奖励、会员等级与转盘相关数据模型
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from enum import Enum


class SpendingBracket(BaseModel):
    """消费档位: 一个结算周期内累计消费落在 [min_spend, max_spend] 时发放 reward_value"""

    min_spend: int = Field(..., ge=0, description="档位下限")
    max_spend: Optional[int] = Field(None, ge=0, description="档位上限，None表示不封顶")
    reward_value: int = Field(..., ge=0, description="奖励金额")
    customizable: bool = Field(default=False, description="需人工定制奖励")

    class Config:
        frozen = True

    def contains(self, spend: int) -> bool:
        if spend < self.min_spend:
            return False
        return self.max_spend is None or spend <= self.max_spend


class RewardBracketState(BaseModel):
    """用户当前结算周期的累计状态"""

    current_bracket_spend: int = Field(default=0, ge=0, description="本周期累计消费")
    current_bracket_receipts: int = Field(default=0, ge=0, description="本周期订单数")

    class Config:
        frozen = True


class BracketResult(BaseModel):
    """记录一笔订单后的结果"""

    new_state: RewardBracketState
    bracket_completed: bool = False
    reward_awarded: int = Field(default=0, ge=0)
    matched_bracket: Optional[SpendingBracket] = None
    completed_spend: int = Field(default=0, ge=0, description="完成周期时的累计消费")
    requires_manual_review: bool = False


class RewardTransactionType(str, Enum):
    """奖励流水类型"""
    EARNED = "EARNED"
    REDEEMED = "REDEEMED"
    MANUAL_REVIEW = "MANUAL_REVIEW"


class UserRewards(BaseModel):
    """用户奖励汇总"""

    user_id: str
    total_spend: int = 0
    purchase_count: int = 0
    points_earned: int = 0
    points_redeemed: int = 0
    current_bracket_spend: int = 0
    current_bracket_receipts: int = 0
    pending_manual_review: bool = False
    last_purchase_at: Optional[datetime] = None

    @property
    def points_balance(self) -> int:
        return self.points_earned - self.points_redeemed

    @property
    def bracket_state(self) -> RewardBracketState:
        return RewardBracketState(
            current_bracket_spend=self.current_bracket_spend,
            current_bracket_receipts=self.current_bracket_receipts
        )


class RewardEarnResponse(BaseModel):
    """订单完成后的奖励结果"""

    user_id: str
    bracket_completed: bool
    reward_awarded: int
    requires_manual_review: bool
    receipts: int
    bracket_spend: int
    max_receipts: int
    message: str


class LoyaltyTier(BaseModel):
    """会员等级"""

    name: str
    min_spend: int = Field(..., ge=0)
    discount_percentage: int = Field(default=0, ge=0, le=100)
    points_multiplier: float = Field(default=1.0, ge=0)

    class Config:
        frozen = True


class NextTierInfo(BaseModel):
    name: str
    min_spend: int
    spend_required: int
    discount_percentage: int


class LoyaltyStatus(BaseModel):
    """会员等级计算结果"""

    current_tier: LoyaltyTier
    next_tier: Optional[NextTierInfo] = None
    total_spend: int
    progress_percentage: int = Field(..., ge=0, le=100)
    benefits: List[str] = Field(default_factory=list)


class SpinRewardType(str, Enum):
    """转盘奖品类型"""
    POINTS = "POINTS"
    FREE_DELIVERY = "FREE_DELIVERY"
    DISCOUNT = "DISCOUNT"


class SpinReward(BaseModel):
    """转盘奖品，probability为相对权重"""

    reward_id: str
    name: str
    reward_type: SpinRewardType
    reward_value: int = Field(..., ge=0)
    probability: float = Field(..., ge=0)


class SpinRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


class SpinResult(BaseModel):
    """一次转盘结果"""

    user_id: str
    reward: SpinReward
    spins_available: int
    coupon_code: Optional[str] = None


class UserSpinsResponse(BaseModel):
    user_id: str
    spins_available: int
    total_spins: int
    total_winnings: int
    last_spin_at: Optional[datetime] = None


class SpinGrantRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    count: int = Field(..., ge=1, description="赠送次数")


class ReferralMilestoneRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    referral_count: int = Field(..., ge=0, description="累计推荐人数")


class ReferralMilestoneResponse(BaseModel):
    """推荐里程碑结果，未达到里程碑时 spins_granted 为0"""

    user_id: str
    referral_count: int
    spins_granted: int
    spins_available: int


class PointsRedeemRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    points: int = Field(..., ge=1, description="兑换积分")
    description: Optional[str] = Field(None, max_length=200)
