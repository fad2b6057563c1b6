"""
奖励业务服务层
每10笔订单结算一次消费档位奖励，并根据累计消费计算会员等级
"""

import logging
from typing import List, Optional
from datetime import datetime, timezone

from app.api.exceptions import BusinessException
from app.config.reward_options import SPENDING_BRACKETS, LOYALTY_TIERS, LOYALTY_EXTRA_BENEFITS
from app.models.reward import (
    BracketResult,
    LoyaltyStatus,
    LoyaltyTier,
    NextTierInfo,
    RewardBracketState,
    RewardEarnResponse,
    RewardTransactionType,
    SpendingBracket,
    UserRewards
)
from app.repositories.reward_repository import RewardRepository
from app.core.config import settings

logger = logging.getLogger(__name__)


def find_bracket(spend: int, brackets: List[SpendingBracket]) -> Optional[SpendingBracket]:
    """按配置顺序查找包含该消费额的档位，第一个匹配优先"""
    for bracket in brackets:
        if bracket.contains(spend):
            return bracket
    return None


def record_order(
    state: RewardBracketState,
    order_amount: int,
    brackets: List[SpendingBracket],
    bracket_size: int = 10
) -> BracketResult:
    """
    记录一笔完成的订单

    订单数未达到 bracket_size 时只累加状态；达到时按累计消费匹配档位发放奖励，
    并在同一步中把状态清零。匹配到定制档位或没有匹配档位时不自动发放，标记人工处理。
    """
    spend = state.current_bracket_spend + order_amount
    receipts = state.current_bracket_receipts + 1

    if receipts < bracket_size:
        return BracketResult(
            new_state=RewardBracketState(
                current_bracket_spend=spend,
                current_bracket_receipts=receipts
            )
        )

    matched = find_bracket(spend, brackets)
    manual_review = matched is None or matched.customizable
    return BracketResult(
        new_state=RewardBracketState(),
        bracket_completed=True,
        reward_awarded=0 if manual_review else matched.reward_value,
        matched_bracket=matched,
        completed_spend=spend,
        requires_manual_review=manual_review
    )


def build_tier_benefits(tier: LoyaltyTier) -> List[str]:
    benefits = []
    if tier.discount_percentage > 0:
        benefits.append(f"{tier.discount_percentage}% discount on all orders")
    benefits.append(f"{tier.points_multiplier:g}x points on purchases")
    benefits.extend(LOYALTY_EXTRA_BENEFITS.get(tier.name, []))
    return benefits


def compute_loyalty_tier(total_spend: int, tiers: Optional[List[LoyaltyTier]] = None) -> LoyaltyStatus:
    """
    根据累计消费计算会员等级

    Args:
        total_spend: 累计消费(分)
        tiers: 等级配置，默认使用 LOYALTY_TIERS

    Returns:
        当前等级、下一等级所需消费以及升级进度(0-100)
    """
    ordered = sorted(tiers or LOYALTY_TIERS, key=lambda t: t.min_spend)

    current = ordered[0]
    next_tier = None
    for index, tier in enumerate(ordered):
        if total_spend >= tier.min_spend:
            current = tier
            next_tier = ordered[index + 1] if index + 1 < len(ordered) else None

    if next_tier is None:
        return LoyaltyStatus(
            current_tier=current,
            total_spend=total_spend,
            progress_percentage=100,
            benefits=build_tier_benefits(current)
        )

    span = next_tier.min_spend - current.min_spend
    progress = (total_spend - current.min_spend) * 100 // span if span > 0 else 100
    return LoyaltyStatus(
        current_tier=current,
        next_tier=NextTierInfo(
            name=next_tier.name,
            min_spend=next_tier.min_spend,
            spend_required=next_tier.min_spend - total_spend,
            discount_percentage=next_tier.discount_percentage
        ),
        total_spend=total_spend,
        progress_percentage=max(0, min(100, progress)),
        benefits=build_tier_benefits(current)
    )


class RewardService:
    """奖励业务服务"""

    def __init__(
        self,
        reward_repo: RewardRepository,
        brackets: Optional[List[SpendingBracket]] = None,
        bracket_size: Optional[int] = None
    ):
        self.reward_repo = reward_repo
        self.brackets = brackets or SPENDING_BRACKETS
        self.bracket_size = bracket_size or settings.reward_bracket_size

    def get_brackets(self) -> List[SpendingBracket]:
        """获取消费档位配置"""
        return list(self.brackets)

    async def record_order_completion(self, user_id: str, order_amount: int) -> RewardEarnResponse:
        """
        订单完成事件
        在调用方的事务内加锁读取用户状态，累加后与奖励、流水一起写回
        """
        db_rewards = await self.reward_repo.get_for_update(user_id)
        state = RewardBracketState(
            current_bracket_spend=db_rewards.current_bracket_spend or 0,
            current_bracket_receipts=db_rewards.current_bracket_receipts or 0
        )

        result = record_order(state, order_amount, self.brackets, self.bracket_size)

        db_rewards.current_bracket_spend = result.new_state.current_bracket_spend
        db_rewards.current_bracket_receipts = result.new_state.current_bracket_receipts
        db_rewards.total_spend = (db_rewards.total_spend or 0) + order_amount
        db_rewards.purchase_count = (db_rewards.purchase_count or 0) + 1
        db_rewards.last_purchase_at = datetime.now(timezone.utc)

        if result.bracket_completed and result.requires_manual_review:
            db_rewards.pending_manual_review = True
            await self.reward_repo.add_transaction(
                user_id,
                RewardTransactionType.MANUAL_REVIEW,
                0,
                f"Bracket completed with spend {result.completed_spend}, custom reward pending"
            )
            logger.info(f"用户 {user_id} 档位奖励需人工处理, 周期消费 {result.completed_spend}")
        elif result.bracket_completed:
            db_rewards.points_earned = (db_rewards.points_earned or 0) + result.reward_awarded
            await self.reward_repo.add_transaction(
                user_id,
                RewardTransactionType.EARNED,
                result.reward_awarded,
                f"Bracket reward for spend {result.completed_spend}"
            )
            logger.info(f"用户 {user_id} 获得档位奖励 {result.reward_awarded}")

        await self.reward_repo.save(db_rewards)

        return RewardEarnResponse(
            user_id=user_id,
            bracket_completed=result.bracket_completed,
            reward_awarded=result.reward_awarded,
            requires_manual_review=result.requires_manual_review,
            receipts=result.new_state.current_bracket_receipts,
            bracket_spend=result.new_state.current_bracket_spend,
            max_receipts=self.bracket_size,
            message=self._build_message(result)
        )

    async def redeem_points(self, user_id: str, points: int, description: Optional[str] = None) -> UserRewards:
        """
        兑换积分
        与订单记账共用行锁，余额检查和扣减之间不会插入其他写入
        """
        if points <= 0:
            raise BusinessException("INVALID_POINTS", "Points to redeem must be positive")

        db_rewards = await self.reward_repo.get_for_update(user_id)
        balance = (db_rewards.points_earned or 0) - (db_rewards.points_redeemed or 0)
        if balance < points:
            raise BusinessException(
                "INSUFFICIENT_POINTS",
                f"Insufficient points: balance {balance}, requested {points}"
            )

        db_rewards.points_redeemed = (db_rewards.points_redeemed or 0) + points
        await self.reward_repo.add_transaction(
            user_id,
            RewardTransactionType.REDEEMED,
            points,
            description or f"Redeemed {points} points"
        )
        await self.reward_repo.save(db_rewards)

        logger.info(f"用户 {user_id} 兑换积分 {points}, 剩余 {balance - points}")
        return self.reward_repo.to_model(db_rewards)

    async def get_user_rewards(self, user_id: str) -> UserRewards:
        """获取用户奖励汇总，没有记录时返回空汇总"""
        db_rewards = await self.reward_repo.get_by_user_id(user_id)
        if db_rewards is None:
            return UserRewards(user_id=user_id)
        return self.reward_repo.to_model(db_rewards)

    async def get_loyalty_status(self, user_id: str) -> LoyaltyStatus:
        """获取用户会员等级"""
        rewards = await self.get_user_rewards(user_id)
        return compute_loyalty_tier(rewards.total_spend)

    def _build_message(self, result: BracketResult) -> str:
        if result.requires_manual_review:
            return "Bracket complete! Your custom reward will be reviewed by our team."
        if result.bracket_completed:
            return f"Bracket complete! You earned KES {result.reward_awarded / 100:.0f}."
        receipts = result.new_state.current_bracket_receipts
        return f"{receipts}/{self.bracket_size} receipts in this bracket"
