"""
幸运转盘业务服务层
"""

import random
import uuid
import logging
from typing import List, Optional
from datetime import datetime, timedelta, timezone

from app.api.exceptions import BusinessException
from app.config.reward_options import REFERRAL_SPIN_MILESTONES, get_default_spin_rewards
from app.models.coupon import CouponCreate, CouponType
from app.models.reward import (
    RewardTransactionType,
    SpinResult,
    SpinReward,
    SpinRewardType,
    UserSpinsResponse
)
from app.repositories.spin_repository import SpinRepository
from app.repositories.reward_repository import RewardRepository
from app.services.coupon_service import CouponService

logger = logging.getLogger(__name__)

# 转盘赢得的优惠券有效期
SPIN_COUPON_VALID_DAYS = 30


def select_weighted_reward(rewards: List[SpinReward], draw: float) -> SpinReward:
    """
    按累计权重选择奖品
    draw 是 [0, 总权重) 内的一次均匀抽样
    """
    if not rewards:
        raise ValueError("奖品列表不能为空")

    cumulative = 0.0
    for reward in rewards:
        cumulative += reward.probability
        if draw < cumulative:
            return reward

    # 浮点累计误差时落在最后一个有权重的奖品
    for reward in reversed(rewards):
        if reward.probability > 0:
            return reward
    raise ValueError("奖品总权重必须大于0")


def spins_for_referral_count(referral_count: int) -> int:
    """推荐人数恰好达到里程碑时赠送的转盘次数"""
    return REFERRAL_SPIN_MILESTONES.get(referral_count, 0)


class SpinService:
    """转盘业务服务"""

    def __init__(
        self,
        spin_repo: SpinRepository,
        reward_repo: RewardRepository,
        coupon_service: CouponService,
        rng: Optional[random.Random] = None
    ):
        self.spin_repo = spin_repo
        self.reward_repo = reward_repo
        self.coupon_service = coupon_service
        self.rng = rng or random.SystemRandom()

    async def get_rewards(self) -> List[SpinReward]:
        """获取转盘奖品，数据库未配置时使用默认奖品"""
        db_rewards = await self.spin_repo.get_active_rewards()
        if not db_rewards:
            return get_default_spin_rewards()
        return [self.spin_repo.to_reward_model(db_reward) for db_reward in db_rewards]

    async def get_user_spins(self, user_id: str) -> UserSpinsResponse:
        db_spins = await self.spin_repo.get_user_spins(user_id)
        if db_spins is None:
            return UserSpinsResponse(user_id=user_id, spins_available=0, total_spins=0, total_winnings=0)
        return self.spin_repo.to_spins_model(db_spins)

    async def spin(self, user_id: str) -> SpinResult:
        """
        消耗一次转盘机会并发放奖品
        积分奖品计入用户奖励；免配送费和折扣奖品生成一张仅限本人使用一次的优惠券
        """
        db_spins = await self.spin_repo.get_user_spins_for_update(user_id)
        if (db_spins.spins_available or 0) <= 0:
            raise BusinessException("NO_SPINS_AVAILABLE", "No spins available")

        rewards = await self.get_rewards()
        total_weight = sum(reward.probability for reward in rewards)
        reward = select_weighted_reward(rewards, self.rng.random() * total_weight)

        db_spins.spins_available -= 1
        db_spins.total_spins = (db_spins.total_spins or 0) + 1
        db_spins.last_spin_at = datetime.now(timezone.utc)

        coupon_code = None
        if reward.reward_type == SpinRewardType.POINTS:
            db_spins.total_winnings = (db_spins.total_winnings or 0) + reward.reward_value
            await self._credit_points(user_id, reward)
        else:
            coupon_code = await self._issue_coupon(user_id, reward)

        await self.spin_repo.save(db_spins)
        await self.spin_repo.add_history(user_id, reward)
        logger.info(f"用户 {user_id} 转盘获得 {reward.name}")

        return SpinResult(
            user_id=user_id,
            reward=reward,
            spins_available=db_spins.spins_available,
            coupon_code=coupon_code
        )

    async def grant_spins(self, user_id: str, count: int) -> UserSpinsResponse:
        """赠送转盘次数"""
        if count <= 0:
            raise BusinessException("INVALID_SPIN_COUNT", "Spin count must be positive")

        db_spins = await self.spin_repo.get_user_spins_for_update(user_id)
        db_spins.spins_available = (db_spins.spins_available or 0) + count
        await self.spin_repo.save(db_spins)
        return self.spin_repo.to_spins_model(db_spins)

    async def grant_spins_for_referral_milestone(self, user_id: str, referral_count: int) -> int:
        """推荐里程碑奖励，返回赠送的次数"""
        spins = spins_for_referral_count(referral_count)
        if spins:
            await self.grant_spins(user_id, spins)
            logger.info(f"用户 {user_id} 推荐满 {referral_count} 人, 获得 {spins} 次转盘")
        return spins

    async def _credit_points(self, user_id: str, reward: SpinReward):
        db_rewards = await self.reward_repo.get_for_update(user_id)
        db_rewards.points_earned = (db_rewards.points_earned or 0) + reward.reward_value
        await self.reward_repo.add_transaction(
            user_id,
            RewardTransactionType.EARNED,
            reward.reward_value,
            f"Spin wheel: {reward.name}"
        )
        await self.reward_repo.save(db_rewards)

    async def _issue_coupon(self, user_id: str, reward: SpinReward) -> str:
        now = datetime.now(timezone.utc)
        discount_type = (
            CouponType.PERCENTAGE if reward.reward_type == SpinRewardType.DISCOUNT
            else CouponType.FIXED
        )
        coupon = await self.coupon_service.create_coupon(CouponCreate(
            code=f"SPIN{uuid.uuid4().hex[:8].upper()}",
            discount_type=discount_type,
            discount_value=reward.reward_value,
            max_uses_global=1,
            max_uses_per_user=1,
            start_date=now,
            end_date=now + timedelta(days=SPIN_COUPON_VALID_DAYS),
            description=f"Spin wheel reward for {user_id}: {reward.name}"
        ))
        return coupon.code
