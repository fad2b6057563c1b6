"""
幸运转盘测试
"""

import random
from datetime import timedelta
import pytest
from unittest.mock import AsyncMock, MagicMock

from app.api.exceptions import BusinessException
from app.config.reward_options import get_default_spin_rewards
from app.models.coupon import Coupon, CouponType
from app.models.database.reward_db import UserRewardsDB, UserSpinsDB
from app.models.reward import SpinReward, SpinRewardType
from app.repositories.reward_repository import RewardRepository
from app.repositories.spin_repository import SpinRepository
from app.services.coupon_service import CouponService
from app.services.spin_service import SpinService, select_weighted_reward, spins_for_referral_count


def reward(reward_id: str, weight: float, reward_type=SpinRewardType.POINTS, value: int = 1000) -> SpinReward:
    return SpinReward(reward_id=reward_id, name=reward_id, reward_type=reward_type, reward_value=value, probability=weight)


class TestWeightedSelection:

    def test_cumulative_table(self):
        rewards = [reward("a", 30), reward("b", 20), reward("c", 50)]
        assert select_weighted_reward(rewards, 0).reward_id == "a"
        assert select_weighted_reward(rewards, 29.999).reward_id == "a"
        assert select_weighted_reward(rewards, 30).reward_id == "b"
        assert select_weighted_reward(rewards, 49.999).reward_id == "b"
        assert select_weighted_reward(rewards, 50).reward_id == "c"
        assert select_weighted_reward(rewards, 99.999).reward_id == "c"

    def test_zero_weight_never_selected(self):
        rewards = [reward("a", 10), reward("never", 0), reward("b", 10)]
        picked = {select_weighted_reward(rewards, draw / 10).reward_id for draw in range(200)}
        assert picked == {"a", "b"}

    def test_draw_past_total_falls_back_to_last_weighted(self):
        rewards = [reward("a", 10), reward("b", 10), reward("never", 0)]
        assert select_weighted_reward(rewards, 20).reward_id == "b"

    def test_empty_rewards(self):
        with pytest.raises(ValueError):
            select_weighted_reward([], 0)

    def test_default_rewards_weights(self):
        rewards = get_default_spin_rewards()
        assert sum(r.probability for r in rewards) == pytest.approx(100.0)

    def test_referral_milestones(self):
        assert spins_for_referral_count(3) == 1
        assert spins_for_referral_count(5) == 2
        assert spins_for_referral_count(50) == 10
        assert spins_for_referral_count(4) == 0
        assert spins_for_referral_count(51) == 0


@pytest.mark.asyncio
class TestSpinService:

    @pytest.fixture
    def mock_spin_repo(self):
        repo = AsyncMock(spec=SpinRepository)
        repo.get_active_rewards.return_value = []
        repo.to_spins_model = MagicMock(side_effect=SpinRepository(None).to_spins_model)
        return repo

    @pytest.fixture
    def mock_reward_repo(self):
        repo = AsyncMock(spec=RewardRepository)
        repo.get_for_update.return_value = UserRewardsDB(user_id="user_1", points_earned=0)
        return repo

    @pytest.fixture
    def mock_coupon_service(self):
        return AsyncMock(spec=CouponService)

    @pytest.fixture
    def fixed_rng(self):
        rng = MagicMock(spec=random.Random)
        rng.random.return_value = 0.0
        return rng

    @pytest.fixture
    def spin_service(self, mock_spin_repo, mock_reward_repo, mock_coupon_service, fixed_rng):
        return SpinService(mock_spin_repo, mock_reward_repo, mock_coupon_service, rng=fixed_rng)

    async def test_spin_without_spins(self, spin_service, mock_spin_repo):
        mock_spin_repo.get_user_spins_for_update.return_value = UserSpinsDB(
            user_id="user_1", spins_available=0, total_spins=3, total_winnings=0
        )

        with pytest.raises(BusinessException) as exc_info:
            await spin_service.spin("user_1")

        assert exc_info.value.code == "NO_SPINS_AVAILABLE"
        mock_spin_repo.add_history.assert_not_called()

    async def test_spin_points_reward(self, spin_service, mock_spin_repo, mock_reward_repo):
        db_spins = UserSpinsDB(user_id="user_1", spins_available=2, total_spins=0, total_winnings=0)
        mock_spin_repo.get_user_spins_for_update.return_value = db_spins

        result = await spin_service.spin("user_1")

        # 抽样为0时选中第一个奖品
        assert result.reward.reward_id == "spin_points_10"
        assert result.spins_available == 1
        assert result.coupon_code is None
        assert db_spins.total_spins == 1
        assert db_spins.total_winnings == 1000
        assert mock_reward_repo.get_for_update.return_value.points_earned == 1000
        mock_spin_repo.add_history.assert_called_once()

    async def test_spin_discount_issues_coupon(
        self, spin_service, mock_spin_repo, mock_coupon_service, fixed_rng, now
    ):
        mock_spin_repo.get_active_rewards.return_value = []
        db_spins = UserSpinsDB(user_id="user_1", spins_available=1, total_spins=0, total_winnings=0)
        mock_spin_repo.get_user_spins_for_update.return_value = db_spins
        # 默认奖品总权重100，累计到95之后是10%折扣券
        fixed_rng.random.return_value = 0.96
        mock_coupon_service.create_coupon.return_value = Coupon(
            coupon_id="CPN_SPIN",
            code="SPINABC123",
            discount_type=CouponType.PERCENTAGE,
            discount_value=10,
            start_date=now,
            end_date=now + timedelta(days=30)
        )

        result = await spin_service.spin("user_1")

        assert result.reward.reward_type == SpinRewardType.DISCOUNT
        assert result.coupon_code == "SPINABC123"
        coupon_data = mock_coupon_service.create_coupon.call_args.args[0]
        assert coupon_data.discount_type == CouponType.PERCENTAGE
        assert coupon_data.max_uses_per_user == 1

    async def test_grant_spins_for_referral_milestone(self, spin_service, mock_spin_repo):
        db_spins = UserSpinsDB(user_id="user_1", spins_available=1, total_spins=0, total_winnings=0)
        mock_spin_repo.get_user_spins_for_update.return_value = db_spins

        granted = await spin_service.grant_spins_for_referral_milestone("user_1", 10)

        assert granted == 3
        assert db_spins.spins_available == 4

    async def test_no_spins_between_milestones(self, spin_service, mock_spin_repo):
        assert await spin_service.grant_spins_for_referral_milestone("user_1", 7) == 0
        mock_spin_repo.get_user_spins_for_update.assert_not_called()

    async def test_grant_spins_rejects_non_positive(self, spin_service):
        with pytest.raises(BusinessException):
            await spin_service.grant_spins("user_1", 0)
