"""
消费档位奖励、会员等级与RewardService测试
"""

import pytest
from unittest.mock import AsyncMock

from app.api.exceptions import BusinessException
from app.config.reward_options import SPENDING_BRACKETS, LOYALTY_TIERS
from app.models.database.reward_db import UserRewardsDB
from app.models.reward import RewardBracketState, RewardTransactionType, SpendingBracket
from app.repositories.reward_repository import RewardRepository
from app.services.reward_service import RewardService, compute_loyalty_tier, find_bracket, record_order


class TestRecordOrder:
    """档位累计纯函数测试"""

    def test_ten_orders_complete_bracket(self):
        brackets = [SpendingBracket(min_spend=30100, max_spend=50000, reward_value=2000)]
        state = RewardBracketState()

        for _ in range(9):
            result = record_order(state, 4500, brackets)
            assert result.bracket_completed is False
            assert result.reward_awarded == 0
            state = result.new_state

        assert state == RewardBracketState(current_bracket_spend=40500, current_bracket_receipts=9)

        result = record_order(state, 4500, brackets)
        assert result.bracket_completed is True
        assert result.reward_awarded == 2000
        assert result.completed_spend == 45000
        assert result.new_state == RewardBracketState(current_bracket_spend=0, current_bracket_receipts=0)

    def test_state_is_not_mutated(self):
        state = RewardBracketState(current_bracket_spend=1000, current_bracket_receipts=3)
        result = record_order(state, 500, SPENDING_BRACKETS)
        assert state.current_bracket_spend == 1000
        assert result.new_state.current_bracket_spend == 1500
        assert result.new_state.current_bracket_receipts == 4

    def test_above_highest_bracket_requires_manual_review(self):
        state = RewardBracketState(current_bracket_spend=350000, current_bracket_receipts=9)
        result = record_order(state, 10000, SPENDING_BRACKETS)
        assert result.bracket_completed is True
        assert result.reward_awarded == 0
        assert result.requires_manual_review is True
        assert result.matched_bracket.customizable is True
        assert result.new_state == RewardBracketState()

    def test_exactly_on_top_threshold_takes_first_match(self):
        state = RewardBracketState(current_bracket_spend=290000, current_bracket_receipts=9)
        result = record_order(state, 10000, SPENDING_BRACKETS)
        assert result.reward_awarded == 10000
        assert result.requires_manual_review is False

    def test_gap_between_brackets_resets_without_reward(self):
        """30000与30100之间没有配置档位"""
        state = RewardBracketState(current_bracket_spend=30000, current_bracket_receipts=9)
        result = record_order(state, 50, SPENDING_BRACKETS)
        assert result.bracket_completed is True
        assert result.matched_bracket is None
        assert result.reward_awarded == 0
        assert result.requires_manual_review is True
        assert result.new_state == RewardBracketState()

    def test_custom_bracket_size(self):
        result = record_order(RewardBracketState(), 1000, SPENDING_BRACKETS, bracket_size=1)
        assert result.bracket_completed is True
        assert result.reward_awarded == 1000

    def test_configured_ladder(self):
        assert find_bracket(0, SPENDING_BRACKETS).reward_value == 1000
        assert find_bracket(30000, SPENDING_BRACKETS).reward_value == 1000
        assert find_bracket(30100, SPENDING_BRACKETS).reward_value == 2000
        assert find_bracket(150100, SPENDING_BRACKETS).reward_value == 8000
        assert find_bracket(230100, SPENDING_BRACKETS).reward_value == 10000

    def test_configured_ladder_is_ordered(self):
        finite = [bracket for bracket in SPENDING_BRACKETS if bracket.max_spend is not None]
        for lower, upper in zip(finite, finite[1:]):
            assert lower.max_spend < upper.min_spend
            assert lower.reward_value < upper.reward_value


class TestLoyaltyTier:
    """会员等级计算"""

    def test_new_customer_is_bronze(self):
        status = compute_loyalty_tier(0)
        assert status.current_tier.name == "BRONZE"
        assert status.next_tier.name == "SILVER"
        assert status.next_tier.spend_required == 10000000
        assert status.progress_percentage == 0

    def test_progress_towards_next_tier(self):
        status = compute_loyalty_tier(5000000)
        assert status.current_tier.name == "BRONZE"
        assert status.progress_percentage == 50

    def test_threshold_promotes(self):
        status = compute_loyalty_tier(50000000)
        assert status.current_tier.name == "GOLD"
        assert status.next_tier.name == "PLATINUM"
        assert "10% discount on all orders" in status.benefits
        assert "Exclusive members-only products" in status.benefits

    def test_top_tier(self):
        status = compute_loyalty_tier(250000000)
        assert status.current_tier.name == "PLATINUM"
        assert status.next_tier is None
        assert status.progress_percentage == 100

    def test_tiers_given_out_of_order(self):
        status = compute_loyalty_tier(10000000, list(reversed(LOYALTY_TIERS)))
        assert status.current_tier.name == "SILVER"


@pytest.mark.asyncio
class TestRewardService:
    """RewardService测试"""

    @pytest.fixture
    def mock_reward_repo(self):
        return AsyncMock(spec=RewardRepository)

    @pytest.fixture
    def reward_service(self, mock_reward_repo):
        return RewardService(mock_reward_repo, bracket_size=10)

    @pytest.fixture
    def user_rewards_db(self):
        return UserRewardsDB(
            user_id="user_1",
            total_spend=40500,
            purchase_count=9,
            points_earned=0,
            points_redeemed=0,
            current_bracket_spend=40500,
            current_bracket_receipts=9,
            pending_manual_review=False
        )

    async def test_record_order_accumulates(self, reward_service, mock_reward_repo):
        db_rewards = UserRewardsDB(
            user_id="user_1", total_spend=0, purchase_count=0, points_earned=0, points_redeemed=0,
            current_bracket_spend=0, current_bracket_receipts=0, pending_manual_review=False
        )
        mock_reward_repo.get_for_update.return_value = db_rewards

        response = await reward_service.record_order_completion("user_1", 4500)

        assert response.bracket_completed is False
        assert response.receipts == 1
        assert response.bracket_spend == 4500
        assert response.message == "1/10 receipts in this bracket"
        assert db_rewards.total_spend == 4500
        mock_reward_repo.add_transaction.assert_not_called()
        mock_reward_repo.save.assert_called_once_with(db_rewards)

    async def test_record_order_completes_bracket(self, reward_service, mock_reward_repo, user_rewards_db):
        mock_reward_repo.get_for_update.return_value = user_rewards_db

        response = await reward_service.record_order_completion("user_1", 4500)

        assert response.bracket_completed is True
        assert response.reward_awarded == 2000
        assert user_rewards_db.points_earned == 2000
        assert user_rewards_db.current_bracket_spend == 0
        assert user_rewards_db.current_bracket_receipts == 0
        assert user_rewards_db.purchase_count == 10
        mock_reward_repo.add_transaction.assert_called_once()
        assert mock_reward_repo.add_transaction.call_args.args[1] == RewardTransactionType.EARNED

    async def test_record_order_manual_review(self, reward_service, mock_reward_repo, user_rewards_db):
        user_rewards_db.current_bracket_spend = 400000
        mock_reward_repo.get_for_update.return_value = user_rewards_db

        response = await reward_service.record_order_completion("user_1", 20000)

        assert response.requires_manual_review is True
        assert response.reward_awarded == 0
        assert user_rewards_db.pending_manual_review is True
        assert user_rewards_db.points_earned == 0
        assert mock_reward_repo.add_transaction.call_args.args[1] == RewardTransactionType.MANUAL_REVIEW

    async def test_redeem_points(self, reward_service, mock_reward_repo, user_rewards_db):
        user_rewards_db.points_earned = 3000
        user_rewards_db.points_redeemed = 500
        mock_reward_repo.get_for_update.return_value = user_rewards_db
        mock_reward_repo.to_model.side_effect = RewardRepository(None).to_model

        rewards = await reward_service.redeem_points("user_1", 2500)

        assert rewards.points_redeemed == 3000
        assert rewards.points_balance == 0
        mock_reward_repo.get_for_update.assert_called_once_with("user_1")
        mock_reward_repo.add_transaction.assert_called_once_with(
            "user_1", RewardTransactionType.REDEEMED, 2500, "Redeemed 2500 points"
        )
        mock_reward_repo.save.assert_called_once_with(user_rewards_db)

    async def test_redeem_points_insufficient_balance(self, reward_service, mock_reward_repo, user_rewards_db):
        user_rewards_db.points_earned = 1000
        user_rewards_db.points_redeemed = 500
        mock_reward_repo.get_for_update.return_value = user_rewards_db

        with pytest.raises(BusinessException) as exc_info:
            await reward_service.redeem_points("user_1", 501)

        assert exc_info.value.code == "INSUFFICIENT_POINTS"
        assert user_rewards_db.points_redeemed == 500
        mock_reward_repo.add_transaction.assert_not_called()
        mock_reward_repo.save.assert_not_called()

    async def test_redeem_non_positive_points(self, reward_service, mock_reward_repo):
        with pytest.raises(BusinessException) as exc_info:
            await reward_service.redeem_points("user_1", 0)

        assert exc_info.value.code == "INVALID_POINTS"
        mock_reward_repo.get_for_update.assert_not_called()

    async def test_get_user_rewards_without_record(self, reward_service, mock_reward_repo):
        mock_reward_repo.get_by_user_id.return_value = None

        rewards = await reward_service.get_user_rewards("new_user")

        assert rewards.user_id == "new_user"
        assert rewards.total_spend == 0

    async def test_get_loyalty_status(self, reward_service, mock_reward_repo, user_rewards_db):
        user_rewards_db.total_spend = 60000000
        mock_reward_repo.get_by_user_id.return_value = user_rewards_db
        mock_reward_repo.to_model.side_effect = RewardRepository(None).to_model

        status = await reward_service.get_loyalty_status("user_1")

        assert status.current_tier.name == "GOLD"
        assert status.progress_percentage == 20
