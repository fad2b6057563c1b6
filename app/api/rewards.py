from fastapi import APIRouter, Depends
from typing import List

from app.api.dependencies import get_reward_service
from app.models.reward import LoyaltyStatus, PointsRedeemRequest, SpendingBracket, UserRewards
from app.services.reward_service import RewardService

router = APIRouter(prefix="/rewards", tags=["奖励"])


def rewards_payload(rewards: UserRewards, service: RewardService) -> dict:
    return {
        **rewards.model_dump(),
        "points_balance": rewards.points_balance,
        "max_receipts": service.bracket_size
    }


@router.get("/brackets", response_model=List[SpendingBracket])
async def get_brackets(service: RewardService = Depends(get_reward_service)):
    """消费档位配置"""
    return service.get_brackets()


@router.post("/redeem")
async def redeem_points(request: PointsRedeemRequest, service: RewardService = Depends(get_reward_service)):
    """兑换积分，余额不足时返回 INSUFFICIENT_POINTS"""
    rewards = await service.redeem_points(request.user_id, request.points, request.description)
    return rewards_payload(rewards, service)


@router.get("/{user_id}")
async def get_user_rewards(user_id: str, service: RewardService = Depends(get_reward_service)):
    """用户奖励汇总及当前档位进度"""
    rewards = await service.get_user_rewards(user_id)
    return rewards_payload(rewards, service)


@router.get("/{user_id}/loyalty", response_model=LoyaltyStatus)
async def get_loyalty_status(user_id: str, service: RewardService = Depends(get_reward_service)):
    """用户会员等级"""
    return await service.get_loyalty_status(user_id)
