from fastapi import APIRouter, Depends
from typing import List

from app.api.dependencies import get_spin_service
from app.models.reward import (
    ReferralMilestoneRequest,
    ReferralMilestoneResponse,
    SpinGrantRequest,
    SpinRequest,
    SpinResult,
    SpinReward,
    UserSpinsResponse
)
from app.services.spin_service import SpinService

router = APIRouter(prefix="/gamification", tags=["幸运转盘"])


@router.get("/rewards", response_model=List[SpinReward])
async def get_spin_rewards(service: SpinService = Depends(get_spin_service)):
    """转盘奖品列表"""
    return await service.get_rewards()


@router.get("/spins/{user_id}", response_model=UserSpinsResponse)
async def get_user_spins(user_id: str, service: SpinService = Depends(get_spin_service)):
    """用户剩余转盘次数"""
    return await service.get_user_spins(user_id)


@router.post("/spins/grant", response_model=UserSpinsResponse)
async def grant_spins(request: SpinGrantRequest, service: SpinService = Depends(get_spin_service)):
    """赠送转盘次数"""
    return await service.grant_spins(request.user_id, request.count)


@router.post("/spins/referral", response_model=ReferralMilestoneResponse)
async def grant_referral_spins(request: ReferralMilestoneRequest, service: SpinService = Depends(get_spin_service)):
    """推荐人数达到里程碑(3/5/10/20/50)时赠送转盘次数"""
    spins_granted = await service.grant_spins_for_referral_milestone(request.user_id, request.referral_count)
    spins = await service.get_user_spins(request.user_id)
    return ReferralMilestoneResponse(
        user_id=request.user_id,
        referral_count=request.referral_count,
        spins_granted=spins_granted,
        spins_available=spins.spins_available
    )


@router.post("/spin", response_model=SpinResult)
async def spin(request: SpinRequest, service: SpinService = Depends(get_spin_service)):
    """转一次转盘"""
    return await service.spin(request.user_id)
