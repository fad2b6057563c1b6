from fastapi import APIRouter, Depends

from app.api.dependencies import get_otp_service
from app.models.auth import OtpSendRequest, OtpSendResponse, OtpVerifyRequest, OtpVerifyResponse
from app.services.otp_service import OtpService

router = APIRouter(prefix="/auth", tags=["手机验证"])


@router.post("/otp/send", response_model=OtpSendResponse)
async def send_otp(request: OtpSendRequest, service: OtpService = Depends(get_otp_service)):
    """发送手机验证码"""
    return await service.send_otp(request.phone)


@router.post("/otp/verify", response_model=OtpVerifyResponse)
async def verify_otp(request: OtpVerifyRequest, service: OtpService = Depends(get_otp_service)):
    """校验手机验证码"""
    return await service.verify_otp(request.phone, request.otp)
