"""
手机验证码相关数据模型
"""

from pydantic import BaseModel, Field


class OtpSendRequest(BaseModel):
    phone: str = Field(..., min_length=7, max_length=20, description="手机号")


class OtpSendResponse(BaseModel):
    """发送验证码结果，手机号脱敏返回"""

    success: bool = True
    message: str
    phone: str
    expires_in: int = Field(..., description="有效期(秒)")


class OtpVerifyRequest(BaseModel):
    phone: str = Field(..., min_length=7, max_length=20, description="手机号")
    otp: str = Field(..., pattern=r"^[0-9]{6}$", description="6位验证码")


class OtpVerifyResponse(BaseModel):
    success: bool = True
    verified: bool
    phone: str
    message: str
