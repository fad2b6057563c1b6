"""
手机验证码业务服务层
验证码保存在Redis中并由过期时间自动清理，进程重启或多实例部署不会丢失待验证的验证码
"""

import re
import hmac
import secrets
import logging
from typing import Optional

from app.api.exceptions import BusinessException, RateLimitException
from app.core.config import settings
from app.core.redis import OtpStore
from app.models.auth import OtpSendResponse, OtpVerifyResponse

logger = logging.getLogger(__name__)

KENYAN_PHONE_PATTERN = re.compile(r"^\+254\d{9}$")
OTP_LENGTH = 6


def normalize_phone_number(phone: str) -> str:
    """
    规范化肯尼亚手机号为 +254 格式
    0712345678 / 712345678 / 254712345678 / +254 712 345 678 -> +254712345678
    """
    normalized = re.sub(r"[\s\-()]", "", phone)
    if normalized.startswith("+"):
        return normalized
    if normalized.startswith("254"):
        return "+" + normalized
    if normalized.startswith("0"):
        normalized = normalized[1:]
    return "+254" + normalized


def is_valid_phone_number(phone: str) -> bool:
    return bool(KENYAN_PHONE_PATTERN.match(phone))


def mask_phone_number(phone: str) -> str:
    """脱敏展示: +254****5678"""
    if len(phone) <= 8:
        return phone
    return f"{phone[:4]}****{phone[-4:]}"


def generate_otp() -> str:
    """生成6位数字验证码"""
    return f"{secrets.randbelow(900000) + 100000}"


class OtpService:
    """验证码业务服务"""

    def __init__(
        self,
        store: OtpStore,
        max_requests: Optional[int] = None,
        max_attempts: Optional[int] = None
    ):
        self.store = store
        self.max_requests = max_requests or settings.otp_max_requests
        self.max_attempts = max_attempts or settings.otp_max_attempts

    def _require_valid_phone(self, phone: str) -> str:
        normalized = normalize_phone_number(phone)
        if not is_valid_phone_number(normalized):
            raise BusinessException("INVALID_PHONE", "Please enter a valid Kenyan phone number")
        return normalized

    async def send_otp(self, phone: str) -> OtpSendResponse:
        """
        生成并保存验证码
        同一手机号在一个有效期窗口内最多发送 max_requests 次；短信发送不在本服务范围内
        """
        phone = self._require_valid_phone(phone)

        request_count = await self.store.count_request(phone)
        if request_count is None:
            raise BusinessException("OTP_UNAVAILABLE", "Verification service unavailable", 503)
        if request_count > self.max_requests:
            retry_after = await self.store.request_window_remaining(phone)
            raise RateLimitException(
                f"Too many verification requests. Please try again in {retry_after} seconds."
            )

        code = generate_otp()
        if not await self.store.save_code(phone, code):
            raise BusinessException("OTP_UNAVAILABLE", "Verification service unavailable", 503)

        if not settings.is_production:
            logger.info(f"验证码已生成 {phone}: {code}")
        else:
            logger.info(f"验证码已生成 {mask_phone_number(phone)}")

        return OtpSendResponse(
            message=f"Verification code sent to {mask_phone_number(phone)}",
            phone=mask_phone_number(phone),
            expires_in=self.store.ttl_seconds
        )

    async def verify_otp(self, phone: str, otp: str) -> OtpVerifyResponse:
        """
        校验验证码
        成功后验证码立即作废；失败次数达到 max_attempts 时验证码作废，需重新获取
        """
        phone = self._require_valid_phone(phone)

        stored = await self.store.get_code(phone)
        if stored is None:
            raise BusinessException("OTP_NOT_FOUND", "OTP not found or expired. Please request a new one.")

        if not hmac.compare_digest(stored.encode(), otp.encode()):
            attempts = await self.store.count_failed_attempt(phone) or self.max_attempts
            if attempts >= self.max_attempts:
                await self.store.clear(phone)
                raise BusinessException(
                    "OTP_ATTEMPTS_EXCEEDED",
                    "Too many failed attempts. Please request a new code."
                )
            raise BusinessException("OTP_INVALID", "Invalid OTP. Please try again.")

        await self.store.clear(phone)
        logger.info(f"手机号验证成功 {mask_phone_number(phone)}")
        return OtpVerifyResponse(
            verified=True,
            phone=phone,
            message="Phone number verified successfully"
        )
