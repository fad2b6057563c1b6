"""
业务异常定义与全局异常处理器
"""

import logging
from typing import Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.models.coupon import CouponError, COUPON_ERROR_MESSAGES

logger = logging.getLogger(__name__)


class BusinessException(Exception):
    """业务规则异常，直接返回给用户，不重试"""

    def __init__(self, code: str, message: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code


class NotFoundException(BusinessException):
    """资源不存在"""

    def __init__(self, message: str, code: str = "NOT_FOUND"):
        super().__init__(code, message, status.HTTP_404_NOT_FOUND)


class ConflictException(BusinessException):
    """资源冲突"""

    def __init__(self, message: str, code: str = "CONFLICT"):
        super().__init__(code, message, status.HTTP_409_CONFLICT)


class CouponException(BusinessException):
    """优惠券校验失败"""

    def __init__(self, error: CouponError, message: Optional[str] = None):
        status_code = (
            status.HTTP_404_NOT_FOUND if error == CouponError.NOT_FOUND
            else status.HTTP_400_BAD_REQUEST
        )
        super().__init__(error.value, message or COUPON_ERROR_MESSAGES[error], status_code)
        self.error = error


class RateLimitException(BusinessException):
    """请求过于频繁"""

    def __init__(self, message: str):
        super().__init__("RATE_LIMITED", message, status.HTTP_429_TOO_MANY_REQUESTS)


def _error_body(code: str, message: str, **extra) -> dict:
    error = {"code": code, "message": message}
    error.update(extra)
    return {"success": False, "error": error}


async def business_exception_handler(request: Request, exc: BusinessException) -> JSONResponse:
    """业务异常处理"""
    logger.info(f"业务规则拒绝 {request.method} {request.url.path}: {exc.code}")
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.message))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """请求参数校验失败"""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body("VALIDATION_ERROR", "请求参数校验失败", details=jsonable_errors(exc))
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("HTTP_ERROR", str(exc.detail))
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """数据库异常"""
    logger.error(f"数据库操作失败 {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("DATABASE_ERROR", "数据库操作失败")
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """未处理异常"""
    logger.error(f"未处理异常 {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("INTERNAL_ERROR", "服务器内部错误")
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(error.get("loc", [])), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
