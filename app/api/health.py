from fastapi import APIRouter
from fastapi.responses import JSONResponse
import logging

from app.core.config import settings
from app.core.redis import redis_manager
from app.core.database import database_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["健康检查"])


async def _redis_status() -> dict:
    if not redis_manager.redis_pool:
        return {"ok": False, "message": "连接池未初始化"}
    ok = await redis_manager.ping()
    return {"ok": ok, "message": "连接正常" if ok else "连接失败"}


@router.get("")
async def health_check():
    """进程存活检查，不访问外部依赖"""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment.value
    }


@router.get("/database")
async def database_health():
    """
    依赖检查: 订单确认需要数据库，验证码和缓存需要Redis
    任一不可用时返回503
    """
    db_status = await database_service.health_check()
    redis_status = await _redis_status()

    report = {
        "postgresql": db_status["status"] == "healthy",
        "redis": redis_status["ok"],
        "details": {
            "postgresql": db_status["message"],
            "redis": redis_status["message"],
        },
    }
    report["overall"] = report["postgresql"] and report["redis"]

    if report["overall"]:
        return report

    logger.warning(f"依赖检查未通过: {report['details']}")
    return JSONResponse(status_code=503, content=report)
