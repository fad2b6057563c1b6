"""
应用入口: 组装路由、异常处理器和生命周期

运行方式:
python -m app.main
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException
import uvicorn

from app.api import auth, coupons, delivery, gamification, health, orders, rewards
from app.api.exceptions import (
    BusinessException,
    business_exception_handler,
    database_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from app.core.config import settings
from app.core.database import close_database, init_database
from app.core.redis import redis_manager
from app.services.common_cache import coupon_cache, zone_cache

logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

ROUTERS = (health, delivery, coupons, orders, rewards, gamification, auth)

# 顺序无关，Starlette按异常类型的继承链查找
EXCEPTION_HANDLERS = {
    RequestValidationError: validation_exception_handler,
    HTTPException: http_exception_handler,
    SQLAlchemyError: database_exception_handler,
    BusinessException: business_exception_handler,
    Exception: general_exception_handler,
}

SHARED_CACHES = (zone_cache, coupon_cache)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """启动时连接数据库和Redis，缓存与验证码共用同一个Redis连接池"""
    logger.info(f"正在启动 {settings.app_name} ({settings.environment.value})")

    try:
        await init_database()
        await redis_manager.init_redis()
    except Exception as e:
        logger.error(f"应用启动失败: {e}")
        raise

    for cache in SHARED_CACHES:
        cache.bind(redis_manager.redis_pool)
    logger.info("应用启动完成")

    try:
        yield
    finally:
        for cache in SHARED_CACHES:
            cache.bind(None)
        await close_database()
        await redis_manager.close_redis()
        logger.info("应用关闭完成")


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="店铺配送费、优惠券与消费奖励服务",
        debug=settings.debug,
        lifespan=lifespan
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for module in ROUTERS:
        application.include_router(module.router)

    for exc_class, handler in EXCEPTION_HANDLERS.items():
        application.add_exception_handler(exc_class, handler)

    @application.get("/")
    async def root():
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
            "health": "/health",
        }

    return application


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
