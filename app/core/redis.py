import redis.asyncio as aioredis
import json
from typing import Optional, Union
from app.core.config import settings
import structlog

"redis连接管理器以及验证码存储"

logger = structlog.get_logger()


class RedisManager:
    """Redis连接管理器"""

    def __init__(self):
        self.redis_pool: Optional[aioredis.Redis] = None

    async def init_redis(self) -> None:
        """初始化Redis连接池"""
        try:
            self.redis_pool = aioredis.from_url(
                settings.redis_url_computed,
                encoding="utf-8",
                decode_responses=True,
                max_connections=20,
                retry_on_timeout=True
            )
            # 测试连接
            await self.redis_pool.ping()
            logger.info("Redis连接初始化成功")
        except Exception as e:
            logger.error("Redis连接初始化失败", error=str(e))
            raise

    async def close_redis(self) -> None:
        """关闭Redis连接"""
        if self.redis_pool:
            await self.redis_pool.aclose()
            self.redis_pool = None
            logger.info("Redis连接已关闭")

    async def get(self, key: str) -> Optional[str]:
        """获取缓存值"""
        try:
            return await self.redis_pool.get(key)
        except Exception as e:
            logger.error("Redis获取数据失败", key=key, error=str(e))
            return None

    async def set(
            self,
            key: str,
            value: Union[str, dict, list],
            expire: Optional[int] = None
    ) -> bool:
        """设置缓存值"""
        try:
            if isinstance(value, (dict, list)):
                value = json.dumps(value, ensure_ascii=False)

            result = await self.redis_pool.set(key, value, ex=expire)
            return bool(result)
        except Exception as e:
            logger.error("Redis设置数据失败", key=key, error=str(e))
            return False

    async def delete(self, *keys: str) -> bool:
        """删除缓存"""
        try:
            result = await self.redis_pool.delete(*keys)
            return bool(result)
        except Exception as e:
            logger.error("Redis删除数据失败", keys=list(keys), error=str(e))
            return False

    async def incr(self, key: str, expire: Optional[int] = None) -> Optional[int]:
        """
        计数器自增
        首次创建时设置过期时间，计数窗口从第一次自增开始
        """
        try:
            value = await self.redis_pool.incr(key)
            if value == 1 and expire:
                await self.redis_pool.expire(key, expire)
            return value
        except Exception as e:
            logger.error("Redis计数失败", key=key, error=str(e))
            return None

    async def ttl(self, key: str) -> int:
        """剩余过期时间，key不存在返回-2"""
        try:
            return await self.redis_pool.ttl(key)
        except Exception as e:
            logger.error("Redis获取过期时间失败", key=key, error=str(e))
            return -2

    async def ping(self) -> bool:
        try:
            return bool(await self.redis_pool.ping())
        except Exception as e:
            logger.error("Redis连接检查失败", error=str(e))
            return False


# 全局Redis管理器实例
redis_manager = RedisManager()


class OtpStore:
    """
    手机验证码存储
    以规范化手机号为key保存在Redis中，过期由Redis负责；
    同时维护发送次数和校验失败次数两个计数器，与验证码同一时间窗口
    """

    def __init__(self, redis_manager: RedisManager, ttl_seconds: Optional[int] = None):
        self.redis = redis_manager
        self.code_prefix = "otp:code:"
        self.request_prefix = "otp:requests:"
        self.attempt_prefix = "otp:attempts:"
        self.ttl_seconds = ttl_seconds or settings.otp_ttl_seconds

    async def save_code(self, phone: str, code: str) -> bool:
        """保存验证码，覆盖旧验证码并清零失败次数"""
        saved = await self.redis.set(f"{self.code_prefix}{phone}", code, self.ttl_seconds)
        if saved:
            await self.redis.delete(f"{self.attempt_prefix}{phone}")
        return saved

    async def get_code(self, phone: str) -> Optional[str]:
        return await self.redis.get(f"{self.code_prefix}{phone}")

    async def clear(self, phone: str) -> bool:
        """验证码使用或作废后删除"""
        return await self.redis.delete(
            f"{self.code_prefix}{phone}",
            f"{self.attempt_prefix}{phone}"
        )

    async def count_request(self, phone: str) -> Optional[int]:
        """记录一次发送请求，返回窗口内的请求次数"""
        return await self.redis.incr(f"{self.request_prefix}{phone}", self.ttl_seconds)

    async def request_window_remaining(self, phone: str) -> int:
        """发送次数窗口的剩余秒数"""
        return max(0, await self.redis.ttl(f"{self.request_prefix}{phone}"))

    async def count_failed_attempt(self, phone: str) -> Optional[int]:
        """记录一次校验失败，返回窗口内的失败次数"""
        return await self.redis.incr(f"{self.attempt_prefix}{phone}", self.ttl_seconds)


# 全局验证码存储实例
otp_store = OtpStore(redis_manager)
