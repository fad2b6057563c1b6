"""
通用缓存工具
配送区域列表和优惠券详情以JSON形式缓存在Redis中，读写失败一律按未命中处理，
连接池由应用启动时绑定(见 app.main)，未绑定时缓存直接跳过
"""

import json
import logging
from typing import Any, List, Optional, Type, TypeVar

import redis.asyncio as redis
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class SimpleCache:
    """带key前缀的JSON缓存"""

    def __init__(self, redis_client: Optional[redis.Redis] = None, key_prefix: str = ""):
        self.redis_client = redis_client
        self.key_prefix = key_prefix

    def bind(self, redis_client: Optional[redis.Redis]) -> None:
        """绑定或解绑连接池"""
        self.redis_client = redis_client

    def _get_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}" if self.key_prefix else key

    async def get(self, key: str) -> Optional[Any]:
        """获取缓存值"""
        if not self.redis_client:
            return None
        try:
            data = await self.redis_client.get(self._get_key(key))
            return json.loads(data) if data else None
        except Exception as e:
            logger.error(f"获取缓存失败 {self._get_key(key)}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        """设置缓存值"""
        if not self.redis_client:
            return False
        try:
            data = json.dumps(value, default=str, ensure_ascii=False)
            await self.redis_client.setex(self._get_key(key), ttl, data)
            return True
        except Exception as e:
            logger.error(f"设置缓存失败 {self._get_key(key)}: {e}")
            return False

    async def get_model(self, key: str, model_cls: Type[ModelT]) -> Optional[ModelT]:
        """读取单个模型，数据结构不匹配时视为未命中"""
        data = await self.get(key)
        if not data:
            return None
        try:
            return model_cls(**data)
        except ValidationError:
            logger.warning(f"缓存数据格式过期，忽略 {self._get_key(key)}")
            return None

    async def set_model(self, key: str, model: BaseModel, ttl: int = 3600) -> bool:
        return await self.set(key, model.model_dump(mode="json"), ttl=ttl)

    async def get_models(self, key: str, model_cls: Type[ModelT]) -> Optional[List[ModelT]]:
        """读取模型列表；空列表也是有效的缓存结果"""
        data = await self.get(key)
        if data is None:
            return None
        try:
            return [model_cls(**item) for item in data]
        except (TypeError, ValidationError):
            logger.warning(f"缓存数据格式过期，忽略 {self._get_key(key)}")
            return None

    async def set_models(self, key: str, models: List[BaseModel], ttl: int = 3600) -> bool:
        return await self.set(key, [model.model_dump(mode="json") for model in models], ttl=ttl)

    async def delete(self, key: str) -> bool:
        """删除缓存"""
        if not self.redis_client:
            return False
        try:
            return await self.redis_client.delete(self._get_key(key)) > 0
        except Exception as e:
            logger.error(f"删除缓存失败 {self._get_key(key)}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """按模式删除缓存(SCAN，不阻塞Redis)"""
        if not self.redis_client:
            return 0
        try:
            keys = [key async for key in self.redis_client.scan_iter(match=self._get_key(pattern))]
            if keys:
                return await self.redis_client.delete(*keys)
            return 0
        except Exception as e:
            logger.error(f"删除模式缓存失败 {pattern}: {e}")
            return 0


zone_cache = SimpleCache(key_prefix="zone:")
coupon_cache = SimpleCache(key_prefix="coupon:")
