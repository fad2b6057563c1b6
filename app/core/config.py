from pydantic_settings import BaseSettings
from typing import Optional
from enum import Enum

from app.models.delivery import Coordinate, DeliveryFeeConfig


class Environment(str, Enum):

    """运行环境枚举"""
    TESTING = "testing"
    PRODUCTION = "production"


class Settings(BaseSettings):

    # 应用基础配置
    app_name: str = "Yaddis Storefront"
    app_version: str = "1.0.0"
    environment: Environment = Environment.TESTING
    debug: bool = True

    # 数据库配置
    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "storefront_db"
    db_user: str = "storefront_user"
    db_password: str = "storefront_password"

    # Redis配置 (缓存 + OTP存储)
    redis_url: Optional[str] = None
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0

    # 门店位置 (WGS84)
    store_name: str = "YADDPLAST Store - Nduini"
    store_latitude: float = -0.570582
    store_longitude: float = 37.315697

    # 配送费策略，金额单位均为分
    free_delivery_radius_km: float = 0.70
    delivery_base_fee: int = 4000
    delivery_per_km_fee: int = 1000
    delivery_fee_rounding: int = 1000  # 取整到最近的 KES 10

    # 奖励档位: 每N笔订单结算一次
    reward_bracket_size: int = 10

    # 手机验证码
    otp_ttl_seconds: int = 600
    otp_max_requests: int = 3
    otp_max_attempts: int = 5

    # 缓存过期时间(秒)
    zone_cache_ttl: int = 1800
    coupon_cache_ttl: int = 1800

    # 日志配置
    log_level: str = "INFO"

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def database_url_computed(self) -> str:
        """计算数据库URL"""
        if self.database_url:
            return self.database_url
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def redis_url_computed(self) -> str:
        """计算Redis URL"""
        if self.redis_url:
            return self.redis_url
        if self.redis_password:
            return f"redis://:{self.redis_password}@{self.redis_host}:{self.redis_port}/{self.redis_db}"
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    @property
    def store_location(self) -> Coordinate:
        return Coordinate(latitude=self.store_latitude, longitude=self.store_longitude)

    @property
    def delivery_fee_config(self) -> DeliveryFeeConfig:
        """当前配送费策略"""
        return DeliveryFeeConfig(
            free_radius_km=self.free_delivery_radius_km,
            base_fee=self.delivery_base_fee,
            per_km_fee=self.delivery_per_km_fee,
            rounding=self.delivery_fee_rounding
        )

    class Config:
        env_file = ".env"
        case_sensitive = False


# 全局配置实例
settings = Settings()
