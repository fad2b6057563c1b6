"""
配送费业务服务层
包含距离计算、按距离计费、配送区域匹配，以及配送区域的缓存读取
"""

import math
import logging
from typing import List, Optional

from app.models.delivery import (
    Coordinate,
    DeliveryFee,
    DeliveryFeeConfig,
    DeliveryInfo,
    DeliveryQuote,
    DeliveryZone,
    DeliveryZoneCreate
)
from app.repositories.delivery_zone_repository import DeliveryZoneRepository
from app.services.common_cache import zone_cache
from app.core.config import settings

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0

FREE_ZONE_LABEL = "Free Delivery Zone"
PAID_ZONE_LABEL = "Paid Delivery Zone"
OUTSIDE_SERVICE_AREA = "Outside service area"


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Haversine大圆距离(km)"""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = lat2 - lat1
    dlng = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    h = min(1.0, h)  # 对跖点附近的浮点误差
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def round_fee(amount: float, granularity: int) -> int:
    """四舍五入到最近的granularity(0.5向上)"""
    return int(math.floor(amount / granularity + 0.5)) * granularity


def delivery_fee(distance: float, config: DeliveryFeeConfig) -> DeliveryFee:
    """
    按距离计算配送费
    免费半径内为0；否则为 基础费 + 距离 * 每公里费，取整到配置粒度
    distance 不能为负数，由调用方在入口校验
    """
    if distance <= config.free_radius_km:
        return DeliveryFee(fee=0, is_free=True, zone_label=FREE_ZONE_LABEL)

    raw_fee = config.base_fee + distance * config.per_km_fee
    return DeliveryFee(
        fee=round_fee(raw_fee, config.rounding),
        is_free=False,
        zone_label=PAID_ZONE_LABEL
    )


def is_within_zone(point: Coordinate, zone: DeliveryZone) -> bool:
    return distance_km(point, zone.center) <= zone.radius_km


def find_zone(point: Coordinate, zones: List[DeliveryZone]) -> Optional[DeliveryZone]:
    """
    查找包含该点的配送区域
    免配送费区域优先于收费区域，同类区域按输入顺序取第一个；无匹配返回None
    """
    first_paid = None
    for zone in zones:
        if not is_within_zone(point, zone):
            continue
        if zone.free_delivery:
            return zone
        if first_paid is None:
            first_paid = zone
    return first_paid


def format_fee(fee: int) -> str:
    """格式化配送费展示"""
    if fee == 0:
        return "FREE"
    return f"KES {fee / 100:.2f}"


def quote_store_delivery(
    point: Coordinate,
    store: Coordinate,
    config: DeliveryFeeConfig
) -> DeliveryQuote:
    """根据门店距离生成配送报价"""
    distance = distance_km(store, point)
    fee = delivery_fee(distance, config)

    if fee.is_free:
        message = f"FREE Delivery! You're within {config.free_radius_km:.2f} km from our store."
    else:
        message = f"Delivery: KES {fee.fee / 100:.0f} ({distance:.2f} km from store)"

    return DeliveryQuote(
        distance_km=round(distance, 2),
        delivery_fee=fee.fee,
        is_free_delivery=fee.is_free,
        zone=fee.zone_label,
        message=message
    )


def delivery_info(point: Coordinate, zones: List[DeliveryZone]) -> DeliveryInfo:
    """根据配送区域生成配送信息，区域外不是错误"""
    zone = find_zone(point, zones)

    if zone is None:
        return DeliveryInfo(
            in_service_area=False,
            is_free_delivery=False,
            delivery_fee=0,
            zone_name=OUTSIDE_SERVICE_AREA,
            message="Your location is outside our delivery zones. "
                    "Please select a delivery address within our service area."
        )

    if zone.free_delivery:
        return DeliveryInfo(
            in_service_area=True,
            is_free_delivery=True,
            delivery_fee=0,
            zone_name=zone.name,
            estimated_minutes=zone.estimated_minutes,
            message=f"Free delivery to {zone.name}!"
        )

    return DeliveryInfo(
        in_service_area=True,
        is_free_delivery=False,
        delivery_fee=zone.delivery_fee,
        zone_name=zone.name,
        estimated_minutes=zone.estimated_minutes,
        message=f"Delivery to {zone.name}: {format_fee(zone.delivery_fee)}"
    )


class DeliveryService:
    """配送业务服务"""

    def __init__(
        self,
        zone_repo: DeliveryZoneRepository,
        config: Optional[DeliveryFeeConfig] = None,
        store: Optional[Coordinate] = None
    ):
        self.zone_repo = zone_repo
        self.config = config or settings.delivery_fee_config
        self.store = store or settings.store_location
        self.cache = zone_cache
        self.cache_key = "active"
        self.cache_ttl = settings.zone_cache_ttl

    def quote(self, point: Coordinate) -> DeliveryQuote:
        """门店配送报价"""
        return quote_store_delivery(point, self.store, self.config)

    async def get_active_zones(self, use_cache: bool = True) -> List[DeliveryZone]:
        """获取启用的配送区域(按匹配顺序)"""
        if use_cache:
            cached_zones = await self.cache.get_models(self.cache_key, DeliveryZone)
            if cached_zones is not None:
                return cached_zones

        db_zones = await self.zone_repo.get_active_zones()
        zones = [self.zone_repo.to_model(db_zone) for db_zone in db_zones]

        if use_cache:
            await self.cache.set_models(self.cache_key, zones, ttl=self.cache_ttl)

        return zones

    async def match_zone(self, point: Coordinate) -> DeliveryInfo:
        """按配送区域匹配"""
        zones = await self.get_active_zones()
        info = delivery_info(point, zones)
        if not info.in_service_area:
            logger.info(f"坐标不在配送范围内: ({point.latitude}, {point.longitude})")
        return info

    async def create_zone(self, zone_data: DeliveryZoneCreate) -> DeliveryZone:
        """创建配送区域"""
        db_zone = await self.zone_repo.create(zone_data)
        await self.cache.delete(self.cache_key)
        logger.info(f"配送区域创建成功: {zone_data.name}")
        return self.zone_repo.to_model(db_zone)

    async def deactivate_zone(self, zone_id: str) -> bool:
        """停用配送区域"""
        success = await self.zone_repo.set_active(zone_id, False)
        if success:
            await self.cache.delete(self.cache_key)
        return success
