from fastapi import APIRouter, Depends, status
from typing import List
import logging

from app.api.dependencies import get_delivery_service
from app.api.exceptions import NotFoundException
from app.models.delivery import (
    DeliveryInfo,
    DeliveryQuote,
    DeliveryZoneCreate,
    DeliveryZoneResponse,
    LocationRequest
)
from app.services.delivery_service import DeliveryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/delivery", tags=["配送"])


@router.post("/quote", response_model=DeliveryQuote)
async def quote_delivery(
    location: LocationRequest,
    service: DeliveryService = Depends(get_delivery_service)
):
    """按距门店距离计算配送费"""
    return service.quote(location.to_coordinate())


@router.get("/zones", response_model=List[DeliveryZoneResponse])
async def list_zones(service: DeliveryService = Depends(get_delivery_service)):
    """获取启用的配送区域"""
    zones = await service.get_active_zones()
    return [DeliveryZoneResponse.from_zone(zone) for zone in zones]


@router.post("/zones", response_model=DeliveryZoneResponse, status_code=status.HTTP_201_CREATED)
async def create_zone(
    zone_data: DeliveryZoneCreate,
    service: DeliveryService = Depends(get_delivery_service)
):
    """创建配送区域"""
    zone = await service.create_zone(zone_data)
    return DeliveryZoneResponse.from_zone(zone)


@router.post("/zones/match", response_model=DeliveryInfo)
async def match_zone(
    location: LocationRequest,
    service: DeliveryService = Depends(get_delivery_service)
):
    """按配送区域匹配坐标，区域外返回 in_service_area=false"""
    return await service.match_zone(location.to_coordinate())


@router.post("/zones/{zone_id}/deactivate")
async def deactivate_zone(
    zone_id: str,
    service: DeliveryService = Depends(get_delivery_service)
):
    """停用配送区域"""
    if not await service.deactivate_zone(zone_id):
        raise NotFoundException(f"配送区域不存在: {zone_id}")
    return {"success": True, "zone_id": zone_id}
