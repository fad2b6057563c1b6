"""
配送相关数据模型
坐标为WGS84十进制度数，金额单位均为分(KES cents)
"""

from typing import Optional
from pydantic import BaseModel, Field


class Coordinate(BaseModel):
    """经纬度坐标 (不可变)"""

    latitude: float = Field(..., ge=-90, le=90, description="纬度")
    longitude: float = Field(..., ge=-180, le=180, description="经度")

    class Config:
        frozen = True


class DeliveryFeeConfig(BaseModel):
    """按距离计费的配送策略"""

    free_radius_km: float = Field(..., ge=0, description="免配送费半径(km)")
    base_fee: int = Field(..., ge=0, description="基础配送费")
    per_km_fee: int = Field(..., ge=0, description="每公里费用")
    rounding: int = Field(default=1000, ge=1, description="取整粒度")

    class Config:
        frozen = True


class DeliveryFee(BaseModel):
    """配送费计算结果"""

    fee: int = Field(..., ge=0, description="配送费")
    is_free: bool = Field(..., description="是否免配送费")
    zone_label: str = Field(..., description="区域标签")


class DeliveryQuote(BaseModel):
    """门店配送报价"""

    distance_km: float = Field(..., ge=0, description="距门店距离(km)")
    delivery_fee: int = Field(..., ge=0, description="配送费")
    is_free_delivery: bool
    zone: str
    message: str


class DeliveryZone(BaseModel):
    """圆形配送区域，作为只读配置输入区域匹配"""

    zone_id: Optional[str] = Field(None, description="区域ID")
    name: str = Field(..., min_length=1, max_length=100, description="区域名称")
    center: Coordinate = Field(..., description="区域中心")
    radius_km: float = Field(..., ge=0, description="半径(km)")
    free_delivery: bool = Field(default=False, description="是否免配送费")
    delivery_fee: int = Field(default=0, ge=0, description="区域配送费")
    estimated_minutes: Optional[int] = Field(None, ge=0, description="预计送达时间(分钟)")

    class Config:
        frozen = True


class DeliveryZoneCreate(BaseModel):
    """创建配送区域请求"""

    name: str = Field(..., min_length=1, max_length=100)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    radius_km: float = Field(..., ge=0)
    free_delivery: bool = False
    delivery_fee: int = Field(default=0, ge=0)
    estimated_minutes: Optional[int] = Field(None, ge=0)
    sort_order: int = 0


class DeliveryInfo(BaseModel):
    """按配送区域得出的配送信息"""

    in_service_area: bool
    is_free_delivery: bool
    delivery_fee: int = Field(..., ge=0)
    zone_name: str
    estimated_minutes: Optional[int] = None
    message: str


class LocationRequest(BaseModel):
    """坐标请求体"""

    latitude: float = Field(..., ge=-90, le=90, description="纬度")
    longitude: float = Field(..., ge=-180, le=180, description="经度")

    def to_coordinate(self) -> Coordinate:
        return Coordinate(latitude=self.latitude, longitude=self.longitude)


class DeliveryZoneResponse(BaseModel):
    """配送区域响应模型"""

    zone_id: str
    name: str
    latitude: float
    longitude: float
    radius_km: float
    free_delivery: bool
    delivery_fee: int
    estimated_minutes: Optional[int]

    @classmethod
    def from_zone(cls, zone: DeliveryZone) -> "DeliveryZoneResponse":
        return cls(
            zone_id=zone.zone_id,
            name=zone.name,
            latitude=zone.center.latitude,
            longitude=zone.center.longitude,
            radius_km=zone.radius_km,
            free_delivery=zone.free_delivery,
            delivery_fee=zone.delivery_fee,
            estimated_minutes=zone.estimated_minutes
        )
