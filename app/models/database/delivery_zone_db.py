"""
配送区域数据库模型
"""

from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, CheckConstraint
from sqlalchemy.sql import func
from app.core.database import Base


class DeliveryZoneDB(Base):
    """配送区域数据库表"""

    __tablename__ = "delivery_zones"

    zone_id = Column(String(50), primary_key=True, comment="区域ID")
    name = Column(String(100), nullable=False, comment="区域名称")

    # 圆心与半径
    latitude = Column(Float, nullable=False, comment="中心纬度")
    longitude = Column(Float, nullable=False, comment="中心经度")
    radius_km = Column(Float, nullable=False, comment="半径(km)")

    # 费用
    free_delivery = Column(Boolean, nullable=False, default=False, comment="是否免配送费")
    delivery_fee = Column(Integer, nullable=False, default=0, comment="配送费(分)")
    estimated_minutes = Column(Integer, comment="预计送达时间(分钟)")

    is_active = Column(Boolean, nullable=False, default=True, index=True, comment="是否启用")
    sort_order = Column(Integer, nullable=False, default=0, comment="匹配顺序")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), comment="更新时间")

    __table_args__ = (
        CheckConstraint("radius_km >= 0", name="ck_delivery_zones_radius_non_negative"),
        {'comment': '配送区域表'}
    )
