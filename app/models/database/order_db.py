"""
订单数据库模型
"""

from sqlalchemy import Column, String, Integer, Float, DateTime
from sqlalchemy.sql import func
from app.core.database import Base


class OrderDB(Base):
    """订单数据库表"""

    __tablename__ = "orders"

    # 主键和用户信息
    order_id = Column(String(50), primary_key=True, comment="订单ID")
    user_id = Column(String(50), nullable=False, index=True, comment="用户ID")

    # 金额信息(分)
    subtotal = Column(Integer, nullable=False, comment="商品金额")
    coupon_code = Column(String(50), comment="使用的优惠券代码")
    coupon_discount = Column(Integer, nullable=False, default=0, comment="优惠券折扣")
    delivery_fee = Column(Integer, nullable=False, default=0, comment="配送费")
    total = Column(Integer, nullable=False, comment="应付金额")

    # 收货位置
    latitude = Column(Float, comment="收货纬度")
    longitude = Column(Float, comment="收货经度")
    distance_km = Column(Float, comment="配送距离")

    status = Column(String(20), nullable=False, default="confirmed", index=True, comment="订单状态")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), comment="更新时间")

    __table_args__ = (
        {'comment': '订单主表'}
    )
