"""
优惠券数据库模型
"""

from sqlalchemy import Column, String, Integer, Text, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from app.core.database import Base


class CouponDB(Base):
    """优惠券数据库表"""

    __tablename__ = "coupons"

    # 主键和基本信息
    coupon_id = Column(String(50), primary_key=True, comment="优惠券ID")
    code = Column(String(50), nullable=False, unique=True, index=True, comment="优惠券代码(大写)")
    discount_type = Column(String(20), nullable=False, comment="折扣类型")

    # 折扣信息(分)
    discount_value = Column(Integer, nullable=False, comment="折扣值")
    min_order_amount = Column(Integer, comment="最小订单金额")

    # 有效期
    start_date = Column(DateTime(timezone=True), nullable=False, index=True, comment="有效开始时间")
    end_date = Column(DateTime(timezone=True), nullable=False, index=True, comment="有效结束时间")
    is_active = Column(Boolean, nullable=False, default=True, index=True, comment="是否启用")

    # 使用限制
    max_uses_global = Column(Integer, comment="总使用次数限制")
    max_uses_per_user = Column(Integer, comment="单用户使用次数限制")
    used_count = Column(Integer, nullable=False, default=0, comment="已使用次数")

    description = Column(Text, comment="优惠券描述")

    # 时间戳
    created_at = Column(DateTime(timezone=True), server_default=func.now(), comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), comment="更新时间")

    __table_args__ = (
        {'comment': '优惠券信息表'}
    )


class CouponUsageDB(Base):
    """优惠券使用记录表，每个(优惠券, 订单)至多一条"""

    __tablename__ = "coupon_usage"

    usage_id = Column(String(50), primary_key=True, comment="使用记录ID")
    coupon_id = Column(String(50), ForeignKey("coupons.coupon_id"), nullable=False, index=True, comment="优惠券ID")
    user_id = Column(String(50), nullable=False, index=True, comment="使用用户ID")
    order_id = Column(String(50), nullable=False, comment="关联订单ID")
    discount_amount = Column(Integer, nullable=False, default=0, comment="折扣金额")
    used_at = Column(DateTime(timezone=True), server_default=func.now(), comment="使用时间")

    __table_args__ = (
        UniqueConstraint("coupon_id", "order_id", name="uq_coupon_usage_coupon_order"),
        {'comment': '优惠券使用记录表'}
    )
