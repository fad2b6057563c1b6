"""
奖励与转盘数据库模型
"""

from sqlalchemy import Column, String, Integer, Float, Text, Boolean, DateTime
from sqlalchemy.sql import func
from app.core.database import Base


class UserRewardsDB(Base):
    """用户奖励汇总表，同时保存当前档位周期的累计状态"""

    __tablename__ = "user_rewards"

    user_id = Column(String(50), primary_key=True, comment="用户ID")

    # 累计统计
    total_spend = Column(Integer, nullable=False, default=0, comment="累计消费")
    purchase_count = Column(Integer, nullable=False, default=0, comment="累计订单数")
    points_earned = Column(Integer, nullable=False, default=0, comment="已获得积分")
    points_redeemed = Column(Integer, nullable=False, default=0, comment="已兑换积分")

    # 当前档位周期
    current_bracket_spend = Column(Integer, nullable=False, default=0, comment="本周期累计消费")
    current_bracket_receipts = Column(Integer, nullable=False, default=0, comment="本周期订单数")
    pending_manual_review = Column(Boolean, nullable=False, default=False, comment="待人工处理奖励")

    last_purchase_at = Column(DateTime(timezone=True), comment="最近购买时间")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), comment="更新时间")

    __table_args__ = (
        {'comment': '用户奖励表'}
    )


class RewardTransactionDB(Base):
    """奖励流水表"""

    __tablename__ = "reward_transactions"

    transaction_id = Column(String(50), primary_key=True, comment="流水ID")
    user_id = Column(String(50), nullable=False, index=True, comment="用户ID")
    type = Column(String(20), nullable=False, comment="流水类型")
    amount = Column(Integer, nullable=False, default=0, comment="金额")
    description = Column(Text, comment="描述")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True, comment="创建时间")

    __table_args__ = (
        {'comment': '奖励流水表'}
    )


class SpinRewardDB(Base):
    """转盘奖品表"""

    __tablename__ = "spin_rewards"

    reward_id = Column(String(50), primary_key=True, comment="奖品ID")
    name = Column(String(100), nullable=False, comment="奖品名称")
    reward_type = Column(String(20), nullable=False, comment="奖品类型")
    reward_value = Column(Integer, nullable=False, default=0, comment="奖品价值")
    probability = Column(Float, nullable=False, default=0, comment="相对权重")
    is_active = Column(Boolean, nullable=False, default=True, comment="是否启用")

    __table_args__ = (
        {'comment': '转盘奖品表'}
    )


class UserSpinsDB(Base):
    """用户转盘次数表"""

    __tablename__ = "user_spins"

    user_id = Column(String(50), primary_key=True, comment="用户ID")
    spins_available = Column(Integer, nullable=False, default=0, comment="可用次数")
    total_spins = Column(Integer, nullable=False, default=0, comment="累计次数")
    total_winnings = Column(Integer, nullable=False, default=0, comment="累计奖励")
    last_spin_at = Column(DateTime(timezone=True), comment="最近转盘时间")

    __table_args__ = (
        {'comment': '用户转盘次数表'}
    )


class SpinHistoryDB(Base):
    """转盘记录表"""

    __tablename__ = "spin_history"

    spin_id = Column(String(50), primary_key=True, comment="记录ID")
    user_id = Column(String(50), nullable=False, index=True, comment="用户ID")
    reward_id = Column(String(50), nullable=False, comment="奖品ID")
    reward_type = Column(String(20), nullable=False, comment="奖品类型")
    reward_value = Column(Integer, nullable=False, default=0, comment="奖品价值")
    reward_name = Column(String(100), nullable=False, comment="奖品名称")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), comment="创建时间")

    __table_args__ = (
        {'comment': '转盘记录表'}
    )
