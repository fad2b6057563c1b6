"""
用户奖励数据库操作层
"""

import uuid
from typing import List, Optional
from datetime import datetime, timezone

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.reward import UserRewards, RewardTransactionType
from app.core.database import insert_if_absent
from app.models.database.reward_db import UserRewardsDB, RewardTransactionDB


class RewardRepository:
    """用户奖励数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_user_id(self, user_id: str) -> Optional[UserRewardsDB]:
        """获取用户奖励记录"""
        result = await self.db.execute(
            select(UserRewardsDB).where(UserRewardsDB.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def create_if_missing(self, user_id: str) -> None:
        """创建空的奖励记录，已存在(包括并发请求刚写入)时什么也不做"""
        now = datetime.now(timezone.utc)
        await self.db.execute(insert_if_absent(
            self.db,
            UserRewardsDB.__table__,
            dict(
                user_id=user_id,
                total_spend=0,
                purchase_count=0,
                points_earned=0,
                points_redeemed=0,
                current_bracket_spend=0,
                current_bracket_receipts=0,
                pending_manual_review=False,
                created_at=now,
                updated_at=now
            ),
            ["user_id"]
        ))

    async def get_for_update(self, user_id: str) -> UserRewardsDB:
        """
        加行锁获取用户奖励记录，不存在时先创建
        同一用户的并发订单在此串行化，避免档位状态丢失更新
        """
        await self.create_if_missing(user_id)
        result = await self.db.execute(
            select(UserRewardsDB)
            .where(UserRewardsDB.user_id == user_id)
            .with_for_update()
        )
        return result.scalar_one()

    async def save(self, db_rewards: UserRewardsDB) -> UserRewardsDB:
        """写回奖励记录"""
        db_rewards.updated_at = datetime.now(timezone.utc)
        await self.db.flush()
        return db_rewards

    async def add_transaction(
        self,
        user_id: str,
        transaction_type: RewardTransactionType,
        amount: int,
        description: Optional[str] = None
    ) -> RewardTransactionDB:
        """添加奖励流水"""
        transaction = RewardTransactionDB(
            transaction_id=f"RTX_{uuid.uuid4().hex[:16].upper()}",
            user_id=user_id,
            type=transaction_type.value,
            amount=amount,
            description=description,
            created_at=datetime.now(timezone.utc)
        )
        self.db.add(transaction)
        await self.db.flush()
        return transaction

    async def list_transactions(self, user_id: str, limit: int = 20) -> List[RewardTransactionDB]:
        """获取用户最近的奖励流水"""
        result = await self.db.execute(
            select(RewardTransactionDB)
            .where(RewardTransactionDB.user_id == user_id)
            .order_by(desc(RewardTransactionDB.created_at))
            .limit(limit)
        )
        return list(result.scalars().all())

    def to_model(self, db_rewards: UserRewardsDB) -> UserRewards:
        """转换为Pydantic模型"""
        return UserRewards(
            user_id=db_rewards.user_id,
            total_spend=db_rewards.total_spend or 0,
            purchase_count=db_rewards.purchase_count or 0,
            points_earned=db_rewards.points_earned or 0,
            points_redeemed=db_rewards.points_redeemed or 0,
            current_bracket_spend=db_rewards.current_bracket_spend or 0,
            current_bracket_receipts=db_rewards.current_bracket_receipts or 0,
            pending_manual_review=bool(db_rewards.pending_manual_review),
            last_purchase_at=db_rewards.last_purchase_at
        )
