"""
幸运转盘数据库操作层
"""

import uuid
from typing import List, Optional
from datetime import datetime, timezone

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.reward import SpinReward, UserSpinsResponse
from app.core.database import insert_if_absent
from app.models.database.reward_db import SpinRewardDB, UserSpinsDB, SpinHistoryDB


class SpinRepository:
    """转盘数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active_rewards(self) -> List[SpinRewardDB]:
        """获取启用的转盘奖品"""
        result = await self.db.execute(
            select(SpinRewardDB)
            .where(SpinRewardDB.is_active.is_(True))
            .order_by(desc(SpinRewardDB.probability))
        )
        return list(result.scalars().all())

    async def create_rewards(self, rewards: List[SpinReward]) -> List[SpinRewardDB]:
        """批量写入转盘奖品"""
        db_rewards = [
            SpinRewardDB(
                reward_id=reward.reward_id,
                name=reward.name,
                reward_type=reward.reward_type.value,
                reward_value=reward.reward_value,
                probability=reward.probability,
                is_active=True
            )
            for reward in rewards
        ]
        self.db.add_all(db_rewards)
        await self.db.flush()
        return db_rewards

    async def get_user_spins(self, user_id: str) -> Optional[UserSpinsDB]:
        """获取用户转盘次数"""
        result = await self.db.execute(
            select(UserSpinsDB).where(UserSpinsDB.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_user_spins_for_update(self, user_id: str) -> UserSpinsDB:
        """加行锁获取用户转盘次数，不存在时先创建(并发创建时不冲突)"""
        await self.db.execute(insert_if_absent(
            self.db,
            UserSpinsDB.__table__,
            dict(user_id=user_id, spins_available=0, total_spins=0, total_winnings=0),
            ["user_id"]
        ))
        result = await self.db.execute(
            select(UserSpinsDB)
            .where(UserSpinsDB.user_id == user_id)
            .with_for_update()
        )
        return result.scalar_one()

    async def save(self, db_spins: UserSpinsDB) -> UserSpinsDB:
        await self.db.flush()
        return db_spins

    async def add_history(self, user_id: str, reward: SpinReward) -> SpinHistoryDB:
        """记录一次转盘结果"""
        history = SpinHistoryDB(
            spin_id=f"SPIN_{uuid.uuid4().hex[:16].upper()}",
            user_id=user_id,
            reward_id=reward.reward_id,
            reward_type=reward.reward_type.value,
            reward_value=reward.reward_value,
            reward_name=reward.name,
            created_at=datetime.now(timezone.utc)
        )
        self.db.add(history)
        await self.db.flush()
        return history

    def to_reward_model(self, db_reward: SpinRewardDB) -> SpinReward:
        return SpinReward(
            reward_id=db_reward.reward_id,
            name=db_reward.name,
            reward_type=db_reward.reward_type,
            reward_value=db_reward.reward_value,
            probability=db_reward.probability
        )

    def to_spins_model(self, db_spins: UserSpinsDB) -> UserSpinsResponse:
        return UserSpinsResponse(
            user_id=db_spins.user_id,
            spins_available=db_spins.spins_available or 0,
            total_spins=db_spins.total_spins or 0,
            total_winnings=db_spins.total_winnings or 0,
            last_spin_at=db_spins.last_spin_at
        )
