from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, AsyncEngine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from sqlalchemy import Table, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.sql.expression import Insert
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, Iterable, Optional
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()

engine: Optional[AsyncEngine] = None
async_session_maker: Optional[async_sessionmaker] = None


async def init_database() -> None:
    """初始化数据库引擎和会话工厂"""
    global engine, async_session_maker

    try:
        engine_options = {
            "echo": settings.debug,
            "pool_pre_ping": True,
        }
        if settings.is_testing:
            engine_options["poolclass"] = NullPool
        else:
            engine_options["pool_recycle"] = 3600

        engine = create_async_engine(settings.database_url_computed, **engine_options)
        async_session_maker = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        logger.info("数据库连接初始化成功")

    except Exception as e:
        logger.error(f"数据库连接初始化失败: {e}")
        raise


async def close_database() -> None:
    """关闭数据库连接"""
    global engine, async_session_maker

    if engine:
        await engine.dispose()
        engine = None
        async_session_maker = None
        logger.info("数据库连接已关闭")


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """
    一个会话即一个事务: 正常退出时提交，出现异常时回滚并继续抛出

    订单确认中的优惠券自增、订单写入和奖励累计依赖这一点保持原子性
    """
    if not async_session_maker:
        raise RuntimeError("数据库未初始化，请先调用 init_database()")

    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI依赖: 每个请求一个事务"""
    async with session_scope() as session:
        yield session


_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def insert_if_absent(session: AsyncSession, table: Table, values: dict, conflict_columns: list) -> Insert:
    """
    按当前连接的方言生成 INSERT ... ON CONFLICT DO NOTHING
    行已存在时不报错，之后再 SELECT ... FOR UPDATE 即可拿到行锁
    """
    dialect = session.get_bind().dialect.name
    if dialect not in _DIALECT_INSERTS:
        raise RuntimeError(f"不支持的数据库方言: {dialect}")
    return (
        _DIALECT_INSERTS[dialect](table)
        .values(**values)
        .on_conflict_do_nothing(index_elements=conflict_columns)
    )


async def create_tables(extra_statements: Iterable[str] = ()) -> None:
    """按模型建表，再执行额外的DDL(如复合索引)"""
    if not engine:
        raise RuntimeError("数据库未初始化，请先调用 init_database()")

    # 注册所有数据表
    from app.models import database  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        for statement in extra_statements:
            await conn.execute(text(statement))


class DatabaseService:
    """数据库状态查询"""

    async def health_check(self) -> dict:
        if not engine:
            return {"status": "error", "message": "数据库引擎未初始化"}

        try:
            async with engine.connect() as conn:
                result = await conn.execute(text("SELECT 1"))
                row = result.fetchone()
        except Exception as e:
            return {"status": "error", "message": f"数据库连接失败: {e}"}

        return {
            "status": "healthy",
            "message": "数据库连接正常",
            "driver": engine.url.drivername,
            "test_query_result": row[0] if row else None
        }


database_service = DatabaseService()
