from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, AsyncEngine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from sqlalchemy import text
from typing import AsyncGenerator, Optional
import logging

from fastapi import Request

from app.core.config import Settings

logger = logging.getLogger(__name__)

# 创建基础模型类
Base = declarative_base()


class Database:
    """数据库连接管理，持有引擎和session工厂"""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine: Optional[AsyncEngine] = None
        self.session_maker: Optional[async_sessionmaker] = None

    async def init_database(self) -> None:
        """初始化数据库连接"""
        try:
            engine_kwargs = {
                "echo": self.settings.debug,  # 调试模式下打印SQL
                "pool_pre_ping": True,  # 连接前ping检查
            }
            if self.settings.is_testing:
                engine_kwargs["poolclass"] = NullPool
            else:
                engine_kwargs["pool_recycle"] = 3600  # 连接回收时间1小时

            self.engine = create_async_engine(
                self.settings.database_url_computed,
                **engine_kwargs
            )

            self.session_maker = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False
            )

            logger.info("数据库连接初始化成功")

        except Exception as e:
            logger.error(f"数据库连接初始化失败: {e}")
            raise

    async def close_database(self) -> None:
        """关闭数据库连接"""
        if self.engine:
            await self.engine.dispose()
            logger.info("数据库连接已关闭")

    async def health_check(self) -> dict:
        """数据库健康检查"""
        try:
            if not self.engine:
                return {"status": "error", "message": "数据库引擎未初始化"}

            # 执行简单查询测试连接
            async with self.engine.begin() as conn:
                result = await conn.execute(text("SELECT 1"))
                row = result.fetchone()

            return {
                "status": "healthy",
                "message": "数据库连接正常",
                "test_query_result": row[0] if row else None
            }

        except Exception as e:
            return {
                "status": "error",
                "message": f"数据库连接失败: {str(e)}"
            }


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """获取数据库会话依赖注入函数

    每个请求一个事务：成功提交，任何异常回滚。
    """
    database: Database = request.app.state.database
    if not database.session_maker:
        raise RuntimeError("数据库未初始化，请先调用 init_database()")

    async with database.session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
