"""
测试配置文件 - pytest fixtures和共用配置
"""

import pytest
import pytest_asyncio
from decimal import Decimal
from datetime import datetime, timedelta
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import Settings
from app.core.database import Base
from app.models.course import Course
from app.models.coupon import Coupon, CouponType
from app.models.database import CourseDB, CouponDB

# 注册全部数据表
import app.models.database  # noqa: F401


@pytest.fixture
def settings():
    """测试配置"""
    return Settings(
        environment="testing",
        database_url="sqlite+aiosqlite:///:memory:",
        omise_public_key="pkey_test_123",
        omise_secret_key="skey_test_123",
        supabase_url="http://auth.test",
        supabase_anon_key="anon_test",
        log_level="DEBUG"
    )


@pytest_asyncio.fixture(scope="function")
async def test_db_engine():
    """测试数据库引擎 - 内存SQLite"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_db_engine) -> AsyncSession:
    """测试数据库会话"""
    async_session_maker = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@pytest_asyncio.fixture
async def seeded_session(db_session):
    """预置两门课程和一张优惠券的会话"""
    now = datetime.now()
    db_session.add_all([
        CourseDB(
            course_id="course_python",
            title="Python基础入门",
            normal_price=Decimal("2000.00"),
            early_bird_price=Decimal("1500.00"),
            early_bird_start_date=now - timedelta(days=1),
            early_bird_end_date=now + timedelta(days=30),
            created_at=now,
            updated_at=now
        ),
        CourseDB(
            course_id="course_data",
            title="数据分析实战",
            normal_price=Decimal("1000.00"),
            created_at=now,
            updated_at=now
        ),
        CouponDB(
            coupon_id="coupon_20",
            coupon_code="SAVE20",
            coupon_type="percentage",
            discount=Decimal("20"),
            max_discount=Decimal("300.00"),
            usage_limit=10,
            usage_count=0,
            status="active",
            created_at=now,
            updated_at=now
        ),
    ])
    await db_session.flush()
    return db_session


@pytest.fixture
def sample_course():
    """早鸟课程：2024-01-01 至 2024-01-31 早鸟价1500"""
    return Course(
        id="course_001",
        title="Python基础入门",
        normal_price=Decimal("2000"),
        early_bird_price=Decimal("1500"),
        early_bird_start_date=datetime(2024, 1, 1),
        early_bird_end_date=datetime(2024, 1, 31)
    )


@pytest.fixture
def sample_coupon():
    """20%折扣，最多优惠300"""
    return Coupon(
        id="coupon_001",
        code="SAVE20",
        type=CouponType.PERCENTAGE,
        discount=Decimal("20"),
        max_discount=Decimal("300"),
        usage_limit=100,
        usage_count=0,
        status="active"
    )
