"""
课程商城数据库表创建脚本
"""

import asyncio
import sys
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy import text
from app.core.config import Settings
from app.core.database import Base

# 导入所有数据库模型以确保表被注册
import app.models.database  # noqa: F401


async def create_database_if_not_exists(settings: Settings):
    """创建数据库（如果不存在）"""
    # 连接到PostgreSQL服务器（不指定数据库）
    server_url = settings.database_url_computed.replace(f"/{settings.db_name}", "/postgres")

    engine = create_async_engine(server_url, isolation_level="AUTOCOMMIT")

    async with engine.connect() as conn:
        result = await conn.execute(
            text("SELECT 1 FROM pg_database WHERE datname = :db_name"),
            {"db_name": settings.db_name}
        )

        if not result.fetchone():
            await conn.execute(text(f'CREATE DATABASE "{settings.db_name}"'))
            print(f"数据库 '{settings.db_name}' 创建成功")
        else:
            print(f"数据库 '{settings.db_name}' 已存在")

    await engine.dispose()


async def create_tables(settings: Settings):
    """创建所有数据表"""
    engine = create_async_engine(settings.database_url_computed)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        print("所有数据表创建成功")

    await engine.dispose()


async def create_indexes(settings: Settings):
    """创建额外的索引"""
    engine = create_async_engine(settings.database_url_computed)

    indexes = [
        "CREATE INDEX IF NOT EXISTS idx_orders_user_status ON orders(user_id, order_status);",
        "CREATE INDEX IF NOT EXISTS idx_order_items_course ON order_items(course_id);",
        "CREATE INDEX IF NOT EXISTS idx_payments_type_status ON payments(payment_type, status, created_at);",
        "CREATE INDEX IF NOT EXISTS idx_enrollments_course ON enrollments(course_id);",
    ]

    async with engine.begin() as conn:
        for index_sql in indexes:
            await conn.execute(text(index_sql))
        print("所有索引创建成功")

    await engine.dispose()


async def insert_sample_data(settings: Settings):
    """插入示例课程和优惠券"""
    engine = create_async_engine(settings.database_url_computed)
    now = datetime.now()

    sample_courses = [
        {
            "course_id": "python_basic_001",
            "title": "Python基础入门",
            "normal_price": Decimal("2000.00"),
            "early_bird_price": Decimal("1500.00"),
            "early_bird_start_date": now - timedelta(days=7),
            "early_bird_end_date": now + timedelta(days=23),
        },
        {
            "course_id": "data_analysis_001",
            "title": "数据分析实战",
            "normal_price": Decimal("2900.00"),
            "early_bird_price": None,
            "early_bird_start_date": None,
            "early_bird_end_date": None,
        },
    ]

    sample_coupons = [
        {
            "coupon_id": "welcome_2024",
            "coupon_code": "WELCOME20",
            "coupon_type": "percentage",
            "discount": Decimal("20"),
            "min_order_amount": Decimal("1000.00"),
            "max_discount": Decimal("300.00"),
            "usage_limit": 1000,
            "start_date": now,
            "expire_date": now + timedelta(days=90),
        },
        {
            "coupon_id": "fixed_200",
            "coupon_code": "SAVE200",
            "coupon_type": "fixed",
            "discount": Decimal("200.00"),
            "min_order_amount": None,
            "max_discount": None,
            "usage_limit": None,
            "start_date": None,
            "expire_date": None,
        },
    ]

    async with engine.begin() as conn:
        for course in sample_courses:
            result = await conn.execute(
                text("SELECT 1 FROM courses WHERE course_id = :course_id"),
                {"course_id": course["course_id"]}
            )
            if result.fetchone():
                print(f"课程已存在: {course['title']}")
                continue
            await conn.execute(
                text("""
                    INSERT INTO courses (
                        course_id, title, normal_price, early_bird_price,
                        early_bird_start_date, early_bird_end_date
                    ) VALUES (
                        :course_id, :title, :normal_price, :early_bird_price,
                        :early_bird_start_date, :early_bird_end_date
                    )
                """),
                course
            )
            print(f"插入课程: {course['title']}")

        for coupon in sample_coupons:
            result = await conn.execute(
                text("SELECT 1 FROM coupons WHERE coupon_id = :coupon_id"),
                {"coupon_id": coupon["coupon_id"]}
            )
            if result.fetchone():
                print(f"优惠券已存在: {coupon['coupon_code']}")
                continue
            await conn.execute(
                text("""
                    INSERT INTO coupons (
                        coupon_id, coupon_code, coupon_type, discount, min_order_amount,
                        max_discount, usage_limit, usage_count, status, start_date, expire_date
                    ) VALUES (
                        :coupon_id, :coupon_code, :coupon_type, :discount, :min_order_amount,
                        :max_discount, :usage_limit, 0, 'active', :start_date, :expire_date
                    )
                """),
                coupon
            )
            print(f"插入优惠券: {coupon['coupon_code']}")

    await engine.dispose()


async def main():
    """主函数"""
    settings = Settings()
    print("开始创建课程商城数据库表...")

    try:
        await create_database_if_not_exists(settings)
        await create_tables(settings)
        await create_indexes(settings)
        await insert_sample_data(settings)
        print("课程商城数据库初始化完成！")

    except Exception as e:
        print(f"数据库初始化失败: {e}")
        raise


if __name__ == "__main__":
    asyncio.run(main())
