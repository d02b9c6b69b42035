"""
优惠券数据库操作层
"""

from typing import Optional
from datetime import datetime

from sqlalchemy import select, update, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.coupon import Coupon
from app.models.database.coupon_db import CouponDB


class CouponRepository:
    """优惠券数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, coupon_id: str) -> Optional[Coupon]:
        """根据优惠券ID获取优惠券"""
        result = await self.db.execute(
            select(CouponDB)
            .where(CouponDB.coupon_id == coupon_id)
            .execution_options(populate_existing=True)
        )
        db_coupon = result.scalar_one_or_none()
        return self.to_model(db_coupon) if db_coupon else None

    async def increment_usage(self, coupon_id: str) -> bool:
        """使用次数原地加一

        由数据库完成自增，并发核销不会丢失更新；已达使用上限时不更新，返回False。
        """
        result = await self.db.execute(
            update(CouponDB)
            .where(
                and_(
                    CouponDB.coupon_id == coupon_id,
                    or_(
                        CouponDB.usage_limit.is_(None),
                        CouponDB.usage_count < CouponDB.usage_limit
                    )
                )
            )
            .values(
                usage_count=CouponDB.usage_count + 1,
                updated_at=datetime.now()
            )
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount > 0

    def to_model(self, db_coupon: CouponDB) -> Coupon:
        """转换为Pydantic模型"""
        return Coupon(
            id=db_coupon.coupon_id,
            code=db_coupon.coupon_code,
            type=db_coupon.coupon_type,
            discount=db_coupon.discount,
            min_order_amount=db_coupon.min_order_amount,
            max_discount=db_coupon.max_discount,
            usage_limit=db_coupon.usage_limit,
            usage_count=db_coupon.usage_count or 0,
            status=db_coupon.status,
            start_date=db_coupon.start_date,
            expire_date=db_coupon.expire_date
        )
