"""
优惠券Repository数据库操作测试 - 使用真实数据库
"""

import pytest
from decimal import Decimal
from datetime import datetime

from app.models.coupon import CouponType
from app.models.database.coupon_db import CouponDB
from app.repositories.coupon_repository import CouponRepository


@pytest.mark.asyncio
class TestCouponRepository:
    """优惠券Repository数据库操作测试类"""

    async def test_get_coupon(self, seeded_session):
        """测试通过ID获取优惠券"""
        coupon_repo = CouponRepository(seeded_session)

        by_id = await coupon_repo.get_by_id("coupon_20")

        assert by_id is not None
        assert by_id.type == CouponType.PERCENTAGE
        assert by_id.discount == Decimal("20")
        assert by_id.max_discount == Decimal("300")

    async def test_get_nonexistent_coupon(self, seeded_session):
        coupon_repo = CouponRepository(seeded_session)

        assert await coupon_repo.get_by_id("NONEXISTENT") is None

    async def test_increment_usage(self, seeded_session):
        """测试使用次数原地自增"""
        coupon_repo = CouponRepository(seeded_session)

        assert await coupon_repo.increment_usage("coupon_20") is True
        assert await coupon_repo.increment_usage("coupon_20") is True

        coupon = await coupon_repo.get_by_id("coupon_20")
        assert coupon.usage_count == 2

    async def test_increment_usage_missing_coupon(self, seeded_session):
        coupon_repo = CouponRepository(seeded_session)
        assert await coupon_repo.increment_usage("NONEXISTENT") is False

    async def test_increment_usage_respects_limit(self, seeded_session):
        """测试达到使用上限后不再自增"""
        seeded_session.add(CouponDB(
            coupon_id="coupon_once",
            coupon_code="ONCE",
            coupon_type="fixed",
            discount=Decimal("100.00"),
            usage_limit=1,
            usage_count=0,
            status="active",
            created_at=datetime.now(),
            updated_at=datetime.now()
        ))
        await seeded_session.flush()
        coupon_repo = CouponRepository(seeded_session)

        assert await coupon_repo.increment_usage("coupon_once") is True
        assert await coupon_repo.increment_usage("coupon_once") is False

        coupon = await coupon_repo.get_by_id("coupon_once")
        assert coupon.usage_count == 1
        assert coupon.usage_count <= coupon.usage_limit
