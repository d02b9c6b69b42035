"""
订单Repository数据库操作测试 - 使用真实数据库
"""

import pytest
from decimal import Decimal

from app.models.order import OrderStatus, PAYABLE_ORDER_STATUSES
from app.repositories.order_repository import OrderRepository


async def create_sample_order(order_repo: OrderRepository, user_id: str = "test_user_123"):
    return await order_repo.create_order_with_items(
        user_id=user_id,
        subtotal_amount=Decimal("2500.00"),
        total_amount=Decimal("2200.00"),
        items=[
            ("course_python", Decimal("1500.00")),
            ("course_data", Decimal("1000.00")),
        ],
        coupon_id="coupon_20"
    )


@pytest.mark.asyncio
class TestOrderRepository:
    """订单Repository数据库操作测试类"""

    async def test_create_order_with_items(self, seeded_session):
        """测试创建包含订单项的订单"""
        order_repo = OrderRepository(seeded_session)

        order = await create_sample_order(order_repo)

        assert order.order_status == OrderStatus.PENDING.value
        assert order.coupon_id == "coupon_20"
        assert order.discount_amount == Decimal("300.00")
        assert sorted(order.course_ids) == ["course_data", "course_python"]
        assert all(item.order_id == order.id for item in order.items)

        # 重新读取
        retrieved = await order_repo.get_by_id(order.id)
        assert retrieved is not None
        assert retrieved.total_amount == Decimal("2200.00")
        assert len(retrieved.items) == 2

    async def test_get_nonexistent_order(self, seeded_session):
        order_repo = OrderRepository(seeded_session)
        assert await order_repo.get_by_id("NONEXISTENT_ORDER_ID") is None

    async def test_get_user_orders(self, seeded_session):
        """测试获取用户订单列表"""
        order_repo = OrderRepository(seeded_session)
        await create_sample_order(order_repo)
        await create_sample_order(order_repo)
        await create_sample_order(order_repo, user_id="other_user")

        orders = await order_repo.get_user_orders("test_user_123")
        paid_orders = await order_repo.get_user_orders("test_user_123", status_filter=OrderStatus.PAID.value)

        assert len(orders) == 2
        assert all(order.user_id == "test_user_123" for order in orders)
        assert paid_orders == []

    async def test_update_order_status_with_expected_statuses(self, seeded_session):
        """测试条件更新订单状态：当前状态不符时不更新"""
        order_repo = OrderRepository(seeded_session)
        order = await create_sample_order(order_repo)

        assert await order_repo.update_order_status(
            order.id, OrderStatus.PAID.value, expected_statuses=PAYABLE_ORDER_STATUSES
        ) is True
        # 已支付订单不能再次支付
        assert await order_repo.update_order_status(
            order.id, OrderStatus.PAID.value, expected_statuses=PAYABLE_ORDER_STATUSES
        ) is False

        retrieved = await order_repo.get_by_id(order.id)
        assert retrieved.order_status == OrderStatus.PAID.value

    async def test_rejected_order_can_be_paid(self, seeded_session):
        order_repo = OrderRepository(seeded_session)
        order = await create_sample_order(order_repo)

        await order_repo.update_order_status(
            order.id, OrderStatus.PAYMENT_REJECTED.value, expected_statuses=(OrderStatus.PENDING.value,)
        )

        assert await order_repo.update_order_status(
            order.id, OrderStatus.PAID.value, expected_statuses=PAYABLE_ORDER_STATUSES
        ) is True
