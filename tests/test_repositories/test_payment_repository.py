"""
支付Repository数据库操作测试 - 使用真实数据库
"""

import pytest
from decimal import Decimal

from app.models.payment import PaymentStatus, PaymentType
from app.repositories.payment_repository import PaymentRepository


@pytest.mark.asyncio
class TestPaymentRepository:
    """支付Repository数据库操作测试类"""

    async def test_create_credit_card_payment(self, db_session):
        payment_repo = PaymentRepository(db_session)

        payment = await payment_repo.create_payment(
            user_id="user_001",
            payment_type=PaymentType.CREDIT_CARD,
            status=PaymentStatus.SUCCESSFUL,
            amount=Decimal("1700.00"),
            omise_charge_id="chrg_test_001",
            card_last_digits="4242",
            card_brand="Visa"
        )

        retrieved = await payment_repo.get_by_charge_id("chrg_test_001")
        assert retrieved is not None
        assert retrieved.id == payment.id
        assert retrieved.payment_type == PaymentType.CREDIT_CARD
        assert retrieved.status == PaymentStatus.SUCCESSFUL
        assert retrieved.card_last_digits == "4242"

    async def test_update_status_if_pending_only_once(self, db_session):
        """测试比较并交换：第二次状态更新不生效"""
        payment_repo = PaymentRepository(db_session)
        payment = await payment_repo.create_payment(
            user_id="user_001",
            payment_type=PaymentType.BANK_TRANSFER,
            status=PaymentStatus.PENDING,
            amount=Decimal("1700.00"),
            slip_image="order_001/slip.png"
        )

        first = await payment_repo.update_status_if_pending(payment.id, PaymentStatus.SUCCESSFUL)
        second = await payment_repo.update_status_if_pending(
            payment.id, PaymentStatus.REJECTED, rejection_reason="重复审核"
        )

        assert first is True
        assert second is False

        retrieved = await payment_repo.get_by_id(payment.id)
        assert retrieved.status == PaymentStatus.SUCCESSFUL
        assert retrieved.rejection_reason is None

    async def test_find_many_filters(self, db_session):
        """测试按方式和状态筛选支付记录"""
        payment_repo = PaymentRepository(db_session)
        await payment_repo.create_payment(
            user_id="user_001",
            payment_type=PaymentType.BANK_TRANSFER,
            status=PaymentStatus.PENDING,
            amount=Decimal("100.00")
        )
        await payment_repo.create_payment(
            user_id="user_002",
            payment_type=PaymentType.BANK_TRANSFER,
            status=PaymentStatus.REJECTED,
            amount=Decimal("200.00")
        )
        await payment_repo.create_payment(
            user_id="user_001",
            payment_type=PaymentType.CREDIT_CARD,
            status=PaymentStatus.PENDING,
            amount=Decimal("300.00"),
            omise_charge_id="chrg_test_002"
        )

        pending_transfers = await payment_repo.find_many(
            payment_type=PaymentType.BANK_TRANSFER, status=PaymentStatus.PENDING
        )
        all_payments = await payment_repo.find_many()
        mine = await payment_repo.get_user_payments("user_001")

        assert len(pending_transfers) == 1
        assert pending_transfers[0].amount == Decimal("100.00")
        assert len(all_payments) == 3
        assert len(mine) == 2
