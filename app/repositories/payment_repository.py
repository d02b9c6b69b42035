"""
支付数据库操作层
"""

from typing import Any, List, Optional
from datetime import datetime
from decimal import Decimal
import uuid

from sqlalchemy import select, update, and_, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.payment import Payment, PaymentStatus, PaymentType
from app.models.database.payment_db import PaymentDB


class PaymentRepository:
    """支付数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_payment(
        self,
        user_id: str,
        payment_type: PaymentType,
        status: PaymentStatus,
        amount: Decimal,
        order_id: Optional[str] = None,
        **fields: Any
    ) -> Payment:
        """创建支付记录

        fields 为方式相关的字段（扣款ID、卡尾号、凭证路径等）。
        """
        now = datetime.now()
        db_payment = PaymentDB(
            payment_id=str(uuid.uuid4()),
            user_id=user_id,
            order_id=order_id,
            payment_type=payment_type.value,
            status=status.value,
            amount=amount,
            created_at=now,
            updated_at=now,
            **fields
        )
        self.db.add(db_payment)
        await self.db.flush()
        return self.to_model(db_payment)

    async def get_by_id(self, payment_id: str) -> Optional[Payment]:
        """根据支付ID获取支付记录"""
        result = await self.db.execute(
            select(PaymentDB)
            .where(PaymentDB.payment_id == payment_id)
            .execution_options(populate_existing=True)
        )
        db_payment = result.scalar_one_or_none()
        return self.to_model(db_payment) if db_payment else None

    async def get_by_charge_id(self, charge_id: str) -> Optional[Payment]:
        """根据网关扣款ID获取支付记录"""
        result = await self.db.execute(
            select(PaymentDB)
            .where(PaymentDB.omise_charge_id == charge_id)
            .execution_options(populate_existing=True)
        )
        db_payment = result.scalar_one_or_none()
        return self.to_model(db_payment) if db_payment else None

    async def update_status_if_pending(
        self,
        payment_id: str,
        status: PaymentStatus,
        **fields: Any
    ) -> bool:
        """仅当当前状态为pending时更新状态（比较并交换）

        返回False表示记录不存在或已被其他请求处理。
        """
        result = await self.db.execute(
            update(PaymentDB)
            .where(
                and_(
                    PaymentDB.payment_id == payment_id,
                    PaymentDB.status == PaymentStatus.PENDING.value
                )
            )
            .values(status=status.value, updated_at=datetime.now(), **fields)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount > 0

    async def find_many(
        self,
        payment_type: Optional[PaymentType] = None,
        status: Optional[PaymentStatus] = None,
        limit: int = 20,
        offset: int = 0
    ) -> List[Payment]:
        """按条件查询支付记录（管理端）"""
        conditions = []
        if payment_type:
            conditions.append(PaymentDB.payment_type == payment_type.value)
        if status:
            conditions.append(PaymentDB.status == status.value)

        query = select(PaymentDB)
        if conditions:
            query = query.where(and_(*conditions))
        query = query.order_by(desc(PaymentDB.created_at)).limit(limit).offset(offset)

        result = await self.db.execute(query)
        return [self.to_model(db_payment) for db_payment in result.scalars().all()]

    async def get_user_payments(self, user_id: str, limit: int = 20, offset: int = 0) -> List[Payment]:
        """获取用户的支付记录"""
        result = await self.db.execute(
            select(PaymentDB)
            .where(PaymentDB.user_id == user_id)
            .order_by(desc(PaymentDB.created_at))
            .limit(limit)
            .offset(offset)
        )
        return [self.to_model(db_payment) for db_payment in result.scalars().all()]

    def to_model(self, db_payment: PaymentDB) -> Payment:
        """转换为Pydantic模型"""
        return Payment(
            id=db_payment.payment_id,
            user_id=db_payment.user_id,
            order_id=db_payment.order_id,
            payment_type=db_payment.payment_type,
            status=db_payment.status,
            amount=db_payment.amount,
            omise_charge_id=db_payment.omise_charge_id,
            card_last_digits=db_payment.card_last_digits,
            card_brand=db_payment.card_brand,
            failure_code=db_payment.failure_code,
            failure_message=db_payment.failure_message,
            slip_image=db_payment.slip_image,
            rejection_reason=db_payment.rejection_reason,
            created_at=db_payment.created_at,
            updated_at=db_payment.updated_at
        )
