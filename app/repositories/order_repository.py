"""
订单数据库操作层
"""

from typing import List, Optional, Sequence, Tuple
from datetime import datetime
from decimal import Decimal
import uuid

from sqlalchemy import select, update, and_, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.order import Order, OrderItem, OrderStatus
from app.models.database.order_db import OrderDB, OrderItemDB


class OrderRepository:
    """订单数据库操作层"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        """根据订单ID获取订单（包含订单项）"""
        result = await self.db.execute(
            select(OrderDB)
            .options(selectinload(OrderDB.order_items))
            .where(OrderDB.order_id == order_id)
            .execution_options(populate_existing=True)
        )
        db_order = result.scalar_one_or_none()
        return self.to_model(db_order) if db_order else None

    async def get_user_orders(
        self,
        user_id: str,
        limit: int = 20,
        offset: int = 0,
        status_filter: Optional[str] = None
    ) -> List[Order]:
        """获取用户订单列表"""
        conditions = [OrderDB.user_id == user_id]

        if status_filter:
            conditions.append(OrderDB.order_status == status_filter)

        query = select(OrderDB).options(
            selectinload(OrderDB.order_items)
        ).where(
            and_(*conditions)
        ).order_by(desc(OrderDB.created_at)).limit(limit).offset(offset)

        result = await self.db.execute(query)
        return [self.to_model(db_order) for db_order in result.scalars().all()]

    async def create_order_with_items(
        self,
        user_id: str,
        subtotal_amount: Decimal,
        total_amount: Decimal,
        items: List[Tuple[str, Decimal]],
        coupon_id: Optional[str] = None
    ) -> Order:
        """创建订单及订单项

        订单和全部订单项在同一次flush中写入，所在事务回滚时一起消失。
        items 为 (课程ID, 单价) 列表。
        """
        now = datetime.now()
        db_order = OrderDB(
            order_id=str(uuid.uuid4()),
            user_id=user_id,
            subtotal_amount=subtotal_amount,
            total_amount=total_amount,
            coupon_id=coupon_id,
            order_status=OrderStatus.PENDING.value,
            created_at=now,
            updated_at=now
        )
        db_order.order_items = [
            OrderItemDB(
                item_id=str(uuid.uuid4()),
                course_id=course_id,
                unit_price=unit_price,
                created_at=now
            )
            for course_id, unit_price in items
        ]

        self.db.add(db_order)
        await self.db.flush()

        return self.to_model(db_order)

    async def update_order_status(
        self,
        order_id: str,
        order_status: str,
        expected_statuses: Optional[Sequence[str]] = None
    ) -> bool:
        """更新订单状态

        指定 expected_statuses 时仅当当前状态在其中才更新。
        """
        conditions = [OrderDB.order_id == order_id]
        if expected_statuses is not None:
            conditions.append(OrderDB.order_status.in_(list(expected_statuses)))

        result = await self.db.execute(
            update(OrderDB)
            .where(and_(*conditions))
            .values(order_status=order_status, updated_at=datetime.now())
            .execution_options(synchronize_session="fetch")
        )

        return result.rowcount > 0

    def to_model(self, db_order: OrderDB) -> Order:
        """转换为Pydantic模型"""
        items = [
            OrderItem(
                id=db_item.item_id,
                order_id=db_item.order_id,
                course_id=db_item.course_id,
                unit_price=db_item.unit_price,
                created_at=db_item.created_at
            )
            for db_item in db_order.order_items
        ]

        return Order(
            id=db_order.order_id,
            user_id=db_order.user_id,
            subtotal_amount=db_order.subtotal_amount,
            total_amount=db_order.total_amount,
            order_status=db_order.order_status,
            coupon_id=db_order.coupon_id,
            items=items,
            created_at=db_order.created_at,
            updated_at=db_order.updated_at
        )
