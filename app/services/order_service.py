"""
订单业务服务层
创建订单（早鸟定价 + 优惠券折扣）以及订单查询
"""

from typing import List, Optional
from datetime import datetime
import logging

from app.core.exceptions import (
    NotFoundError,
    CouponInvalidError,
    MinimumOrderNotMetError,
    AccessDeniedError,
)
from app.models.order import Order
from app.repositories.order_repository import OrderRepository
from app.repositories.course_repository import CourseRepository
from app.repositories.coupon_repository import CouponRepository
from app.services import coupon_service
from app.services.price_calculator_service import effective_price, subtotal

logger = logging.getLogger(__name__)


class OrderService:
    """订单业务服务"""

    def __init__(
        self,
        order_repo: OrderRepository,
        course_repo: CourseRepository,
        coupon_repo: CouponRepository
    ):
        self.order_repo = order_repo
        self.course_repo = course_repo
        self.coupon_repo = coupon_repo

    async def create_order(
        self,
        user_id: str,
        course_ids: List[str],
        coupon_id: Optional[str] = None,
        as_of: Optional[datetime] = None
    ) -> Order:
        """创建订单

        单价按下单时刻的生效价格快照；优惠券只在此处校验，
        使用次数在支付确认后才累加。
        """
        if as_of is None:
            as_of = datetime.now()

        # 获取课程并计算单价
        items = []
        for course_id in course_ids:
            course = await self.course_repo.get_by_id(course_id)
            if not course:
                raise NotFoundError("课程", course_id)
            items.append((course.id, effective_price(course, as_of)))

        subtotal_amount = subtotal(price for _, price in items)
        total_amount = subtotal_amount

        # 应用优惠券
        if coupon_id:
            coupon = await self.coupon_repo.get_by_id(coupon_id)
            if not coupon:
                raise NotFoundError("优惠券", coupon_id)

            validation = coupon_service.is_valid(coupon, as_of)
            if not validation.valid:
                raise CouponInvalidError(coupon_id, validation.reason.value)

            if not coupon_service.meets_minimum_order(coupon, subtotal_amount):
                raise MinimumOrderNotMetError(
                    f"订单金额未达到优惠券最低消费: {coupon.min_order_amount}",
                    {
                        "coupon_id": coupon_id,
                        "min_order_amount": str(coupon.min_order_amount),
                        "subtotal_amount": str(subtotal_amount)
                    }
                )

            discount = coupon_service.calculate_discount(coupon, subtotal_amount)
            total_amount = subtotal_amount - discount

        order = await self.order_repo.create_order_with_items(
            user_id=user_id,
            subtotal_amount=subtotal_amount,
            total_amount=total_amount,
            items=items,
            coupon_id=coupon_id
        )

        logger.info(
            f"创建订单成功: order_id={order.id}, user_id={user_id}, "
            f"subtotal={subtotal_amount}, total={total_amount}, coupon_id={coupon_id}"
        )
        return order

    async def get_order(self, order_id: str, user_id: Optional[str] = None) -> Order:
        """获取订单详情，指定user_id时校验归属"""
        order = await self.order_repo.get_by_id(order_id)
        if not order:
            raise NotFoundError("订单", order_id)

        if user_id is not None and order.user_id != user_id:
            raise AccessDeniedError("无权访问该订单", {"order_id": order_id})

        return order

    async def get_user_orders(
        self,
        user_id: str,
        limit: int = 20,
        offset: int = 0,
        status_filter: Optional[str] = None
    ) -> List[Order]:
        """获取用户订单列表"""
        return await self.order_repo.get_user_orders(
            user_id=user_id,
            limit=limit,
            offset=offset,
            status_filter=status_filter
        )
