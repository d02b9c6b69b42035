"""
订单相关数据模型
"""

from decimal import Decimal
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, validator
from enum import Enum


class OrderStatus(str, Enum):
    """订单状态枚举"""
    PENDING = "pending"  # 待支付
    PAID = "paid"  # 已支付
    PAYMENT_REJECTED = "payment_rejected"  # 转账被驳回
    CANCELLED = "cancelled"  # 已取消


# 可以发起支付的订单状态，转账被驳回后允许重新提交
PAYABLE_ORDER_STATUSES = (OrderStatus.PENDING.value, OrderStatus.PAYMENT_REJECTED.value)


class OrderItem(BaseModel):
    """订单项目模型，unit_price 为下单时的价格快照"""

    id: str = Field(..., description="项目ID")
    order_id: str = Field(..., description="订单ID")
    course_id: str = Field(..., description="课程ID")
    unit_price: Decimal = Field(..., ge=0, description="下单时生效单价")
    created_at: Optional[datetime] = None


class Order(BaseModel):
    """订单基础模型"""

    id: str = Field(..., description="订单ID")
    user_id: str = Field(..., description="用户ID")
    subtotal_amount: Decimal = Field(..., ge=0, description="小计")
    total_amount: Decimal = Field(..., ge=0, description="应付金额")
    order_status: str = Field(default=OrderStatus.PENDING.value, description="订单状态")
    coupon_id: Optional[str] = Field(None, description="使用的优惠券ID")
    items: List[OrderItem] = Field(default_factory=list, description="订单项目列表")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @validator('total_amount')
    def validate_total_amount(cls, v, values):
        """折扣不能使价格上涨"""
        if 'subtotal_amount' in values and v > values['subtotal_amount']:
            raise ValueError('应付金额不能超过小计')
        return v

    @property
    def discount_amount(self) -> Decimal:
        return self.subtotal_amount - self.total_amount

    @property
    def course_ids(self) -> List[str]:
        """获取所有课程ID"""
        return [item.course_id for item in self.items]


class OrderCreate(BaseModel):
    """创建订单请求"""

    course_ids: List[str] = Field(..., min_length=1, description="课程ID列表")
    coupon_id: Optional[str] = Field(None, description="优惠券ID")

    @validator('course_ids')
    def validate_course_ids(cls, v):
        """去除空白并拒绝重复课程"""
        cleaned = [course_id.strip() for course_id in v]
        if any(not course_id for course_id in cleaned):
            raise ValueError('课程ID不能为空')
        if len(set(cleaned)) != len(cleaned):
            raise ValueError('同一课程不能重复下单')
        return cleaned

    @validator('coupon_id')
    def normalize_coupon_id(cls, v):
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v


class OrderItemResponse(BaseModel):
    id: str
    course_id: str
    unit_price: Decimal
    created_at: Optional[datetime]


class OrderResponse(BaseModel):
    """订单响应模型"""

    id: str
    user_id: str
    subtotal_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    order_status: str
    coupon_id: Optional[str]
    items: List[OrderItemResponse]
    created_at: Optional[datetime]

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        """从Order模型创建响应对象"""
        return cls(
            id=order.id,
            user_id=order.user_id,
            subtotal_amount=order.subtotal_amount,
            discount_amount=order.discount_amount,
            total_amount=order.total_amount,
            order_status=order.order_status,
            coupon_id=order.coupon_id,
            items=[
                OrderItemResponse(
                    id=item.id,
                    course_id=item.course_id,
                    unit_price=item.unit_price,
                    created_at=item.created_at
                )
                for item in order.items
            ],
            created_at=order.created_at
        )
