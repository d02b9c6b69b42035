"""
数据模型包初始化文件
"""

from .course import Course, CourseSummary
from .coupon import Coupon, CouponType, CouponStatus, CouponValidation, CouponInvalidReason
from .order import Order, OrderItem, OrderStatus, OrderCreate, OrderResponse
from .payment import (
    Payment,
    PaymentType,
    PaymentStatus,
    CardDetails,
    GatewayCharge
)
from .enrollment import Enrollment
from .cart import Cart, CartItem, CartView

__all__ = [
    "Course",
    "CourseSummary",
    "Coupon",
    "CouponType",
    "CouponStatus",
    "CouponValidation",
    "CouponInvalidReason",
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderCreate",
    "OrderResponse",
    "Payment",
    "PaymentType",
    "PaymentStatus",
    "CardDetails",
    "GatewayCharge",
    "Enrollment",
    "Cart",
    "CartItem",
    "CartView"
]
