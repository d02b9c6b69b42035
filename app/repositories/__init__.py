"""
仓库包初始化文件 - 数据库访问层
"""

from .course_repository import CourseRepository
from .coupon_repository import CouponRepository
from .order_repository import OrderRepository
from .payment_repository import PaymentRepository
from .enrollment_repository import EnrollmentRepository
from .cart_repository import CartRepository

__all__ = [
    "CourseRepository",
    "CouponRepository",
    "OrderRepository",
    "PaymentRepository",
    "EnrollmentRepository",
    "CartRepository"
]
