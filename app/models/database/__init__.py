"""
数据库模型包初始化文件
"""

from .course_db import CourseDB
from .coupon_db import CouponDB
from .order_db import OrderDB, OrderItemDB
from .payment_db import PaymentDB
from .enrollment_db import EnrollmentDB
from .cart_db import CartDB, CartItemDB

__all__ = [
    "CourseDB",
    "CouponDB",
    "OrderDB",
    "OrderItemDB",
    "PaymentDB",
    "EnrollmentDB",
    "CartDB",
    "CartItemDB"
]
