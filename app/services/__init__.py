"""
服务包初始化文件
"""

from .order_service import OrderService
from .payment_service import PaymentService
from .enrollment_service import EnrollmentService
from .cart_service import CartService

__all__ = [
    "OrderService",
    "PaymentService",
    "EnrollmentService",
    "CartService"
]
