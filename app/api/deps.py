"""
API依赖：配置、数据库会话、外部客户端、当前用户、服务装配
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, SupabaseAuthClient
from app.core.config import Settings
from app.core.database import get_db_session
from app.core.omise import OmiseClient
from app.core.storage import SlipStorage
from app.repositories.cart_repository import CartRepository
from app.repositories.coupon_repository import CouponRepository
from app.repositories.course_repository import CourseRepository
from app.repositories.enrollment_repository import EnrollmentRepository
from app.repositories.order_repository import OrderRepository
from app.repositories.payment_repository import PaymentRepository
from app.services.cart_service import CartService
from app.services.enrollment_service import EnrollmentService
from app.services.order_service import OrderService
from app.services.payment_service import PaymentService

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_client(request: Request) -> SupabaseAuthClient:
    return request.app.state.auth_client


def get_gateway(request: Request) -> OmiseClient:
    return request.app.state.gateway


def get_storage(request: Request) -> SlipStorage:
    return request.app.state.storage


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
) -> AuthenticatedUser:
    """解析bearer token得到当前用户"""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="缺少访问令牌",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await auth_client.get_user(credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="访问令牌无效或已过期",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def is_admin(user: AuthenticatedUser, settings: Settings) -> bool:
    return user.role == settings.admin_role


async def require_admin(
    current_user: AuthenticatedUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> AuthenticatedUser:
    """仅管理员可访问"""
    if not is_admin(current_user, settings):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="需要管理员权限")
    return current_user


def get_order_service(db: AsyncSession = Depends(get_db_session)) -> OrderService:
    return OrderService(OrderRepository(db), CourseRepository(db), CouponRepository(db))


def get_enrollment_service(db: AsyncSession = Depends(get_db_session)) -> EnrollmentService:
    return EnrollmentService(EnrollmentRepository(db), CourseRepository(db))


def get_cart_service(db: AsyncSession = Depends(get_db_session)) -> CartService:
    return CartService(CartRepository(db), CourseRepository(db))


def get_payment_service(
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
    gateway: OmiseClient = Depends(get_gateway),
    storage: SlipStorage = Depends(get_storage),
) -> PaymentService:
    return PaymentService(
        payment_repo=PaymentRepository(db),
        order_repo=OrderRepository(db),
        coupon_repo=CouponRepository(db),
        enrollment_service=EnrollmentService(EnrollmentRepository(db), CourseRepository(db)),
        gateway=gateway,
        storage=storage,
        settings=settings
    )
