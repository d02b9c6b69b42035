"""
购物车业务服务层
"""

from typing import Optional
from datetime import datetime
import logging

from sqlalchemy.exc import IntegrityError

from app.core.exceptions import NotFoundError, AlreadyExistsError, AccessDeniedError
from app.models.cart import Cart, CartItem, CartItemView, CartView
from app.repositories.cart_repository import CartRepository
from app.repositories.course_repository import CourseRepository
from app.services.price_calculator_service import summarize_course, subtotal

logger = logging.getLogger(__name__)


class CartService:
    """购物车业务服务"""

    def __init__(self, cart_repo: CartRepository, course_repo: CourseRepository):
        self.cart_repo = cart_repo
        self.course_repo = course_repo

    async def _get_or_create_cart(self, user_id: str) -> Cart:
        cart = await self.cart_repo.get_by_user_id(user_id)
        if cart is None:
            cart = await self.cart_repo.create_cart(user_id)
            logger.info(f"创建购物车: user_id={user_id}, cart_id={cart.id}")
        return cart

    async def get_cart(self, user_id: str, as_of: Optional[datetime] = None) -> CartView:
        """获取购物车，价格按当前早鸟规则计算"""
        cart = await self._get_or_create_cart(user_id)
        courses = await self.course_repo.get_by_ids([item.course_id for item in cart.items])

        views = []
        for item in cart.items:
            course = courses.get(item.course_id)
            if course is None:
                # 课程已下架的项目不展示
                continue
            summary = summarize_course(course, as_of)
            views.append(CartItemView(
                id=item.id,
                course_id=course.id,
                title=course.title,
                normal_price=course.normal_price,
                price=summary.effective_price,
                is_early_bird=summary.is_early_bird
            ))

        return CartView(
            id=cart.id,
            user_id=user_id,
            items=views,
            total=subtotal(view.price for view in views)
        )

    async def add_item(self, user_id: str, course_id: str) -> CartItem:
        """添加课程到购物车，同一课程不能重复添加"""
        course = await self.course_repo.get_by_id(course_id)
        if not course:
            raise NotFoundError("课程", course_id)

        cart = await self._get_or_create_cart(user_id)
        if await self.cart_repo.get_item(cart.id, course_id):
            raise AlreadyExistsError("课程已在购物车中", {"cart_id": cart.id, "course_id": course_id})

        try:
            item = await self.cart_repo.add_item(cart.id, course_id)
        except IntegrityError as e:
            # 并发添加同一课程，唯一约束兜底
            raise AlreadyExistsError("课程已在购物车中", {"cart_id": cart.id, "course_id": course_id}) from e

        logger.info(f"添加购物车项目: user_id={user_id}, course_id={course_id}")
        return item

    async def remove_item(self, user_id: str, item_id: str) -> None:
        """删除购物车项目，只能删除自己购物车中的项目"""
        item = await self.cart_repo.get_item_by_id(item_id)
        if not item:
            raise NotFoundError("购物车项目", item_id)

        cart = await self.cart_repo.get_by_id(item.cart_id)
        if cart is None or cart.user_id != user_id:
            raise AccessDeniedError("无权删除该购物车项目", {"item_id": item_id})

        await self.cart_repo.delete_item(item_id)
        logger.info(f"删除购物车项目: user_id={user_id}, item_id={item_id}")
