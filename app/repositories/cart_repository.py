"""
购物车数据库操作层
"""

from typing import Optional
from datetime import datetime
import uuid

from sqlalchemy import select, delete, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.cart import Cart, CartItem
from app.models.database.cart_db import CartDB, CartItemDB


class CartRepository:
    """购物车数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_user_id(self, user_id: str) -> Optional[Cart]:
        """获取用户购物车（包含项目）"""
        result = await self.db.execute(
            select(CartDB)
            .options(selectinload(CartDB.cart_items))
            .where(CartDB.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        db_cart = result.scalar_one_or_none()
        return self.to_model(db_cart) if db_cart else None

    async def get_by_id(self, cart_id: str) -> Optional[Cart]:
        result = await self.db.execute(
            select(CartDB)
            .options(selectinload(CartDB.cart_items))
            .where(CartDB.cart_id == cart_id)
            .execution_options(populate_existing=True)
        )
        db_cart = result.scalar_one_or_none()
        return self.to_model(db_cart) if db_cart else None

    async def create_cart(self, user_id: str) -> Cart:
        """创建空购物车"""
        db_cart = CartDB(
            cart_id=str(uuid.uuid4()),
            user_id=user_id,
            created_at=datetime.now()
        )
        db_cart.cart_items = []
        self.db.add(db_cart)
        await self.db.flush()
        return self.to_model(db_cart)

    async def get_item(self, cart_id: str, course_id: str) -> Optional[CartItem]:
        """查找购物车中某课程的项目"""
        result = await self.db.execute(
            select(CartItemDB).where(
                and_(
                    CartItemDB.cart_id == cart_id,
                    CartItemDB.course_id == course_id
                )
            )
        )
        db_item = result.scalar_one_or_none()
        return self.item_to_model(db_item) if db_item else None

    async def get_item_by_id(self, item_id: str) -> Optional[CartItem]:
        result = await self.db.execute(
            select(CartItemDB).where(CartItemDB.item_id == item_id)
        )
        db_item = result.scalar_one_or_none()
        return self.item_to_model(db_item) if db_item else None

    async def add_item(self, cart_id: str, course_id: str) -> CartItem:
        """添加购物车项目"""
        db_item = CartItemDB(
            item_id=str(uuid.uuid4()),
            cart_id=cart_id,
            course_id=course_id,
            created_at=datetime.now()
        )
        self.db.add(db_item)
        await self.db.flush()
        return self.item_to_model(db_item)

    async def delete_item(self, item_id: str) -> bool:
        """删除购物车项目"""
        result = await self.db.execute(
            delete(CartItemDB)
            .where(CartItemDB.item_id == item_id)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount > 0

    def item_to_model(self, db_item: CartItemDB) -> CartItem:
        return CartItem(
            id=db_item.item_id,
            cart_id=db_item.cart_id,
            course_id=db_item.course_id,
            created_at=db_item.created_at
        )

    def to_model(self, db_cart: CartDB) -> Cart:
        """转换为Pydantic模型"""
        return Cart(
            id=db_cart.cart_id,
            user_id=db_cart.user_id,
            items=[self.item_to_model(db_item) for db_item in db_cart.cart_items],
            created_at=db_cart.created_at
        )
