"""
购物车数据模型
"""

from decimal import Decimal
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class CartItem(BaseModel):
    id: str = Field(..., description="购物车项目ID")
    cart_id: str = Field(..., description="购物车ID")
    course_id: str = Field(..., description="课程ID")
    created_at: Optional[datetime] = None


class Cart(BaseModel):
    """购物车，每个用户至多一个"""

    id: str = Field(..., description="购物车ID")
    user_id: str = Field(..., description="用户ID")
    items: List[CartItem] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class CartItemCreate(BaseModel):
    course_id: str = Field(..., min_length=1, description="课程ID")


class CartItemView(BaseModel):
    """购物车项目展示，价格按当前时间计算"""

    id: str
    course_id: str
    title: str
    normal_price: Decimal
    price: Decimal
    is_early_bird: bool


class CartView(BaseModel):
    id: str
    user_id: str
    items: List[CartItemView]
    total: Decimal
