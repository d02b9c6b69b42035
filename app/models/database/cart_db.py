"""
购物车数据库模型
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base


class CartDB(Base):
    """购物车表，每个用户一个"""

    __tablename__ = "carts"

    cart_id = Column(String(50), primary_key=True, comment="购物车ID")
    user_id = Column(String(50), nullable=False, unique=True, index=True, comment="用户ID")
    created_at = Column(DateTime, server_default=func.now(), comment="创建时间")

    cart_items = relationship(
        "CartItemDB",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItemDB.created_at"
    )

    __table_args__ = (
        {'comment': '购物车表'}
    )


class CartItemDB(Base):
    """购物车项目表，同一课程在购物车中至多一条"""

    __tablename__ = "cart_items"

    item_id = Column(String(50), primary_key=True, comment="项目ID")
    cart_id = Column(
        String(50),
        ForeignKey("carts.cart_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="购物车ID"
    )
    course_id = Column(String(50), ForeignKey("courses.course_id"), nullable=False, comment="课程ID")
    created_at = Column(DateTime, server_default=func.now(), comment="创建时间")

    cart = relationship("CartDB", back_populates="cart_items")

    __table_args__ = (
        UniqueConstraint("cart_id", "course_id", name="uq_cart_item_course"),
        {'comment': '购物车项目表'}
    )
