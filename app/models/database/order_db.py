"""
订单相关数据库模型
"""

from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base


class OrderDB(Base):
    """订单数据库表"""

    __tablename__ = "orders"

    # 主键和用户信息
    order_id = Column(String(50), primary_key=True, comment="订单ID")
    user_id = Column(String(50), nullable=False, index=True, comment="用户ID")

    # 金额信息
    subtotal_amount = Column(Numeric(12, 2), nullable=False, comment="小计")
    total_amount = Column(Numeric(12, 2), nullable=False, comment="应付金额")

    coupon_id = Column(String(50), ForeignKey("coupons.coupon_id"), comment="使用的优惠券ID")
    order_status = Column(String(20), nullable=False, default="pending", index=True, comment="订单状态")

    # 时间戳
    created_at = Column(DateTime, server_default=func.now(), index=True, comment="创建时间")
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), comment="更新时间")

    # 关系映射
    order_items = relationship(
        "OrderItemDB",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemDB.created_at"
    )

    __table_args__ = (
        {'comment': '订单主表'}
    )


class OrderItemDB(Base):
    """订单项目数据库表，单价为下单时快照"""

    __tablename__ = "order_items"

    # 主键和关联信息
    item_id = Column(String(50), primary_key=True, comment="项目ID")
    order_id = Column(
        String(50),
        ForeignKey("orders.order_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="订单ID"
    )
    course_id = Column(String(50), ForeignKey("courses.course_id"), nullable=False, comment="课程ID")

    unit_price = Column(Numeric(10, 2), nullable=False, comment="下单时单价")
    created_at = Column(DateTime, server_default=func.now(), comment="创建时间")

    # 关系映射
    order = relationship("OrderDB", back_populates="order_items")

    __table_args__ = (
        {'comment': '订单项目表'}
    )
