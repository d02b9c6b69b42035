"""
支付数据库模型
"""

from sqlalchemy import Column, String, Numeric, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from app.core.database import Base


class PaymentDB(Base):
    """支付记录表，不存储卡号与CVV"""

    __tablename__ = "payments"

    payment_id = Column(String(50), primary_key=True, comment="支付ID")
    user_id = Column(String(50), nullable=False, index=True, comment="付款用户ID")
    order_id = Column(String(50), ForeignKey("orders.order_id"), index=True, comment="关联订单ID")

    payment_type = Column(String(20), nullable=False, index=True, comment="支付方式")
    status = Column(String(20), nullable=False, default="pending", index=True, comment="支付状态")
    amount = Column(Numeric(12, 2), nullable=False, comment="支付金额")

    # 信用卡支付
    omise_charge_id = Column(String(100), unique=True, index=True, comment="网关扣款ID")
    card_last_digits = Column(String(4), comment="卡号后四位")
    card_brand = Column(String(50), comment="卡品牌")
    failure_code = Column(String(100), comment="失败码")
    failure_message = Column(Text, comment="失败信息")

    # 银行转账
    slip_image = Column(String(500), comment="转账凭证路径")
    rejection_reason = Column(Text, comment="驳回原因")

    # 时间戳
    created_at = Column(DateTime, server_default=func.now(), index=True, comment="创建时间")
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), comment="更新时间")

    __table_args__ = (
        {'comment': '支付记录表'}
    )
