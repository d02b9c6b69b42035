"""
支付相关数据模型
"""

from decimal import Decimal
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, validator
from enum import Enum


class PaymentType(str, Enum):
    """支付方式枚举"""
    CREDIT_CARD = "Credit Card"
    BANK_TRANSFER = "Bank Transfer"


class PaymentStatus(str, Enum):
    """支付状态枚举，pending 是唯一的非终态"""
    PENDING = "pending"
    SUCCESSFUL = "successful"
    FAILED = "failed"
    REJECTED = "rejected"


class Payment(BaseModel):
    """支付记录模型

    只保存网关签发的标识和卡片尾号/品牌，不保存卡号和CVV。
    """

    id: str = Field(..., description="支付ID")
    user_id: str = Field(..., description="付款用户ID")
    order_id: Optional[str] = Field(None, description="关联订单ID")
    payment_type: PaymentType = Field(..., description="支付方式")
    status: PaymentStatus = Field(default=PaymentStatus.PENDING, description="支付状态")
    amount: Decimal = Field(..., ge=0, description="支付金额")
    omise_charge_id: Optional[str] = Field(None, description="网关扣款ID")
    card_last_digits: Optional[str] = Field(None, description="卡号后四位")
    card_brand: Optional[str] = Field(None, description="卡品牌")
    failure_code: Optional[str] = None
    failure_message: Optional[str] = None
    slip_image: Optional[str] = Field(None, description="转账凭证路径")
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING


class CardDetails(BaseModel):
    """信用卡信息，仅在内存中传给网关"""

    name: str = Field(..., min_length=1, description="持卡人姓名")
    number: str = Field(..., min_length=12, max_length=19, description="卡号")
    expiration_month: int = Field(..., ge=1, le=12, description="到期月")
    expiration_year: int = Field(..., ge=2000, description="到期年")
    security_code: str = Field(..., min_length=3, max_length=4, description="CVV")

    @validator('number')
    def validate_number(cls, v):
        """卡号只允许数字，去除空格"""
        cleaned = v.replace(" ", "")
        if not cleaned.isdigit():
            raise ValueError('卡号只能包含数字')
        return cleaned

    @validator('security_code')
    def validate_security_code(cls, v):
        if not v.isdigit():
            raise ValueError('CVV只能包含数字')
        return v

    @property
    def last_digits(self) -> str:
        return self.number[-4:]

    def __repr__(self) -> str:
        return f"CardDetails(name={self.name!r}, last_digits={self.last_digits!r})"

    __str__ = __repr__


class CreateChargeRequest(BaseModel):
    """信用卡支付请求"""

    order_id: str = Field(..., description="订单ID")
    card: CardDetails
    description: Optional[str] = Field(None, max_length=255)


class ApprovePaymentRequest(BaseModel):
    """转账审核请求"""

    approved: bool = Field(..., description="是否通过")
    reason: Optional[str] = Field(None, description="驳回原因")


class ChargeResult(BaseModel):
    """信用卡支付结果"""

    payment: Payment
    order_status: str
    enrolled_course_ids: List[str] = Field(default_factory=list)


class ApprovalResult(BaseModel):
    """转账审核结果"""

    payment: Payment
    order_status: Optional[str] = None
    enrolled_course_ids: List[str] = Field(default_factory=list)


class PaymentListQuery(BaseModel):
    """支付列表查询条件"""

    payment_type: Optional[PaymentType] = None
    status: Optional[PaymentStatus] = None
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class GatewayCharge(BaseModel):
    """网关扣款结果"""

    id: str
    amount: Decimal  # 主货币单位
    currency: str
    paid: bool
    status: Optional[str] = None
    failure_code: Optional[str] = None
    failure_message: Optional[str] = None
    card_last_digits: Optional[str] = None
    card_brand: Optional[str] = None

    @property
    def payment_status(self) -> PaymentStatus:
        """网关结果对应的本地支付状态，结果未知时保持pending"""
        if self.paid:
            return PaymentStatus.SUCCESSFUL
        if self.failure_code:
            return PaymentStatus.FAILED
        return PaymentStatus.PENDING


class ChargeLookup(BaseModel):
    """扣款查询结果，payment 为本地对应的支付记录"""

    charge: GatewayCharge
    payment: Optional[Payment] = None
