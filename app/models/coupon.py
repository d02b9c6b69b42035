"""
优惠券相关数据模型
"""

from decimal import Decimal
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field
from enum import Enum


class CouponType(str, Enum):
    """优惠券类型枚举"""
    PERCENTAGE = "percentage"  # 百分比折扣券, discount 取值 0-100
    FIXED = "fixed"  # 固定金额折扣券


class CouponStatus(str, Enum):
    """优惠券状态枚举"""
    ACTIVE = "active"
    INACTIVE = "inactive"


class CouponInvalidReason(str, Enum):
    """优惠券不可用原因"""
    INACTIVE = "INACTIVE"
    NOT_STARTED = "NOT_STARTED"
    EXPIRED = "EXPIRED"
    USAGE_LIMIT_REACHED = "USAGE_LIMIT_REACHED"


class Coupon(BaseModel):
    """优惠券基础模型"""

    id: str = Field(..., description="优惠券ID")
    code: str = Field(..., min_length=1, max_length=50, description="优惠券代码")
    type: CouponType = Field(..., description="优惠券类型")
    discount: Decimal = Field(..., ge=0, description="折扣值")
    min_order_amount: Optional[Decimal] = Field(None, ge=0, description="最小订单金额")
    max_discount: Optional[Decimal] = Field(None, ge=0, description="百分比券最大折扣金额")
    usage_limit: Optional[int] = Field(None, ge=0, description="总使用次数限制")
    usage_count: int = Field(default=0, ge=0, description="已使用次数")
    status: str = Field(default=CouponStatus.ACTIVE.value, description="优惠券状态")
    start_date: Optional[datetime] = Field(None, description="有效开始时间")
    expire_date: Optional[datetime] = Field(None, description="有效结束时间")


class CouponValidation(BaseModel):
    """优惠券校验结果"""

    valid: bool = Field(..., description="是否有效")
    reason: Optional[CouponInvalidReason] = Field(None, description="不可用原因")
