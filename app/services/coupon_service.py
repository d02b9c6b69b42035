"""
优惠券校验服务
校验优惠券可用性并计算折扣金额
"""

from typing import Optional
from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime

from app.models.coupon import Coupon, CouponType, CouponStatus, CouponValidation, CouponInvalidReason

CENT = Decimal("0.01")


def is_valid(coupon: Coupon, as_of: Optional[datetime] = None) -> CouponValidation:
    """校验优惠券状态、有效期和使用次数，按此顺序返回第一个失败原因"""
    if as_of is None:
        as_of = datetime.now()

    if coupon.status != CouponStatus.ACTIVE.value:
        return CouponValidation(valid=False, reason=CouponInvalidReason.INACTIVE)

    if coupon.start_date is not None and as_of < coupon.start_date:
        return CouponValidation(valid=False, reason=CouponInvalidReason.NOT_STARTED)

    if coupon.expire_date is not None and as_of > coupon.expire_date:
        return CouponValidation(valid=False, reason=CouponInvalidReason.EXPIRED)

    if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
        return CouponValidation(valid=False, reason=CouponInvalidReason.USAGE_LIMIT_REACHED)

    return CouponValidation(valid=True)


def meets_minimum_order(coupon: Coupon, order_amount: Decimal) -> bool:
    if coupon.min_order_amount is None:
        return True
    return order_amount >= coupon.min_order_amount


def calculate_discount(coupon: Coupon, order_amount: Decimal) -> Decimal:
    """计算折扣金额

    结果始终在 [0, order_amount] 区间内；未达到最低消费返回0。
    百分比折扣按分四舍五入。
    """
    if order_amount <= 0 or not meets_minimum_order(coupon, order_amount):
        return Decimal("0")

    if coupon.type == CouponType.PERCENTAGE:
        discount = (order_amount * coupon.discount / Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)
        if coupon.max_discount is not None:
            discount = min(discount, coupon.max_discount)
    else:
        discount = coupon.discount

    # 折扣不能超过订单金额
    return max(Decimal("0"), min(discount, order_amount))
