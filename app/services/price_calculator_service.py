"""
价格计算服务
课程早鸟价与订单小计的纯函数计算，不访问数据库
"""

from typing import Iterable, Optional
from decimal import Decimal
from datetime import datetime

from app.models.course import Course, CourseSummary


def _has_early_bird_window(course: Course) -> bool:
    return (
        course.early_bird_start_date is not None
        and course.early_bird_end_date is not None
        and course.early_bird_start_date < course.early_bird_end_date
    )


def is_in_early_bird_period(course: Course, as_of: Optional[datetime] = None) -> bool:
    """是否处于早鸟期（首尾均包含）

    只判断时间窗口，不比较早鸟价与原价，
    早鸟价不低于原价的课程在窗口内也返回True，但按原价计费。
    """
    if as_of is None:
        as_of = datetime.now()

    if course.early_bird_price is None or not _has_early_bird_window(course):
        return False

    return course.early_bird_start_date <= as_of <= course.early_bird_end_date


def effective_price(course: Course, as_of: Optional[datetime] = None) -> Decimal:
    """课程当前生效价格

    早鸟配置缺失、日期颠倒或早鸟价不低于原价时静默回退到原价。
    """
    if as_of is None:
        as_of = datetime.now()

    if (
        course.early_bird_price is not None
        and course.early_bird_price < course.normal_price
        and is_in_early_bird_period(course, as_of)
    ):
        return course.early_bird_price

    return course.normal_price


def subtotal(unit_prices: Iterable[Decimal]) -> Decimal:
    """订单小计，每门课程一行，数量恒为1"""
    return sum(unit_prices, Decimal("0"))


def summarize_course(course: Course, as_of: Optional[datetime] = None) -> CourseSummary:
    """课程价格摘要"""
    price = effective_price(course, as_of)
    return CourseSummary(
        id=course.id,
        title=course.title,
        normal_price=course.normal_price,
        effective_price=price,
        is_early_bird=price < course.normal_price
    )
