"""
课程相关数据模型
"""

from decimal import Decimal
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class Course(BaseModel):
    """课程基础模型（本系统只读）

    早鸟价配置不做校验：价格不低于原价、日期缺失或颠倒时，
    定价引擎静默回退到原价。
    """

    id: str = Field(..., description="课程唯一标识")
    title: str = Field(..., description="课程名称")
    normal_price: Decimal = Field(..., ge=0, description="课程原价")
    early_bird_price: Optional[Decimal] = Field(None, ge=0, description="早鸟价")
    early_bird_start_date: Optional[datetime] = Field(None, description="早鸟开始时间")
    early_bird_end_date: Optional[datetime] = Field(None, description="早鸟结束时间")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CourseSummary(BaseModel):
    """课程摘要，附带当前生效价格"""

    id: str
    title: str
    normal_price: Decimal
    effective_price: Decimal
    is_early_bird: bool
