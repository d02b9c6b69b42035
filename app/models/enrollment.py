"""
选课记录数据模型
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class Enrollment(BaseModel):
    """选课记录，payment_id 为空表示未关联已完成的支付"""

    id: str = Field(..., description="选课ID")
    user_id: str = Field(..., description="用户ID")
    course_id: str = Field(..., description="课程ID")
    payment_id: Optional[str] = Field(None, description="关联支付ID")
    created_at: Optional[datetime] = None

    @property
    def is_paid(self) -> bool:
        return self.payment_id is not None


class EnrollmentCreate(BaseModel):
    course_id: str = Field(..., min_length=1, description="课程ID")
