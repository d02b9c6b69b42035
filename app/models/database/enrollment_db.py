"""
选课数据库模型
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from app.core.database import Base


class EnrollmentDB(Base):
    """选课记录表"""

    __tablename__ = "enrollments"

    enrollment_id = Column(String(50), primary_key=True, comment="选课ID")
    user_id = Column(String(50), nullable=False, index=True, comment="用户ID")
    course_id = Column(String(50), ForeignKey("courses.course_id"), nullable=False, comment="课程ID")
    payment_id = Column(String(50), ForeignKey("payments.payment_id"), comment="关联支付ID")

    created_at = Column(DateTime, server_default=func.now(), comment="创建时间")
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), comment="更新时间")

    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),
        {'comment': '选课记录表'}
    )
