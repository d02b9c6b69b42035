"""
课程数据库模型
"""

from sqlalchemy import Column, String, Numeric, DateTime
from sqlalchemy.sql import func
from app.core.database import Base


class CourseDB(Base):
    """课程数据库表（本系统只读）"""

    __tablename__ = "courses"

    # 主键和基本信息
    course_id = Column(String(50), primary_key=True, comment="课程ID")
    title = Column(String(200), nullable=False, comment="课程名称")

    # 价格信息
    normal_price = Column(Numeric(10, 2), nullable=False, comment="原价")
    early_bird_price = Column(Numeric(10, 2), comment="早鸟价")
    early_bird_start_date = Column(DateTime, comment="早鸟开始时间")
    early_bird_end_date = Column(DateTime, comment="早鸟结束时间")

    # 时间戳
    created_at = Column(DateTime, server_default=func.now(), comment="创建时间")
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), comment="更新时间")

    __table_args__ = (
        {'comment': '课程信息表'}
    )
