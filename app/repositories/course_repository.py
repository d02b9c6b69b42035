"""
课程数据库操作层（只读）
"""

from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.course import Course
from app.models.database.course_db import CourseDB


class CourseRepository:
    """课程数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, course_id: str) -> Optional[Course]:
        """根据课程ID获取课程"""
        result = await self.db.execute(
            select(CourseDB).where(CourseDB.course_id == course_id)
        )
        db_course = result.scalar_one_or_none()
        return self.to_model(db_course) if db_course else None

    async def get_by_ids(self, course_ids: List[str]) -> Dict[str, Course]:
        """批量获取课程，返回 课程ID -> 课程"""
        if not course_ids:
            return {}
        result = await self.db.execute(
            select(CourseDB).where(CourseDB.course_id.in_(course_ids))
        )
        return {
            db_course.course_id: self.to_model(db_course)
            for db_course in result.scalars().all()
        }

    def to_model(self, db_course: CourseDB) -> Course:
        """转换为Pydantic模型"""
        return Course(
            id=db_course.course_id,
            title=db_course.title,
            normal_price=db_course.normal_price,
            early_bird_price=db_course.early_bird_price,
            early_bird_start_date=db_course.early_bird_start_date,
            early_bird_end_date=db_course.early_bird_end_date,
            created_at=db_course.created_at,
            updated_at=db_course.updated_at
        )
