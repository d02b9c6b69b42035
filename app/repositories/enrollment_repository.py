"""
选课数据库操作层
"""

from typing import List, Optional
from datetime import datetime
import uuid

from sqlalchemy import select, update, and_, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enrollment import Enrollment
from app.models.database.enrollment_db import EnrollmentDB


class EnrollmentRepository:
    """选课数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, enrollment_id: str) -> Optional[Enrollment]:
        result = await self.db.execute(
            select(EnrollmentDB).where(EnrollmentDB.enrollment_id == enrollment_id)
        )
        db_enrollment = result.scalar_one_or_none()
        return self.to_model(db_enrollment) if db_enrollment else None

    async def get_by_user_and_course(self, user_id: str, course_id: str) -> Optional[Enrollment]:
        """获取用户在某课程上的选课记录"""
        result = await self.db.execute(
            select(EnrollmentDB)
            .where(
                and_(
                    EnrollmentDB.user_id == user_id,
                    EnrollmentDB.course_id == course_id
                )
            )
            .execution_options(populate_existing=True)
        )
        db_enrollment = result.scalar_one_or_none()
        return self.to_model(db_enrollment) if db_enrollment else None

    async def get_user_enrollments(self, user_id: str) -> List[Enrollment]:
        """获取用户全部选课记录"""
        result = await self.db.execute(
            select(EnrollmentDB)
            .where(EnrollmentDB.user_id == user_id)
            .order_by(desc(EnrollmentDB.created_at))
        )
        return [self.to_model(db_enrollment) for db_enrollment in result.scalars().all()]

    async def create(self, user_id: str, course_id: str, payment_id: Optional[str] = None) -> Enrollment:
        """创建选课记录"""
        now = datetime.now()
        db_enrollment = EnrollmentDB(
            enrollment_id=str(uuid.uuid4()),
            user_id=user_id,
            course_id=course_id,
            payment_id=payment_id,
            created_at=now,
            updated_at=now
        )
        self.db.add(db_enrollment)
        await self.db.flush()
        return self.to_model(db_enrollment)

    async def attach_payment(self, enrollment_id: str, payment_id: str) -> bool:
        """为已有选课记录关联支付"""
        result = await self.db.execute(
            update(EnrollmentDB)
            .where(EnrollmentDB.enrollment_id == enrollment_id)
            .values(payment_id=payment_id, updated_at=datetime.now())
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount > 0

    def to_model(self, db_enrollment: EnrollmentDB) -> Enrollment:
        """转换为Pydantic模型"""
        return Enrollment(
            id=db_enrollment.enrollment_id,
            user_id=db_enrollment.user_id,
            course_id=db_enrollment.course_id,
            payment_id=db_enrollment.payment_id,
            created_at=db_enrollment.created_at
        )
