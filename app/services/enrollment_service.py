"""
选课业务服务层
"""

from typing import List, Optional
import logging

from app.core.exceptions import NotFoundError, AlreadyExistsError
from app.models.enrollment import Enrollment
from app.repositories.course_repository import CourseRepository
from app.repositories.enrollment_repository import EnrollmentRepository

logger = logging.getLogger(__name__)


class EnrollmentService:
    """选课业务服务"""

    def __init__(self, enrollment_repo: EnrollmentRepository, course_repo: CourseRepository):
        self.enrollment_repo = enrollment_repo
        self.course_repo = course_repo

    async def enroll(self, user_id: str, course_id: str) -> Enrollment:
        """不经支付直接选课（免费课程等），重复选课报错"""
        course = await self.course_repo.get_by_id(course_id)
        if not course:
            raise NotFoundError("课程", course_id)

        existing = await self.enrollment_repo.get_by_user_and_course(user_id, course_id)
        if existing:
            raise AlreadyExistsError(
                "已选过该课程",
                {"user_id": user_id, "course_id": course_id, "enrollment_id": existing.id}
            )

        enrollment = await self.enrollment_repo.create(user_id, course_id)
        logger.info(f"选课成功: user_id={user_id}, course_id={course_id}")
        return enrollment

    async def enroll_paid(self, user_id: str, course_ids: List[str], payment_id: str) -> List[Enrollment]:
        """支付确认后为订单课程选课

        已有未付费选课记录的，关联支付而不重复创建；已关联其他支付的保持不变。
        """
        enrollments = []
        for course_id in course_ids:
            existing = await self.enrollment_repo.get_by_user_and_course(user_id, course_id)
            if existing is None:
                enrollments.append(await self.enrollment_repo.create(user_id, course_id, payment_id))
                continue

            if existing.payment_id is None:
                await self.enrollment_repo.attach_payment(existing.id, payment_id)
                existing = existing.model_copy(update={"payment_id": payment_id})
            else:
                logger.warning(
                    f"课程已由其他支付选课: user_id={user_id}, course_id={course_id}, "
                    f"payment_id={existing.payment_id}"
                )
            enrollments.append(existing)

        return enrollments

    async def get_enrollment(self, enrollment_id: str, user_id: Optional[str] = None) -> Enrollment:
        enrollment = await self.enrollment_repo.get_by_id(enrollment_id)
        if not enrollment or (user_id is not None and enrollment.user_id != user_id):
            raise NotFoundError("选课记录", enrollment_id)
        return enrollment

    async def get_user_enrollments(self, user_id: str) -> List[Enrollment]:
        return await self.enrollment_repo.get_user_enrollments(user_id)
