from typing import List

from fastapi import APIRouter, Depends, status

from app.api.deps import get_current_user, get_enrollment_service
from app.core.auth import AuthenticatedUser
from app.models.enrollment import Enrollment, EnrollmentCreate
from app.services.enrollment_service import EnrollmentService

router = APIRouter(prefix="/enrollments", tags=["选课"])


@router.post("", response_model=Enrollment, status_code=status.HTTP_201_CREATED)
async def create_enrollment(
    request: EnrollmentCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    enrollment_service: EnrollmentService = Depends(get_enrollment_service),
):
    """不经支付直接选课"""
    return await enrollment_service.enroll(current_user.id, request.course_id)


@router.get("", response_model=List[Enrollment])
async def list_my_enrollments(
    current_user: AuthenticatedUser = Depends(get_current_user),
    enrollment_service: EnrollmentService = Depends(get_enrollment_service),
):
    return await enrollment_service.get_user_enrollments(current_user.id)


@router.get("/{enrollment_id}", response_model=Enrollment)
async def get_enrollment(
    enrollment_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    enrollment_service: EnrollmentService = Depends(get_enrollment_service),
):
    return await enrollment_service.get_enrollment(enrollment_id, user_id=current_user.id)
