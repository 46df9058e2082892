from fastapi import APIRouter, Depends, Request
from typing import List

from ..services.student_service import StudentService, StudentDashboard
from ..services.errors import ServiceError
from ..services.stats import TimelineDay
from ..models.redis_models import Role, User
from .auth import get_current_user, verify_role
from .dependencies import get_student_service
from .utilities.errors import to_http_exception
from .utilities.limiter import limiter

router = APIRouter(prefix="/student", tags=["Student Endpoints"])


def _verify_student_role(user: User):
    """Helper function to verify the current user is a student."""
    verify_role(user, Role.STUDENT)


@router.get("/dashboard", response_model=StudentDashboard, summary="My attendance overview")
@limiter.limit("60/minute")
async def get_dashboard(request: Request, user: User = Depends(get_current_user), service: StudentService = Depends(get_student_service)):
    """
    Returns the logged-in student's profile, attendance percentage and band,
    the low-attendance alert when it applies, and the most recent training
    sessions the student attended.
    """
    _verify_student_role(user)
    try:
        return await service.get_dashboard(user.username)
    except ServiceError as e:
        raise to_http_exception(e)


@router.get("/timeline", response_model=List[TimelineDay], summary="My attendance over the last 30 days")
@limiter.limit("60/minute")
async def get_timeline(request: Request, user: User = Depends(get_current_user), service: StudentService = Depends(get_student_service)):
    _verify_student_role(user)
    try:
        return await service.get_timeline(user.username)
    except ServiceError as e:
        raise to_http_exception(e)
