import logging
import datetime as dt
from typing import List, Optional

from pydantic import BaseModel

from ..models.store_models import Student, TrainingRecord
from . import stats
from .base_service import StoreService
from .errors import NotFoundError

logger = logging.getLogger(__name__)

RECENT_TRAININGS_LIMIT = 5
LOW_ATTENDANCE_ALERT = (
    "Your attendance is below 70%. Please ensure regular attendance "
    "to maintain good academic standing."
)
# Wording of the low band on the student's own dashboard.
LOW_BAND_LABEL = "Needs Improvement"


class StudentDashboard(BaseModel):
    student: Student
    attendance_percentage: int
    days_recorded: int
    trainings_completed: int
    performance: str
    low_attendance: bool
    alert: Optional[str] = None
    recent_trainings: List[TrainingRecord]


class StudentService(StoreService):
    """
    Business logic of the student view. Every method works on behalf of the
    authenticated student whose id is passed in.
    """

    async def get_profile(self, student_id: str) -> Student:
        (students,) = await self._read(self.redis_client.get_students())
        for student in students:
            if student.id == student_id:
                return student
        logger.warning(f"Session of student '{student_id}' refers to a student that no longer exists.")
        raise NotFoundError(f"Student '{student_id}' not found.")

    async def get_dashboard(self, student_id: str) -> StudentDashboard:
        student = await self.get_profile(student_id)
        attendance, trainings = await self._read(
            self.redis_client.get_attendance(),
            self.redis_client.get_trainings(),
        )
        own_records = stats.records_for_student(student_id, attendance)
        percentage = stats.percentage_of(own_records)
        completed = stats.attended_trainings(student_id, own_records, trainings)
        low = stats.is_low_attendance(percentage)

        return StudentDashboard(
            student=student,
            attendance_percentage=percentage,
            days_recorded=len(own_records),
            trainings_completed=len(completed),
            performance=LOW_BAND_LABEL if low else stats.status_label(percentage),
            low_attendance=low,
            alert=LOW_ATTENDANCE_ALERT if low else None,
            recent_trainings=list(reversed(completed[-RECENT_TRAININGS_LIMIT:])),
        )

    async def get_timeline(self, student_id: str, today: Optional[dt.date] = None,
                           days: int = stats.TIMELINE_DAYS) -> List[stats.TimelineDay]:
        await self.get_profile(student_id)
        (attendance,) = await self._read(self.redis_client.get_attendance())
        return stats.attendance_timeline(student_id, attendance, today or dt.date.today(), days)
