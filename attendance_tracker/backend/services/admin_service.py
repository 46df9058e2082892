import logging
import datetime as dt
from typing import List, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel

from ..models.store_models import (
    ATTENDANCE_KEY, BATCHES_KEY, STUDENTS_KEY,
    AttendanceRecord, Student,
)
from . import stats
from .base_service import StoreService
from .errors import ConflictError, NotFoundError, ServiceError

logger = logging.getLogger(__name__)


# --- Enriched Models for API Responses ---
class StudentOverview(Student):
    """Student row of the admin table, enriched with attendance figures."""
    attendance_percentage: int
    status: str


class BatchDeletion(BaseModel):
    batch: str
    students_removed: int
    records_removed: int


class DashboardSummary(BaseModel):
    total_students: int
    todays_attendance_rate: int
    active_batches: int
    low_attendance_count: int
    batches: List[stats.BatchStats]


class AdminService(StoreService):
    """
    Business logic of the admin view: student and batch management and the
    institute-wide summary.
    """

    async def _load(self) -> Tuple[List[str], List[Student], List[AttendanceRecord]]:
        batches, students, attendance = await self._read(
            self.redis_client.get_batches(),
            self.redis_client.get_students(),
            self.redis_client.get_attendance(),
        )
        return batches, students, attendance

    # ===== Students =====

    async def list_students(self, batch: Optional[str] = None) -> List[StudentOverview]:
        _, students, attendance = await self._load()
        if batch is not None:
            students = [student for student in students if student.batch == batch]
        percentages = stats.percentages_by_student(students, attendance)
        return [
            StudentOverview(
                **student.model_dump(),
                attendance_percentage=percentages[student.id],
                status=stats.status_label(percentages[student.id]),
            )
            for student in students
        ]

    async def create_student(self, name: str, batch: str, course: str, contact: str,
                             student_id: Optional[str] = None) -> Student:
        new_student = Student(id=student_id or uuid4().hex, name=name, batch=batch, course=course, contact=contact)

        def mutate(values):
            if batch not in values[BATCHES_KEY]:
                raise ServiceError(f"Batch '{batch}' does not exist.")
            if any(student.id == new_student.id for student in values[STUDENTS_KEY]):
                raise ConflictError(f"A student with id '{new_student.id}' already exists.")
            return {STUDENTS_KEY: values[STUDENTS_KEY] + [new_student]}

        await self._update([BATCHES_KEY, STUDENTS_KEY], mutate, f"Creating student '{new_student.id}'")
        logger.info(f"Student '{new_student.id}' ({new_student.name}) added to batch '{batch}'.")
        return new_student

    async def update_student(self, student_id: str, name: str, batch: str, course: str, contact: str) -> Student:
        updated = Student(id=student_id, name=name, batch=batch, course=course, contact=contact)

        def mutate(values):
            if batch not in values[BATCHES_KEY]:
                raise ServiceError(f"Batch '{batch}' does not exist.")
            students = values[STUDENTS_KEY]
            if not any(student.id == student_id for student in students):
                raise NotFoundError(f"Student '{student_id}' not found.")
            return {STUDENTS_KEY: [updated if student.id == student_id else student for student in students]}

        await self._update([BATCHES_KEY, STUDENTS_KEY], mutate, f"Updating student '{student_id}'")
        logger.info(f"Student '{student_id}' updated.")
        return updated

    async def delete_student(self, student_id: str) -> int:
        """Deletes the student and its attendance records; returns the number of records removed."""
        removed = {}

        def mutate(values):
            students = values[STUDENTS_KEY]
            if not any(student.id == student_id for student in students):
                raise NotFoundError(f"Student '{student_id}' not found.")
            attendance = values[ATTENDANCE_KEY]
            kept = [record for record in attendance if record.student_id != student_id]
            removed["records"] = len(attendance) - len(kept)
            return {
                STUDENTS_KEY: [student for student in students if student.id != student_id],
                ATTENDANCE_KEY: kept,
            }

        await self._update([STUDENTS_KEY, ATTENDANCE_KEY], mutate, f"Deleting student '{student_id}'")
        logger.info(f"Student '{student_id}' deleted together with {removed['records']} attendance records.")
        return removed["records"]

    # ===== Batches =====

    async def list_batches(self) -> List[stats.BatchStats]:
        batches, students, attendance = await self._load()
        return [stats.batch_stats(batch, students, attendance) for batch in batches]

    async def create_batch(self, name: str) -> str:
        name = name.strip()
        if not name:
            raise ServiceError("Batch name must not be empty.")
        if "/" in name:
            raise ServiceError("Batch name must not contain '/'.")

        def mutate(values):
            if name in values[BATCHES_KEY]:
                raise ConflictError(f"Batch '{name}' already exists.")
            return {BATCHES_KEY: values[BATCHES_KEY] + [name]}

        await self._update([BATCHES_KEY], mutate, f"Creating batch '{name}'")
        logger.info(f"Batch '{name}' created.")
        return name

    async def delete_batch(self, name: str) -> BatchDeletion:
        """
        Deletes a batch, every student in it and every attendance record of
        those students. Students of other batches are left untouched.
        """
        result = {}

        def mutate(values):
            if name not in values[BATCHES_KEY]:
                raise NotFoundError(f"Batch '{name}' not found.")
            students = values[STUDENTS_KEY]
            removed_ids = {student.id for student in students if student.batch == name}
            attendance = values[ATTENDANCE_KEY]
            kept_records = [record for record in attendance if record.student_id not in removed_ids]
            result["deletion"] = BatchDeletion(
                batch=name,
                students_removed=len(removed_ids),
                records_removed=len(attendance) - len(kept_records),
            )
            return {
                BATCHES_KEY: [batch for batch in values[BATCHES_KEY] if batch != name],
                STUDENTS_KEY: [student for student in students if student.id not in removed_ids],
                ATTENDANCE_KEY: kept_records,
            }

        await self._update([BATCHES_KEY, STUDENTS_KEY, ATTENDANCE_KEY], mutate, f"Deleting batch '{name}'")
        deletion = result["deletion"]
        logger.info(
            f"Batch '{name}' deleted with {deletion.students_removed} students "
            f"and {deletion.records_removed} attendance records."
        )
        return deletion

    # ===== Dashboard =====

    async def get_summary(self, today: Optional[dt.date] = None) -> DashboardSummary:
        today = today or dt.date.today()
        batches, students, attendance = await self._load()
        percentages = stats.percentages_by_student(students, attendance)
        return DashboardSummary(
            total_students=len(students),
            todays_attendance_rate=stats.todays_attendance_rate(students, attendance, today),
            active_batches=len(batches),
            low_attendance_count=sum(1 for p in percentages.values() if stats.is_low_attendance(p)),
            batches=[stats.batch_stats(batch, students, attendance) for batch in batches],
        )
