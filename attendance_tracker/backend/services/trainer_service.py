import logging
import datetime as dt
from typing import Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel

from ..models.store_models import (
    ATTENDANCE_KEY, BATCHES_KEY, STUDENTS_KEY, TRAININGS_KEY,
    AttendanceRecord, AttendanceStatus, Student, TrainingRecord,
)
from .base_service import StoreService
from .errors import NotFoundError, ServiceError

logger = logging.getLogger(__name__)

RECENT_TRAININGS_LIMIT = 5


class RosterEntry(BaseModel):
    """A student of a batch together with the mark recorded for the day, if any."""
    student: Student
    status: Optional[AttendanceStatus] = None


class TrainerService(StoreService):
    """
    Business logic of the trainer view: marking attendance and logging
    training sessions.
    """

    async def list_batches(self) -> List[str]:
        (batches,) = await self._read(self.redis_client.get_batches())
        return batches

    async def get_roster(self, batch: str, day: Optional[dt.date] = None) -> List[RosterEntry]:
        day = day or dt.date.today()
        batches, students, attendance = await self._read(
            self.redis_client.get_batches(),
            self.redis_client.get_students(),
            self.redis_client.get_attendance(),
        )
        if batch not in batches:
            raise NotFoundError(f"Batch '{batch}' not found.")
        marks = {record.student_id: record.status for record in attendance if record.date == day}
        return [
            RosterEntry(student=student, status=marks.get(student.id))
            for student in students if student.batch == batch
        ]

    async def mark_attendance(
        self,
        batch: str,
        marks: Dict[str, AttendanceStatus],
        day: Optional[dt.date] = None,
    ) -> List[AttendanceRecord]:
        """
        Records one mark per student of the batch for the day. Students missing
        from `marks` are marked present. Earlier marks of this batch for the day,
        and any other mark of these students for the day, are replaced.
        """
        day = day or dt.date.today()
        created: List[AttendanceRecord] = []

        def mutate(values):
            if batch not in values[BATCHES_KEY]:
                raise NotFoundError(f"Batch '{batch}' not found.")
            members = [student for student in values[STUDENTS_KEY] if student.batch == batch]
            member_ids = {student.id for student in members}
            unknown = sorted(set(marks) - member_ids)
            if unknown:
                raise ServiceError(f"Students not enrolled in batch '{batch}': {', '.join(unknown)}.")

            new_records = [
                AttendanceRecord(
                    id=AttendanceRecord.make_id(day, student.id),
                    student_id=student.id,
                    date=day,
                    status=marks.get(student.id, AttendanceStatus.PRESENT),
                    batch=batch,
                )
                for student in members
            ]
            kept = [
                record for record in values[ATTENDANCE_KEY]
                if record.date != day or (record.batch != batch and record.student_id not in member_ids)
            ]
            created[:] = new_records
            return {ATTENDANCE_KEY: kept + new_records}

        await self._update(
            [BATCHES_KEY, STUDENTS_KEY, ATTENDANCE_KEY], mutate,
            f"Marking attendance of batch '{batch}' for {day.isoformat()}",
        )
        logger.info(f"Attendance of batch '{batch}' for {day.isoformat()} saved ({len(created)} students).")
        return created

    async def list_attendance(self, batch: Optional[str] = None, day: Optional[dt.date] = None) -> List[AttendanceRecord]:
        (attendance,) = await self._read(self.redis_client.get_attendance())
        return [
            record for record in attendance
            if (batch is None or record.batch == batch) and (day is None or record.date == day)
        ]

    # ===== Training logs =====

    async def log_training(
        self,
        batch: str,
        topic: str,
        duration: int,
        notes: str = "",
        file_link: str = "",
        day: Optional[dt.date] = None,
    ) -> TrainingRecord:
        training = TrainingRecord(
            id=uuid4().hex,
            date=day or dt.date.today(),
            batch=batch,
            topic=topic,
            duration=duration,
            notes=notes,
            file_link=file_link,
        )

        def mutate(values):
            if batch not in values[BATCHES_KEY]:
                raise NotFoundError(f"Batch '{batch}' not found.")
            return {TRAININGS_KEY: values[TRAININGS_KEY] + [training]}

        await self._update([BATCHES_KEY, TRAININGS_KEY], mutate, f"Logging training for batch '{batch}'")
        logger.info(f"Training '{topic}' ({duration}h) logged for batch '{batch}' on {training.date.isoformat()}.")
        return training

    async def list_trainings(self, batch: Optional[str] = None, day: Optional[dt.date] = None) -> List[TrainingRecord]:
        (trainings,) = await self._read(self.redis_client.get_trainings())
        return [
            training for training in trainings
            if (batch is None or training.batch == batch) and (day is None or training.date == day)
        ]

    async def recent_trainings(self, today: Optional[dt.date] = None,
                               limit: int = RECENT_TRAININGS_LIMIT) -> List[TrainingRecord]:
        """The last `limit` trainings logged for today, newest first."""
        todays = await self.list_trainings(day=today or dt.date.today())
        return list(reversed(todays[-limit:])) if limit > 0 else []
