# tests/helpers.py
import datetime as dt
from unittest.mock import AsyncMock, MagicMock

from redis.exceptions import ConnectionError as RedisConnectionError

from attendance_tracker.backend.db.redis_client import COLLECTION_TYPES, RedisClient
from attendance_tracker.backend.models.store_models import (
    ATTENDANCE_KEY, BATCHES_KEY, STUDENTS_KEY, TRAININGS_KEY,
    AttendanceRecord, AttendanceStatus, Student, TrainingRecord,
)

TEST_PREFIX = "test:"
TODAY = dt.date(2024, 3, 15)


# ===== Sample data =====

def make_student(student_id: str, batch: str = "BCA-Sem3", name: str = None) -> Student:
    return Student(
        id=student_id,
        name=name or f"Student {student_id}",
        batch=batch,
        course=batch.split("-")[0],
        contact=f"{student_id}@example.com",
    )


def make_record(student_id: str, day: dt.date, status: AttendanceStatus = AttendanceStatus.PRESENT,
                batch: str = "BCA-Sem3") -> AttendanceRecord:
    return AttendanceRecord(
        id=AttendanceRecord.make_id(day, student_id),
        student_id=student_id,
        date=day,
        status=status,
        batch=batch,
    )


def make_training(training_id: str, day: dt.date, batch: str = "BCA-Sem3", topic: str = "React Hooks") -> TrainingRecord:
    return TrainingRecord(id=training_id, date=day, batch=batch, topic=topic, duration=2)


async def fill_store(store: RedisClient, batches=None, students=None, attendance=None, trainings=None):
    """Writes the given collections; collections left as None are not touched."""
    values = {
        BATCHES_KEY: batches,
        STUDENTS_KEY: students,
        ATTENDANCE_KEY: attendance,
        TRAININGS_KEY: trainings,
    }
    for key, value in values.items():
        if value is not None:
            await store.write(key, value, COLLECTION_TYPES[key])


def failing_connection() -> MagicMock:
    """A Redis connection whose every command fails as if the server were down."""
    refused = RedisConnectionError("connection refused")
    connection = MagicMock()
    connection.get = AsyncMock(side_effect=refused)
    connection.set = AsyncMock(side_effect=refused)
    connection.delete = AsyncMock(side_effect=refused)
    connection.exists = AsyncMock(side_effect=refused)
    pipe = MagicMock()
    pipe.execute = AsyncMock(side_effect=refused)
    pipe.watch = AsyncMock(side_effect=refused)
    connection.pipeline.return_value.__aenter__.return_value = pipe
    return connection
