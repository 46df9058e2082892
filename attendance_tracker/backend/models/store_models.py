# attendance_tracker/backend/models/store_models.py

import datetime as dt
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Storage keys of the entity collections.
BATCHES_KEY = "batches"
STUDENTS_KEY = "students"
ATTENDANCE_KEY = "attendance"
TRAININGS_KEY = "trainings"
DARK_MODE_KEY = "darkMode"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


# Statuses that count towards a student's attendance percentage.
ATTENDED_STATUSES = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.LATE})


class Student(BaseModel):
    """
    A student enrolled in exactly one batch, stored under the 'students' key.
    """
    id: str = Field(..., description="Unique identifier of the student.")
    name: str
    batch: str = Field(..., description="Name of the batch; must exist in the 'batches' list.")
    course: str
    contact: str = Field(..., description="Email address or phone number.")


class AttendanceRecord(BaseModel):
    """
    One status mark for one student on one calendar day, stored under the
    'attendance' key. Serialized with camelCase keys.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Composed as '<date>-<studentId>'.")
    student_id: str = Field(..., alias="studentId")
    date: dt.date
    status: AttendanceStatus
    batch: str = Field(..., description="Batch the student was marked in.")

    @property
    def attended(self) -> bool:
        return self.status in ATTENDED_STATUSES

    @staticmethod
    def make_id(day: dt.date, student_id: str) -> str:
        return f"{day.isoformat()}-{student_id}"


class TrainingRecord(BaseModel):
    """
    A log entry describing the content covered in a session of a batch,
    stored under the 'trainings' key.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    date: dt.date
    batch: str
    topic: str
    duration: int = Field(..., ge=0, description="Length of the session in whole hours.")
    notes: str = ""
    file_link: str = Field("", alias="fileLink")
