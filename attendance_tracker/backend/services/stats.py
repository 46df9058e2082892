"""
Attendance aggregation.

Pure functions over the in-memory collections; nothing here touches the store.
Percentages are integers rounded half up, so 2 attended out of 3 gives 67 and
1 out of 8 gives 13.
"""
import datetime as dt
from collections import defaultdict
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel

from ..models.store_models import AttendanceRecord, AttendanceStatus, Student, TrainingRecord

EXCELLENT_THRESHOLD = 85
GOOD_THRESHOLD = 70
# Percentage reported for a student nobody has marked yet.
NO_RECORDS_PERCENTAGE = 100
TIMELINE_DAYS = 30


class PerformanceBand(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    LOW = "Low"


class BatchStats(BaseModel):
    name: str
    total_students: int
    avg_attendance: int


class TimelineDay(BaseModel):
    date: dt.date
    present: int
    absent: int


def _round_div(numerator: int, denominator: int) -> int:
    return (2 * numerator + denominator) // (2 * denominator)


def performance_band(percentage: int) -> PerformanceBand:
    if percentage >= EXCELLENT_THRESHOLD:
        return PerformanceBand.EXCELLENT
    if percentage >= GOOD_THRESHOLD:
        return PerformanceBand.GOOD
    return PerformanceBand.LOW


def status_label(percentage: int) -> str:
    return performance_band(percentage).value


def is_low_attendance(percentage: int) -> bool:
    return percentage < GOOD_THRESHOLD


def records_for_student(student_id: str, records: Iterable[AttendanceRecord]) -> List[AttendanceRecord]:
    return [record for record in records if record.student_id == student_id]


def percentage_of(records: Sequence[AttendanceRecord]) -> int:
    """Attendance percentage of an already-filtered list of one student's records."""
    if not records:
        return NO_RECORDS_PERCENTAGE
    attended = sum(1 for record in records if record.attended)
    return _round_div(100 * attended, len(records))


def attendance_percentage(student_id: str, records: Iterable[AttendanceRecord]) -> int:
    return percentage_of(records_for_student(student_id, records))


def percentages_by_student(students: Iterable[Student], records: Iterable[AttendanceRecord]) -> Dict[str, int]:
    """Percentage for every student in one pass over the records."""
    grouped: Dict[str, List[AttendanceRecord]] = defaultdict(list)
    for record in records:
        grouped[record.student_id].append(record)
    return {student.id: percentage_of(grouped.get(student.id, [])) for student in students}


def batch_average(batch: str, students: Iterable[Student], records: Iterable[AttendanceRecord]) -> int:
    """Mean of the member students' percentages; 0 for a batch without students."""
    members = [student for student in students if student.batch == batch]
    if not members:
        return 0
    percentages = percentages_by_student(members, records)
    return _round_div(sum(percentages.values()), len(members))


def batch_stats(batch: str, students: Sequence[Student], records: Sequence[AttendanceRecord]) -> BatchStats:
    total = sum(1 for student in students if student.batch == batch)
    return BatchStats(name=batch, total_students=total, avg_attendance=batch_average(batch, students, records))


def todays_attendance_rate(students: Sequence[Student], records: Iterable[AttendanceRecord], today: dt.date) -> int:
    """Share of all students marked present or late today."""
    if not students:
        return 0
    attended_today = sum(1 for record in records if record.date == today and record.attended)
    return _round_div(100 * attended_today, len(students))


def band_counts(percentages: Iterable[int]) -> Dict[PerformanceBand, int]:
    counts = {band: 0 for band in PerformanceBand}
    for percentage in percentages:
        counts[performance_band(percentage)] += 1
    return counts


def attendance_timeline(
    student_id: str,
    records: Iterable[AttendanceRecord],
    today: dt.date,
    days: int = TIMELINE_DAYS,
) -> List[TimelineDay]:
    """One entry per day, oldest first, for the `days` days ending with `today`."""
    by_date: Dict[dt.date, AttendanceRecord] = {
        record.date: record for record in records if record.student_id == student_id
    }
    timeline = []
    for offset in range(days - 1, -1, -1):
        day = today - dt.timedelta(days=offset)
        record: Optional[AttendanceRecord] = by_date.get(day)
        timeline.append(TimelineDay(
            date=day,
            present=1 if record is not None and record.attended else 0,
            absent=1 if record is not None and record.status == AttendanceStatus.ABSENT else 0,
        ))
    return timeline


def attended_trainings(
    student_id: str,
    records: Iterable[AttendanceRecord],
    trainings: Iterable[TrainingRecord],
) -> List[TrainingRecord]:
    """Trainings held on a day and in a batch where the student was present or late."""
    attended_slots = {
        (record.date, record.batch) for record in records
        if record.student_id == student_id and record.attended
    }
    return [training for training in trainings if (training.date, training.batch) in attended_slots]
