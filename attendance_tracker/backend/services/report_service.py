import csv
import io
import logging
import datetime as dt
from typing import Iterable, List, Optional

from pydantic import BaseModel

from ..models.store_models import AttendanceRecord, Student
from . import stats
from .base_service import StoreService
from .errors import NotFoundError

logger = logging.getLogger(__name__)

CSV_HEADER = ["Name", "Batch", "Course", "Attendance %", "Status"]


class ReportRow(BaseModel):
    student_id: str
    name: str
    batch: str
    course: str
    attendance_percentage: int
    status: str


class BatchReport(BaseModel):
    generated_on: dt.date
    batch: Optional[str] = None
    rows: List[ReportRow]
    excellent: int
    good: int
    low: int


def build_report(
    students: Iterable[Student],
    attendance: Iterable[AttendanceRecord],
    generated_on: dt.date,
    batch: Optional[str] = None,
) -> BatchReport:
    """Projects students and their attendance into report rows plus band counts."""
    students = [student for student in students if batch is None or student.batch == batch]
    percentages = stats.percentages_by_student(students, attendance)
    rows = [
        ReportRow(
            student_id=student.id,
            name=student.name,
            batch=student.batch,
            course=student.course,
            attendance_percentage=percentages[student.id],
            status=stats.status_label(percentages[student.id]),
        )
        for student in students
    ]
    counts = stats.band_counts(percentages.values())
    return BatchReport(
        generated_on=generated_on,
        batch=batch,
        rows=rows,
        excellent=counts[stats.PerformanceBand.EXCELLENT],
        good=counts[stats.PerformanceBand.GOOD],
        low=counts[stats.PerformanceBand.LOW],
    )


def render_csv(report: BatchReport) -> str:
    """Header line plus one line per student; fields containing commas are quoted."""
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in report.rows:
        writer.writerow([row.name, row.batch, row.course, f"{row.attendance_percentage}%", row.status])
    return out.getvalue()


def report_filename(day: dt.date) -> str:
    return f"batch-report-{day.isoformat()}.csv"


class ReportService(StoreService):
    """Builds the batch attendance report shown to admins and exported as CSV."""

    async def build_batch_report(self, batch: Optional[str] = None,
                                 today: Optional[dt.date] = None) -> BatchReport:
        batches, students, attendance = await self._read(
            self.redis_client.get_batches(),
            self.redis_client.get_students(),
            self.redis_client.get_attendance(),
        )
        if batch is not None and batch not in batches:
            raise NotFoundError(f"Batch '{batch}' not found.")
        report = build_report(students, attendance, today or dt.date.today(), batch)
        logger.info(f"Batch report built for {batch or 'all batches'} with {len(report.rows)} students.")
        return report
