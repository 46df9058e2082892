import datetime as dt

import pytest

from attendance_tracker.backend.models.store_models import AttendanceStatus
from attendance_tracker.backend.services import stats
from attendance_tracker.backend.services.stats import PerformanceBand

from tests.helpers import TODAY, make_record, make_student, make_training

P, A, L = AttendanceStatus.PRESENT, AttendanceStatus.ABSENT, AttendanceStatus.LATE


def records_of(student_id: str, *statuses, batch: str = "BCA-Sem3"):
    """One record per status on consecutive days ending today."""
    return [
        make_record(student_id, TODAY - dt.timedelta(days=offset), status, batch)
        for offset, status in enumerate(reversed(statuses))
    ]


# --- Percentages ---

def test_student_without_records_counts_as_full_attendance():
    assert stats.attendance_percentage("1", []) == 100


def test_percentage_counts_late_as_attended():
    assert stats.attendance_percentage("1", records_of("1", P, L, A, A)) == 50


def test_percentage_rounds_half_up():
    """Scenario: 2 of 3 gives 66.67 -> 67 and 1 of 8 gives 12.5 -> 13."""
    assert stats.attendance_percentage("1", records_of("1", P, P, A)) == 67
    assert stats.attendance_percentage("1", records_of("1", P, *[A] * 7)) == 13
    assert stats.attendance_percentage("1", records_of("1", P, A, A)) == 33


def test_percentage_ignores_other_students():
    records = records_of("1", A, A) + records_of("2", P)
    assert stats.attendance_percentage("2", records) == 100
    assert stats.percentages_by_student([make_student("1"), make_student("2")], records) == {"1": 0, "2": 100}


@pytest.mark.parametrize("percentage, band", [
    (100, PerformanceBand.EXCELLENT),
    (85, PerformanceBand.EXCELLENT),
    (84, PerformanceBand.GOOD),
    (70, PerformanceBand.GOOD),
    (69, PerformanceBand.LOW),
    (0, PerformanceBand.LOW),
])
def test_performance_band_thresholds(percentage, band):
    assert stats.performance_band(percentage) == band
    assert stats.status_label(percentage) == band.value
    assert stats.is_low_attendance(percentage) == (band == PerformanceBand.LOW)


# --- Batches ---

def test_batch_average_is_mean_of_member_percentages():
    students = [make_student("1"), make_student("2"), make_student("3", "MCA-Sem1")]
    records = records_of("1", P, A) + records_of("2", P) + records_of("3", A, batch="MCA-Sem1")

    assert stats.batch_average("BCA-Sem3", students, records) == 75
    assert stats.batch_average("MCA-Sem1", students, records) == 0


def test_batch_average_of_empty_batch_is_zero():
    assert stats.batch_average("Python-BatchA", [make_student("1")], []) == 0


def test_batch_stats():
    students = [make_student("1"), make_student("2"), make_student("3", "MCA-Sem1")]
    result = stats.batch_stats("BCA-Sem3", students, records_of("1", P, P, A))

    assert result.name == "BCA-Sem3"
    assert result.total_students == 2
    assert result.avg_attendance == 84  # mean of 67 and 100, rounded half up


def test_todays_attendance_rate():
    """Scenario: Two of four students are present or late today; older records are ignored."""
    students = [make_student(str(i)) for i in range(1, 5)]
    records = [
        make_record("1", TODAY, P),
        make_record("2", TODAY, L),
        make_record("3", TODAY, A),
        make_record("4", TODAY - dt.timedelta(days=1), P),
    ]
    assert stats.todays_attendance_rate(students, records, TODAY) == 50


def test_todays_attendance_rate_without_students_is_zero():
    assert stats.todays_attendance_rate([], [], TODAY) == 0


def test_band_counts():
    counts = stats.band_counts([100, 90, 75, 10, 69])
    assert counts == {PerformanceBand.EXCELLENT: 2, PerformanceBand.GOOD: 1, PerformanceBand.LOW: 2}


# --- Timeline ---

def test_timeline_covers_thirty_days_oldest_first():
    records = [
        make_record("1", TODAY, P),
        make_record("1", TODAY - dt.timedelta(days=1), A),
        make_record("1", TODAY - dt.timedelta(days=2), L),
        make_record("1", TODAY - dt.timedelta(days=30), A),
        make_record("2", TODAY, A),
    ]
    timeline = stats.attendance_timeline("1", records, TODAY)

    assert len(timeline) == 30
    assert timeline[0].date == TODAY - dt.timedelta(days=29)
    assert timeline[-1].date == TODAY
    assert (timeline[-1].present, timeline[-1].absent) == (1, 0)
    assert (timeline[-2].present, timeline[-2].absent) == (0, 1)
    assert (timeline[-3].present, timeline[-3].absent) == (1, 0)
    assert sum(day.present + day.absent for day in timeline) == 3


# --- Trainings ---

def test_attended_trainings_match_day_and_batch():
    yesterday = TODAY - dt.timedelta(days=1)
    records = [make_record("1", TODAY, P), make_record("1", yesterday, A)]
    trainings = [
        make_training("t1", TODAY),
        make_training("t2", yesterday),
        make_training("t3", TODAY, batch="MCA-Sem1"),
    ]

    attended = stats.attended_trainings("1", records, trainings)

    assert [training.id for training in attended] == ["t1"]
