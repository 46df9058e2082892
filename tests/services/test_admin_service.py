import datetime as dt
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from attendance_tracker.backend.db.redis_client import StorageError
from attendance_tracker.backend.models.store_models import STUDENTS_KEY, AttendanceStatus
from attendance_tracker.backend.services.admin_service import AdminService
from attendance_tracker.backend.services.errors import (
    ConflictError, NotFoundError, ServiceError, ServiceUnavailableError,
)

from tests.helpers import TEST_PREFIX, TODAY, fill_store, make_record, make_student

YESTERDAY = TODAY - dt.timedelta(days=1)


# --- Test Fixtures ---

@pytest_asyncio.fixture
async def service(store) -> AdminService:
    """AdminService over a store holding two batches with two students each."""
    await fill_store(
        store,
        batches=["BCA-Sem3", "Python-BatchA"],
        students=[
            make_student("1", "BCA-Sem3", "John Doe"),
            make_student("2", "BCA-Sem3", "Jane Smith"),
            make_student("3", "Python-BatchA", "Mike Johnson"),
            make_student("4", "Python-BatchA", "Sarah Williams"),
        ],
        attendance=[
            make_record("1", TODAY, AttendanceStatus.PRESENT),
            make_record("2", TODAY, AttendanceStatus.ABSENT),
            make_record("1", YESTERDAY, AttendanceStatus.ABSENT),
            make_record("3", TODAY, AttendanceStatus.LATE, "Python-BatchA"),
        ],
    )
    return AdminService(redis_client=store)


# --- Test Scenarios ---

@pytest.mark.asyncio
class TestAdminService:

    # --- Students ---

    async def test_list_students_with_percentages(self, service):
        overview = {student.id: student for student in await service.list_students()}

        assert overview["1"].attendance_percentage == 50
        assert overview["1"].status == "Low"
        assert overview["2"].attendance_percentage == 0
        assert overview["3"].attendance_percentage == 100
        assert overview["3"].status == "Excellent"
        assert overview["4"].attendance_percentage == 100

    async def test_list_students_filtered_by_batch(self, service):
        students = await service.list_students(batch="Python-BatchA")
        assert [student.id for student in students] == ["3", "4"]

    async def test_create_student(self, service, store):
        """Scenario: A new student is appended and gets a generated id."""
        created = await service.create_student("Tom Brown", "Python-BatchA", "Python", "tom@example.com")

        assert created.id
        students = await store.get_students()
        assert students[-1] == created
        assert len(students) == 5

    async def test_create_student_with_explicit_id(self, service):
        created = await service.create_student("Tom Brown", "BCA-Sem3", "BCA", "tom@example.com", student_id="7")
        assert created.id == "7"

    async def test_create_student_duplicate_id_raises_conflict(self, service, store):
        with pytest.raises(ConflictError):
            await service.create_student("Copy", "BCA-Sem3", "BCA", "copy@example.com", student_id="1")
        assert len(await store.get_students()) == 4

    async def test_create_student_in_unknown_batch_raises_error(self, service, store):
        with pytest.raises(ServiceError, match="does not exist"):
            await service.create_student("Tom Brown", "MCA-Sem9", "MCA", "tom@example.com")
        assert len(await store.get_students()) == 4

    async def test_update_student_moves_batch(self, service, store):
        updated = await service.update_student("2", "Jane Smith", "Python-BatchA", "Python", "jane@example.com")

        assert updated.batch == "Python-BatchA"
        stored = {student.id: student for student in await store.get_students()}
        assert stored["2"].batch == "Python-BatchA"
        assert len(stored) == 4

    async def test_update_unknown_student_raises_not_found(self, service):
        with pytest.raises(NotFoundError):
            await service.update_student("99", "Ghost", "BCA-Sem3", "BCA", "ghost@example.com")

    async def test_delete_student_removes_their_attendance(self, service, store):
        """Scenario: Deleting a student also deletes every attendance record of that student."""
        removed = await service.delete_student("1")

        assert removed == 2
        assert "1" not in {student.id for student in await store.get_students()}
        assert all(record.student_id != "1" for record in await store.get_attendance())
        assert len(await store.get_attendance()) == 2

    async def test_delete_unknown_student_raises_not_found(self, service):
        with pytest.raises(NotFoundError):
            await service.delete_student("99")

    # --- Batches ---

    async def test_list_batches_with_stats(self, service):
        batches = {batch.name: batch for batch in await service.list_batches()}

        assert batches["BCA-Sem3"].total_students == 2
        assert batches["BCA-Sem3"].avg_attendance == 25
        assert batches["Python-BatchA"].avg_attendance == 100

    async def test_create_batch(self, service, store):
        assert await service.create_batch("  MCA-Sem1 ") == "MCA-Sem1"
        assert await store.get_batches() == ["BCA-Sem3", "Python-BatchA", "MCA-Sem1"]

    async def test_create_duplicate_batch_raises_conflict(self, service):
        with pytest.raises(ConflictError):
            await service.create_batch("BCA-Sem3")

    async def test_create_batch_with_blank_name_raises_error(self, service):
        with pytest.raises(ServiceError):
            await service.create_batch("   ")

    async def test_create_batch_with_slash_raises_error(self, service, store):
        """Scenario: Batch names are used as URL path segments, so '/' is refused."""
        with pytest.raises(ServiceError, match="'/'"):
            await service.create_batch("Web/Dev")
        assert await store.get_batches() == ["BCA-Sem3", "Python-BatchA"]

    async def test_create_student_over_corrupt_collection_leaves_it_untouched(self, service, redis_connection):
        """
        Scenario: The stored students collection is corrupt.
        Expectation: Adding a student fails instead of replacing every stored student.
        """
        key = f"{TEST_PREFIX}{STUDENTS_KEY}"
        await redis_connection.set(key, "[{broken")

        with pytest.raises(ServiceUnavailableError):
            await service.create_student("Tom Brown", "BCA-Sem3", "BCA", "tom@example.com")

        assert await redis_connection.get(key) == "[{broken"

    async def test_delete_batch_cascades(self, service, store):
        """
        Scenario: Deleting a batch removes it, its students and their attendance.
        Expectation: The other batch and its records are untouched.
        """
        deletion = await service.delete_batch("BCA-Sem3")

        assert deletion.students_removed == 2
        assert deletion.records_removed == 3
        assert await store.get_batches() == ["Python-BatchA"]
        assert [student.id for student in await store.get_students()] == ["3", "4"]
        assert [record.student_id for record in await store.get_attendance()] == ["3"]

    async def test_delete_unknown_batch_raises_not_found(self, service):
        with pytest.raises(NotFoundError):
            await service.delete_batch("MCA-Sem9")

    # --- Dashboard ---

    async def test_summary(self, service):
        summary = await service.get_summary(today=TODAY)

        assert summary.total_students == 4
        assert summary.active_batches == 2
        # Students 1 (present) and 3 (late) attended today.
        assert summary.todays_attendance_rate == 50
        # Student 1 at 50% and student 2 at 0%.
        assert summary.low_attendance_count == 2
        assert [batch.name for batch in summary.batches] == ["BCA-Sem3", "Python-BatchA"]

    async def test_summary_of_empty_store(self, store):
        summary = await AdminService(redis_client=store).get_summary(today=TODAY)

        assert summary.total_students == 0
        assert summary.todays_attendance_rate == 0
        assert summary.active_batches == 0
        assert summary.batches == []


@pytest.mark.asyncio
async def test_store_outage_raises_service_unavailable():
    """Scenario: A storage failure surfaces as ServiceUnavailableError."""
    mock_redis_client = AsyncMock()
    mock_redis_client.get_batches.side_effect = StorageError("down")
    mock_redis_client.update_many.side_effect = StorageError("down")
    service = AdminService(redis_client=mock_redis_client)

    with pytest.raises(ServiceUnavailableError):
        await service.get_summary()
    with pytest.raises(ServiceUnavailableError):
        await service.create_batch("MCA-Sem1")
