"""Tests for EnrollmentService with a mocked Cassandra session."""

from datetime import UTC, date, datetime
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from cassandra.cluster import Session

from skillhub.auth.models import User
from skillhub.courses.models import Course, CourseModule
from skillhub.enrollments.models import Enrollment, EnrollmentStatus
from skillhub.enrollments.service import (
    AlreadyEnrolledError,
    CourseFullError,
    CourseUnavailableError,
    EmptyRosterError,
    EnrollmentService,
    NotEnrolledError,
    roster_csv,
    roster_filename,
)


def _result(row=None, rows=None) -> Mock:
    result = Mock()
    result.one = Mock(return_value=row)
    result.__iter__ = Mock(return_value=iter(rows or []))
    return result


@pytest.fixture
def mock_session():
    """Mock Cassandra session."""
    session = Mock(spec=Session)
    session.prepare = Mock(return_value=Mock())
    session.aexecute = AsyncMock(return_value=_result())
    return session


@pytest.fixture
def enrollment_service(mock_session) -> EnrollmentService:
    return EnrollmentService(session=mock_session, keyspace="test_keyspace")


@pytest.fixture
def student() -> User:
    return User(
        email="asha@example.com",
        name="Asha Verma",
        role="student",
        registration_number="21CS042",
    )


@pytest.fixture
def course() -> Course:
    return Course(
        title="Python Basics",
        code="CS101",
        max_students=2,
        syllabus=[CourseModule(0, "Intro"), CourseModule(1, "Loops")],
    )


def _enrollment(name: str, reg: str | None, day: int, course_id=None) -> Enrollment:
    return Enrollment(
        course_id=course_id or uuid4(),
        user_id=uuid4(),
        student_name=name,
        student_email=f"{name.lower()}@example.com",
        registration_number=reg,
        enrolled_at=datetime(2025, 1, day, 9, 30, tzinfo=UTC),
    )


class TestEnroll:
    """Tests for enroll."""

    @pytest.mark.asyncio
    async def test_enroll_copies_student_details(
        self, enrollment_service, mock_session, student, course
    ) -> None:
        mock_session.aexecute = AsyncMock(
            side_effect=[_result(None), _result(Mock(count=0)), _result(), _result()]
        )
        enrollment = await enrollment_service.enroll(student, course)

        assert enrollment.status == EnrollmentStatus.ENROLLED.value
        assert enrollment.registration_number == "21CS042"
        assert enrollment.modules_total == 2
        assert mock_session.aexecute.await_count == 4

    @pytest.mark.asyncio
    async def test_deleted_course_rejected(self, enrollment_service, student, course) -> None:
        course.is_active = False
        with pytest.raises(CourseUnavailableError):
            await enrollment_service.enroll(student, course)

    @pytest.mark.asyncio
    async def test_duplicate_rejected(
        self, enrollment_service, mock_session, student, course
    ) -> None:
        existing = Mock(
            course_id=course.id,
            user_id=student.id,
            student_name="Asha Verma",
            student_email="asha@example.com",
            registration_number="21CS042",
            status="enrolled",
            enrolled_at=datetime.now(UTC),
            started_at=None,
            completed_at=None,
            progress_percent=0,
            modules_completed=0,
            modules_total=2,
            last_accessed_at=None,
        )
        mock_session.aexecute = AsyncMock(return_value=_result(existing))
        with pytest.raises(AlreadyEnrolledError):
            await enrollment_service.enroll(student, course)

    @pytest.mark.asyncio
    async def test_full_course_rejected(
        self, enrollment_service, mock_session, student, course
    ) -> None:
        """Capacity is max_students."""
        mock_session.aexecute = AsyncMock(
            side_effect=[_result(None), _result(Mock(count=2))]
        )
        with pytest.raises(CourseFullError):
            await enrollment_service.enroll(student, course)

    @pytest.mark.asyncio
    async def test_unenroll_requires_enrollment(self, enrollment_service) -> None:
        with pytest.raises(NotEnrolledError):
            await enrollment_service.unenroll(uuid4(), uuid4())


class TestRecordProgress:
    """Status moves enrolled -> in_progress -> completed and back."""

    @pytest.mark.asyncio
    async def test_first_activity_starts_course(self, enrollment_service) -> None:
        enrollment = _enrollment("Asha", "1", 2)
        await enrollment_service.record_progress(enrollment, 50, 1, 2, completed=False)
        assert enrollment.status == EnrollmentStatus.IN_PROGRESS.value
        assert enrollment.started_at is not None
        assert enrollment.progress_percent == 50

    @pytest.mark.asyncio
    async def test_completion_and_regression(self, enrollment_service) -> None:
        enrollment = _enrollment("Asha", "1", 2)
        await enrollment_service.record_progress(enrollment, 100, 2, 2, completed=True)
        assert enrollment.status == EnrollmentStatus.COMPLETED.value
        assert enrollment.completed_at is not None

        await enrollment_service.record_progress(enrollment, 50, 1, 2, completed=False)
        assert enrollment.status == EnrollmentStatus.IN_PROGRESS.value
        assert enrollment.completed_at is None


class TestRosterExport:
    """Tests for roster CSV export."""

    def test_csv_quotes_every_field_and_sorts_by_name(self) -> None:
        content = roster_csv(
            [_enrollment("Zoe", "21CS099", 5), _enrollment("Arun", None, 3)]
        )
        lines = content.splitlines()
        assert lines[0] == '"Student Name","Registration Number","Enrolled Date"'
        assert lines[1] == '"Arun","N/A","2025-01-03"'
        assert lines[2] == '"Zoe","21CS099","2025-01-05"'

    def test_filename_replaces_non_alphanumerics(self) -> None:
        name = roster_filename("Intro to C++ (2025)", date(2025, 2, 1))
        assert name == "Intro_to_C____2025__Enrolled_Students_2025-02-01.csv"

    @pytest.mark.asyncio
    async def test_empty_roster_rejected(self, enrollment_service, course) -> None:
        with pytest.raises(EmptyRosterError):
            await enrollment_service.export_roster(course, date(2025, 2, 1))
