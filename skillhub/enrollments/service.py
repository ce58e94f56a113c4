"""Enrollment service layer.

Business logic for:
- Enrolling and unenrolling students, with capacity checks
- Student course lists and faculty rosters
- Roster CSV export
- Keeping enrollment progress in sync with module progress
"""

from datetime import UTC, date, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from skillhub.auth.models import User
from skillhub.core.exports import date_stamp, filename_part, render_csv
from skillhub.core.logging import get_logger
from skillhub.courses.models import Course
from skillhub.enrollments.models import Enrollment, EnrollmentStatus
from skillhub.enrollments.schemas import RosterEntryResponse


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)

ROSTER_CSV_HEADERS = ("Student Name", "Registration Number", "Enrolled Date")


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class EnrollmentError(Exception):
    """Base enrollment error."""

    def __init__(self, message: str, code: str = "enrollment_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotEnrolledError(EnrollmentError):
    def __init__(self, message: str = "You are not enrolled in this course"):
        super().__init__(message, "not_enrolled")


class AlreadyEnrolledError(EnrollmentError):
    def __init__(self, message: str = "Already enrolled in this course"):
        super().__init__(message, "already_enrolled")


class CourseFullError(EnrollmentError):
    def __init__(self, message: str = "This course has reached its maximum capacity"):
        super().__init__(message, "course_full")


class CourseUnavailableError(EnrollmentError):
    def __init__(self, message: str = "This course is not open for enrollment"):
        super().__init__(message, "course_unavailable")


class EmptyRosterError(EnrollmentError):
    def __init__(self, message: str = "No students to export"):
        super().__init__(message, "empty_roster")


# ==============================================================================
# Roster export
# ==============================================================================


def roster_csv(enrollments: list[Enrollment]) -> str:
    """Roster as CSV: name, registration number and enrollment date."""
    rows = [
        (
            e.student_name,
            e.registration_number or "N/A",
            e.enrolled_at.date().isoformat(),
        )
        for e in sorted(enrollments, key=lambda e: e.student_name.lower())
    ]
    return render_csv(ROSTER_CSV_HEADERS, rows)


def roster_filename(course_title: str, day: date) -> str:
    return f"{filename_part(course_title)}_Enrolled_Students_{date_stamp(day)}.csv"


# ==============================================================================
# Enrollment Service
# ==============================================================================


class EnrollmentService:
    """Enrollments stored by course and by student."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        ks = self.keyspace
        self._get_enrollment = self.session.prepare(
            f"SELECT * FROM {ks}.enrollments WHERE course_id = ? AND user_id = ?"
        )
        self._get_course_enrollments = self.session.prepare(
            f"SELECT * FROM {ks}.enrollments WHERE course_id = ?"
        )
        self._count_course_enrollments = self.session.prepare(
            f"SELECT COUNT(*) FROM {ks}.enrollments WHERE course_id = ?"
        )
        self._upsert_enrollment = self.session.prepare(f"""
            INSERT INTO {ks}.enrollments
            (course_id, user_id, student_name, student_email, registration_number,
             status, enrolled_at, started_at, completed_at, progress_percent,
             modules_completed, modules_total, last_accessed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._delete_enrollment = self.session.prepare(
            f"DELETE FROM {ks}.enrollments WHERE course_id = ? AND user_id = ?"
        )
        self._delete_course_enrollments = self.session.prepare(
            f"DELETE FROM {ks}.enrollments WHERE course_id = ?"
        )

        self._get_user_enrollments = self.session.prepare(
            f"SELECT * FROM {ks}.enrollments_by_user WHERE user_id = ?"
        )
        self._upsert_enrollment_by_user = self.session.prepare(f"""
            INSERT INTO {ks}.enrollments_by_user
            (user_id, course_id, enrolled_at, status, progress_percent,
             modules_completed, modules_total, last_accessed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._delete_enrollment_by_user = self.session.prepare(
            f"DELETE FROM {ks}.enrollments_by_user WHERE user_id = ? AND course_id = ?"
        )

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def get_enrollment(self, user_id: UUID, course_id: UUID) -> Enrollment | None:
        """Get enrollment by user and course."""
        result = await self.session.aexecute(self._get_enrollment, [course_id, user_id])
        row = result.one()
        return Enrollment.from_row(row) if row else None

    async def require_enrollment(self, user_id: UUID, course_id: UUID) -> Enrollment:
        enrollment = await self.get_enrollment(user_id, course_id)
        if enrollment is None:
            raise NotEnrolledError
        return enrollment

    async def get_user_enrollments(self, user_id: UUID) -> list[Enrollment]:
        """A student's enrollments, newest first."""
        rows = await self.session.aexecute(self._get_user_enrollments, [user_id])
        enrollments = [Enrollment.from_row(row) for row in rows]
        enrollments.sort(key=lambda e: e.enrolled_at, reverse=True)
        return enrollments

    async def get_course_enrollments(self, course_id: UUID) -> list[Enrollment]:
        rows = await self.session.aexecute(self._get_course_enrollments, [course_id])
        return [Enrollment.from_row(row) for row in rows]

    async def count_enrollments(self, course_id: UUID) -> int:
        result = await self.session.aexecute(self._count_course_enrollments, [course_id])
        row = result.one()
        return row.count if row else 0

    # ==========================================================================
    # Enroll / unenroll
    # ==========================================================================

    async def enroll(self, student: User, course: Course) -> Enrollment:
        """Enroll a student in an active course with free seats.

        Raises:
            CourseUnavailableError: If the course was deleted
            AlreadyEnrolledError: If the student is already enrolled
            CourseFullError: If ``max_students`` is reached
        """
        if not course.is_active:
            raise CourseUnavailableError
        if await self.get_enrollment(student.id, course.id):
            raise AlreadyEnrolledError
        if course.max_students and await self.count_enrollments(course.id) >= course.max_students:
            logger.info("enrollment_rejected_full", course_id=str(course.id))
            raise CourseFullError

        enrollment = Enrollment(
            course_id=course.id,
            user_id=student.id,
            student_name=student.name,
            student_email=student.email,
            registration_number=student.registration_number,
            status=EnrollmentStatus.ENROLLED.value,
            enrolled_at=datetime.now(UTC),
            modules_total=course.total_modules,
        )
        await self.save(enrollment)

        logger.info("user_enrolled", user_id=str(student.id), course_id=str(course.id))
        return enrollment

    async def unenroll(self, user_id: UUID, course_id: UUID) -> Enrollment:
        """Remove an enrollment from both tables.

        Raises:
            NotEnrolledError: If there is nothing to remove
        """
        enrollment = await self.require_enrollment(user_id, course_id)
        await self.session.aexecute(self._delete_enrollment, [course_id, user_id])
        await self.session.aexecute(self._delete_enrollment_by_user, [user_id, course_id])
        logger.info("user_unenrolled", user_id=str(user_id), course_id=str(course_id))
        return enrollment

    async def delete_course_enrollments(self, course_id: UUID) -> list[UUID]:
        """Drop every enrollment of a course; returns the affected students."""
        enrollments = await self.get_course_enrollments(course_id)
        for enrollment in enrollments:
            await self.session.aexecute(
                self._delete_enrollment_by_user, [enrollment.user_id, course_id]
            )
        await self.session.aexecute(self._delete_course_enrollments, [course_id])
        return [e.user_id for e in enrollments]

    # ==========================================================================
    # Progress sync
    # ==========================================================================

    async def record_progress(
        self,
        enrollment: Enrollment,
        progress_percent: int,
        modules_completed: int,
        modules_total: int,
        completed: bool,
    ) -> Enrollment:
        """Store new progress numbers and move the status along.

        ``enrolled`` becomes ``in_progress`` on first activity and
        ``completed`` while the course is fully completed. Losing completion
        moves it back to ``in_progress``.
        """
        now = datetime.now(UTC)
        enrollment.progress_percent = progress_percent
        enrollment.modules_completed = modules_completed
        enrollment.modules_total = modules_total
        enrollment.last_accessed_at = now
        if enrollment.started_at is None:
            enrollment.started_at = now

        if completed:
            if not enrollment.is_completed:
                enrollment.completed_at = now
            enrollment.status = EnrollmentStatus.COMPLETED.value
        else:
            enrollment.status = EnrollmentStatus.IN_PROGRESS.value
            enrollment.completed_at = None

        await self.save(enrollment)
        return enrollment

    async def save(self, enrollment: Enrollment) -> None:
        """Write the enrollment to both tables (dual-write)."""
        await self.session.aexecute(
            self._upsert_enrollment,
            [
                enrollment.course_id,
                enrollment.user_id,
                enrollment.student_name,
                enrollment.student_email,
                enrollment.registration_number,
                enrollment.status,
                enrollment.enrolled_at,
                enrollment.started_at,
                enrollment.completed_at,
                enrollment.progress_percent,
                enrollment.modules_completed,
                enrollment.modules_total,
                enrollment.last_accessed_at,
            ],
        )
        await self.session.aexecute(
            self._upsert_enrollment_by_user,
            [
                enrollment.user_id,
                enrollment.course_id,
                enrollment.enrolled_at,
                enrollment.status,
                enrollment.progress_percent,
                enrollment.modules_completed,
                enrollment.modules_total,
                enrollment.last_accessed_at,
            ],
        )

    # ==========================================================================
    # Roster
    # ==========================================================================

    async def get_roster(self, course_id: UUID) -> list[RosterEntryResponse]:
        enrollments = await self.get_course_enrollments(course_id)
        enrollments.sort(key=lambda e: e.enrolled_at)
        return [RosterEntryResponse.model_validate(e) for e in enrollments]

    async def export_roster(self, course: Course, day: date) -> tuple[str, str]:
        """CSV content and download filename for a course roster.

        Raises:
            EmptyRosterError: If nobody is enrolled
        """
        enrollments = await self.get_course_enrollments(course.id)
        if not enrollments:
            raise EmptyRosterError
        logger.info(
            "roster_exported", course_id=str(course.id), students=len(enrollments)
        )
        return roster_csv(enrollments), roster_filename(course.title, day)
