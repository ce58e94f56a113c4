"""Database models for course enrollments.

- enrollments: partitioned by course, for rosters and capacity checks
- enrollments_by_user: partitioned by student, for "my courses"

Both are written together. Student name and registration number are copied
in at enrollment time so rosters need no user lookups.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from skillhub.auth.models import ensure_utc_aware


class EnrollmentStatus(str, Enum):
    ENROLLED = "enrolled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


ENROLLMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments (
    course_id UUID,
    user_id UUID,
    student_name TEXT,
    student_email TEXT,
    registration_number TEXT,
    status TEXT,
    enrolled_at TIMESTAMP,
    started_at TIMESTAMP,
    completed_at TIMESTAMP,
    progress_percent INT,
    modules_completed INT,
    modules_total INT,
    last_accessed_at TIMESTAMP,
    PRIMARY KEY (course_id, user_id)
)
"""

ENROLLMENTS_BY_USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments_by_user (
    user_id UUID,
    course_id UUID,
    enrolled_at TIMESTAMP,
    status TEXT,
    progress_percent INT,
    modules_completed INT,
    modules_total INT,
    last_accessed_at TIMESTAMP,
    PRIMARY KEY (user_id, course_id)
)
"""

ENROLLMENTS_TABLES_CQL = [
    ENROLLMENTS_TABLE_CQL,
    ENROLLMENTS_BY_USER_TABLE_CQL,
]


class Enrollment:
    """A student's enrollment in a course.

    Attributes:
        course_id / user_id: Composite identity
        student_name, student_email, registration_number: Roster copy
        status: enrolled, in_progress or completed
        progress_percent: Overall course progress (0-100)
        modules_completed / modules_total: Counts behind progress_percent
    """

    def __init__(
        self,
        course_id: UUID,
        user_id: UUID,
        student_name: str = "",
        student_email: str = "",
        registration_number: str | None = None,
        status: str = EnrollmentStatus.ENROLLED.value,
        enrolled_at: datetime | None = None,
        started_at: datetime | None = None,
        completed_at: datetime | None = None,
        progress_percent: int = 0,
        modules_completed: int = 0,
        modules_total: int = 0,
        last_accessed_at: datetime | None = None,
    ):
        self.course_id = course_id
        self.user_id = user_id
        self.student_name = student_name
        self.student_email = student_email
        self.registration_number = registration_number
        self.status = status
        self.enrolled_at = ensure_utc_aware(enrolled_at) or datetime.now(UTC)
        self.started_at = ensure_utc_aware(started_at)
        self.completed_at = ensure_utc_aware(completed_at)
        self.progress_percent = progress_percent
        self.modules_completed = modules_completed
        self.modules_total = modules_total
        self.last_accessed_at = ensure_utc_aware(last_accessed_at)

    @property
    def is_completed(self) -> bool:
        return self.status == EnrollmentStatus.COMPLETED.value

    @classmethod
    def from_row(cls, row: Any) -> "Enrollment":
        """Create Enrollment from an ``enrollments`` or ``enrollments_by_user`` row."""
        return cls(
            course_id=row.course_id,
            user_id=row.user_id,
            student_name=getattr(row, "student_name", None) or "",
            student_email=getattr(row, "student_email", None) or "",
            registration_number=getattr(row, "registration_number", None),
            status=row.status or EnrollmentStatus.ENROLLED.value,
            enrolled_at=row.enrolled_at,
            started_at=getattr(row, "started_at", None),
            completed_at=getattr(row, "completed_at", None),
            progress_percent=row.progress_percent or 0,
            modules_completed=row.modules_completed or 0,
            modules_total=row.modules_total or 0,
            last_accessed_at=row.last_accessed_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "course_id": self.course_id,
            "user_id": self.user_id,
            "student_name": self.student_name,
            "student_email": self.student_email,
            "registration_number": self.registration_number,
            "status": self.status,
            "enrolled_at": self.enrolled_at,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "progress_percent": self.progress_percent,
            "modules_completed": self.modules_completed,
            "modules_total": self.modules_total,
            "last_accessed_at": self.last_accessed_at,
        }

    def __repr__(self) -> str:
        return (
            f"<Enrollment user={self.user_id} course={self.course_id} "
            f"{self.status} {self.progress_percent}%>"
        )
