"""Database models for course completion certificates.

- certificates: one per (student, course), partitioned by student
- certificates_by_course: lookup for faculty
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from skillhub.auth.models import ensure_utc_aware


CERTIFICATES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.certificates (
    user_id UUID,
    course_id UUID,
    certificate_id TEXT,
    student_name TEXT,
    course_title TEXT,
    course_code TEXT,
    instructor TEXT,
    issued_at TIMESTAMP,
    PRIMARY KEY (user_id, course_id)
)
"""

CERTIFICATES_BY_COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.certificates_by_course (
    course_id UUID,
    user_id UUID,
    certificate_id TEXT,
    student_name TEXT,
    issued_at TIMESTAMP,
    PRIMARY KEY (course_id, user_id)
)
"""

CERTIFICATES_TABLES_CQL = [
    CERTIFICATES_TABLE_CQL,
    CERTIFICATES_BY_COURSE_TABLE_CQL,
]


def make_certificate_id(course_id: UUID, issued_at: datetime) -> str:
    """``CERT_{course_id}_{epoch milliseconds}``."""
    return f"CERT_{course_id}_{int(issued_at.timestamp() * 1000)}"


class Certificate:
    """A certificate awarded for completing every module of a course.

    Name, title and instructor are copied at issue time so the document
    stays the same if the course is edited later.
    """

    def __init__(
        self,
        user_id: UUID,
        course_id: UUID,
        student_name: str,
        course_title: str,
        course_code: str = "",
        instructor: str = "",
        issued_at: datetime | None = None,
        certificate_id: str | None = None,
    ):
        self.user_id = user_id
        self.course_id = course_id
        self.student_name = student_name
        self.course_title = course_title
        self.course_code = course_code
        self.instructor = instructor
        self.issued_at = ensure_utc_aware(issued_at) or datetime.now(UTC)
        self.certificate_id = certificate_id or make_certificate_id(
            course_id, self.issued_at
        )

    @classmethod
    def from_row(cls, row: Any) -> "Certificate":
        return cls(
            user_id=row.user_id,
            course_id=row.course_id,
            certificate_id=row.certificate_id,
            student_name=row.student_name or "",
            course_title=getattr(row, "course_title", None) or "",
            course_code=getattr(row, "course_code", None) or "",
            instructor=getattr(row, "instructor", None) or "",
            issued_at=row.issued_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "certificate_id": self.certificate_id,
            "user_id": self.user_id,
            "course_id": self.course_id,
            "student_name": self.student_name,
            "course_title": self.course_title,
            "course_code": self.course_code,
            "instructor": self.instructor,
            "issued_at": self.issued_at,
        }

    def __repr__(self) -> str:
        return f"<Certificate {self.certificate_id}>"
