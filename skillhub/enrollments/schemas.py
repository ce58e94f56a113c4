"""Pydantic schemas for enrollments and rosters."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from skillhub.courses.schemas import CourseResponse


class EnrollmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    course_id: UUID
    user_id: UUID
    status: str
    enrolled_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    progress_percent: int = 0
    modules_completed: int = 0
    modules_total: int = 0
    last_accessed_at: datetime | None = None


class EnrolledCourseResponse(BaseModel):
    """A course the student is enrolled in, with their progress."""

    course: CourseResponse
    enrollment: EnrollmentResponse


class EnrolledCourseListResponse(BaseModel):
    items: list[EnrolledCourseResponse]
    total: int


class RosterEntryResponse(BaseModel):
    """One student on a course roster."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    student_name: str
    student_email: str
    registration_number: str | None = None
    enrolled_at: datetime
    status: str
    progress_percent: int = 0


class RosterResponse(BaseModel):
    course_id: UUID
    course_title: str
    max_students: int
    items: list[RosterEntryResponse]
    total: int
