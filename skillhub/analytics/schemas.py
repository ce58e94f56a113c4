"""Pydantic schemas for enrollment analytics."""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class TimeFilter(str, Enum):
    """Enrollment window counted by the analytics."""

    ALL = "all"
    WEEK = "week"
    MONTH = "month"
    SEMESTER = "semester"


class CourseEnrollmentStats(BaseModel):
    course_id: UUID
    code: str
    title: str
    category: str
    enrollments: int
    capacity: int
    enrollment_rate: float = Field(..., description="Enrollments / capacity x 100")


class EnrollmentAnalyticsResponse(BaseModel):
    time_filter: TimeFilter
    total_courses: int
    total_enrollments: int
    average_enrollment_rate: float
    courses: list[CourseEnrollmentStats]
