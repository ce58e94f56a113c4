"""Enrollment analytics for faculty.

Counts enrollments per course inside a time window and exports the
numbers as CSV.
"""

from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta
from uuid import UUID

from skillhub.analytics.schemas import (
    CourseEnrollmentStats,
    EnrollmentAnalyticsResponse,
    TimeFilter,
)
from skillhub.auth.permissions import UserRole
from skillhub.auth.schemas import TokenUser
from skillhub.core.exports import date_stamp, render_csv
from skillhub.core.logging import get_logger
from skillhub.courses.models import Course
from skillhub.courses.service import CourseService
from skillhub.enrollments.models import Enrollment
from skillhub.enrollments.service import EnrollmentService


logger = get_logger(__name__)

WINDOW_DAYS = {
    TimeFilter.WEEK: 7,
    TimeFilter.MONTH: 30,
    TimeFilter.SEMESTER: 90,
}

ANALYTICS_CSV_HEADERS = (
    "Course Code",
    "Course Title",
    "Category",
    "Enrollments",
    "Capacity",
    "Enrollment Rate (%)",
)


def window_start(time_filter: TimeFilter, now: datetime) -> datetime | None:
    """Earliest enrollment time counted; None means no limit."""
    days = WINDOW_DAYS.get(time_filter)
    return now - timedelta(days=days) if days else None


def enrollment_rate(enrollments: int, capacity: int) -> float:
    if capacity <= 0:
        return 0.0
    return enrollments / capacity * 100


def course_stats(
    course: Course, enrollments: Iterable[Enrollment], since: datetime | None
) -> CourseEnrollmentStats:
    count = sum(1 for e in enrollments if since is None or e.enrolled_at >= since)
    capacity = course.max_students or 0
    return CourseEnrollmentStats(
        course_id=course.id,
        code=course.code,
        title=course.title,
        category=course.category,
        enrollments=count,
        capacity=capacity,
        enrollment_rate=enrollment_rate(count, capacity),
    )


def summarize_stats(
    time_filter: TimeFilter, stats: list[CourseEnrollmentStats]
) -> EnrollmentAnalyticsResponse:
    total_enrollments = sum(s.enrollments for s in stats)
    average = sum(s.enrollment_rate for s in stats) / len(stats) if stats else 0.0
    return EnrollmentAnalyticsResponse(
        time_filter=time_filter,
        total_courses=len(stats),
        total_enrollments=total_enrollments,
        average_enrollment_rate=average,
        courses=stats,
    )


def analytics_csv(stats: list[CourseEnrollmentStats]) -> str:
    """CSV with the rate rounded to one decimal."""
    return render_csv(
        ANALYTICS_CSV_HEADERS,
        (
            (s.code, s.title, s.category, s.enrollments, s.capacity, f"{s.enrollment_rate:.1f}")
            for s in stats
        ),
    )


def analytics_filename(time_filter: TimeFilter, day: date) -> str:
    return f"course_analytics_{time_filter.value}_{date_stamp(day)}.csv"


class AnalyticsService:
    """Read-only aggregation over courses and enrollments."""

    def __init__(self, course_service: CourseService, enrollment_service: EnrollmentService):
        self.course_service = course_service
        self.enrollment_service = enrollment_service

    async def _courses_for(self, user: TokenUser) -> list[Course]:
        """Admins see every active course, faculty their own active ones."""
        if user.role == UserRole.ADMIN.value:
            return await self.course_service.list_courses()
        courses = await self.course_service.list_courses_by_creator(UUID(str(user.id)))
        return [c for c in courses if c.is_active]

    async def get_enrollment_analytics(
        self, user: TokenUser, time_filter: TimeFilter, now: datetime | None = None
    ) -> EnrollmentAnalyticsResponse:
        since = window_start(time_filter, now or datetime.now(UTC))
        stats = []
        for course in await self._courses_for(user):
            enrollments = await self.enrollment_service.get_course_enrollments(course.id)
            stats.append(course_stats(course, enrollments, since))
        return summarize_stats(time_filter, stats)

    async def export_csv(
        self, user: TokenUser, time_filter: TimeFilter, now: datetime | None = None
    ) -> tuple[str, str]:
        """CSV content and download filename."""
        now = now or datetime.now(UTC)
        analytics = await self.get_enrollment_analytics(user, time_filter, now)
        logger.info(
            "analytics_exported",
            time_filter=time_filter.value,
            courses=analytics.total_courses,
        )
        return analytics_csv(analytics.courses), analytics_filename(time_filter, now.date())
