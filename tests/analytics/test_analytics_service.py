"""Tests for enrollment analytics."""

from datetime import UTC, date, datetime, timedelta
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from skillhub.analytics.schemas import TimeFilter
from skillhub.analytics.service import (
    AnalyticsService,
    analytics_csv,
    analytics_filename,
    course_stats,
    enrollment_rate,
    window_start,
)
from skillhub.auth.permissions import UserRole
from skillhub.auth.schemas import TokenUser
from skillhub.courses.models import Course
from skillhub.enrollments.models import Enrollment


NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


def _enrolled(course: Course, days_ago: int) -> Enrollment:
    return Enrollment(
        course_id=course.id, user_id=uuid4(), enrolled_at=NOW - timedelta(days=days_ago)
    )


@pytest.fixture
def course() -> Course:
    return Course(title="Python Basics", code="CS101", category="Programming", max_students=4)


class TestWindows:
    @pytest.mark.parametrize(
        ("time_filter", "days"),
        [(TimeFilter.WEEK, 7), (TimeFilter.MONTH, 30), (TimeFilter.SEMESTER, 90)],
    )
    def test_window(self, time_filter, days) -> None:
        assert window_start(time_filter, NOW) == NOW - timedelta(days=days)

    def test_all_time(self) -> None:
        assert window_start(TimeFilter.ALL, NOW) is None

    def test_counts_inside_window(self, course) -> None:
        enrollments = [_enrolled(course, 1), _enrolled(course, 10), _enrolled(course, 60)]
        assert course_stats(course, enrollments, window_start(TimeFilter.WEEK, NOW)).enrollments == 1
        month = course_stats(course, enrollments, window_start(TimeFilter.MONTH, NOW))
        assert month.enrollments == 2
        assert month.enrollment_rate == 50.0
        assert course_stats(course, enrollments, None).enrollments == 3


class TestRate:
    def test_zero_capacity(self) -> None:
        assert enrollment_rate(5, 0) == 0.0

    def test_rate(self) -> None:
        assert enrollment_rate(1, 3) == pytest.approx(33.333, rel=1e-3)


class TestExport:
    def test_csv(self, course) -> None:
        stats = course_stats(course, [_enrolled(course, 1)], None)
        stats.capacity = 3
        stats.enrollment_rate = enrollment_rate(1, 3)
        lines = analytics_csv([stats]).splitlines()
        assert lines[0] == (
            '"Course Code","Course Title","Category","Enrollments",'
            '"Capacity","Enrollment Rate (%)"'
        )
        assert lines[1] == '"CS101","Python Basics","Programming","1","3","33.3"'

    def test_filename(self) -> None:
        assert analytics_filename(TimeFilter.MONTH, date(2025, 6, 1)) == (
            "course_analytics_month_2025-06-01.csv"
        )


class TestAnalyticsService:
    @pytest.fixture
    def services(self, course):
        deleted = Course(title="Old", code="OLD1", max_students=10, is_active=False)
        course_service = Mock()
        course_service.list_courses = AsyncMock(return_value=[course])
        course_service.list_courses_by_creator = AsyncMock(return_value=[course, deleted])
        enrollment_service = Mock()
        enrollment_service.get_course_enrollments = AsyncMock(
            return_value=[_enrolled(course, 2), _enrolled(course, 40)]
        )
        return course_service, enrollment_service

    @pytest.mark.asyncio
    async def test_faculty_sees_own_active_courses(self, services) -> None:
        course_service, enrollment_service = services
        user = TokenUser(id=uuid4(), email="f@example.com", role=UserRole.FACULTY.value)
        service = AnalyticsService(course_service, enrollment_service)

        result = await service.get_enrollment_analytics(user, TimeFilter.MONTH, now=NOW)

        course_service.list_courses_by_creator.assert_awaited_once_with(user.id)
        assert result.total_courses == 1
        assert result.total_enrollments == 1
        assert result.average_enrollment_rate == 25.0

    @pytest.mark.asyncio
    async def test_admin_sees_all(self, services) -> None:
        course_service, enrollment_service = services
        user = TokenUser(id=uuid4(), email="a@example.com", role=UserRole.ADMIN.value)
        service = AnalyticsService(course_service, enrollment_service)

        content, filename = await service.export_csv(user, TimeFilter.ALL, now=NOW)

        course_service.list_courses.assert_awaited_once()
        assert filename == "course_analytics_all_2025-06-01.csv"
        assert content.splitlines()[1].endswith('"2","4","50.0"')

    @pytest.mark.asyncio
    async def test_no_courses(self) -> None:
        course_service = Mock()
        course_service.list_courses_by_creator = AsyncMock(return_value=[])
        service = AnalyticsService(course_service, Mock())
        user = TokenUser(id=uuid4(), email="f@example.com", role=UserRole.FACULTY.value)

        result = await service.get_enrollment_analytics(user, TimeFilter.ALL, now=NOW)

        assert result.total_courses == 0
        assert result.average_enrollment_rate == 0.0
