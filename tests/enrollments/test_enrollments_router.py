"""Tests for enrollment endpoints with mocked services."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from skillhub.auth.models import User
from skillhub.auth.permissions import UserRole
from skillhub.courses.models import Course, CourseModule
from skillhub.courses.service import CourseService
from skillhub.enrollments.models import Enrollment
from skillhub.enrollments.service import CourseFullError, EmptyRosterError


FACULTY_ID = uuid4()
STUDENT_ID = uuid4()


@pytest.fixture
def course() -> Course:
    return Course(
        title="Python Basics",
        code="CS101",
        max_students=30,
        creator_id=FACULTY_ID,
        syllabus=[CourseModule(0, "Intro")],
    )


@pytest.fixture
def enrollment(course: Course) -> Enrollment:
    return Enrollment(
        course_id=course.id,
        user_id=STUDENT_ID,
        student_name="Asha Verma",
        student_email="asha@example.com",
        registration_number="21CS042",
        enrolled_at=datetime(2025, 1, 3, tzinfo=UTC),
    )


@pytest.fixture
def services(app: FastAPI, course: Course, enrollment: Enrollment) -> dict[str, Mock]:
    real = CourseService(session=Mock(), keyspace="test_keyspace")
    course_service = Mock()
    course_service.get_course = AsyncMock(return_value=course)
    course_service.to_response = real.to_response

    enrollment_service = Mock()
    enrollment_service.enroll = AsyncMock(return_value=enrollment)
    enrollment_service.unenroll = AsyncMock(return_value=enrollment)
    enrollment_service.get_user_enrollments = AsyncMock(return_value=[enrollment])
    enrollment_service.export_roster = AsyncMock(
        return_value=('"Student Name"\n', "Python_Basics_Enrolled_Students_2025-02-01.csv")
    )

    auth_service = Mock()
    auth_service.get_user_by_id = AsyncMock(
        return_value=User(id=STUDENT_ID, email="asha@example.com", name="Asha Verma")
    )

    progress_service = Mock()
    progress_service.delete_progress = AsyncMock()

    app.state.course_service = course_service
    app.state.enrollment_service = enrollment_service
    app.state.auth_service = auth_service
    app.state.progress_service = progress_service
    return {
        "course": course_service,
        "enrollment": enrollment_service,
        "progress": progress_service,
    }


class TestStudentEnrollment:
    def test_enroll(self, client: TestClient, services, course: Course, make_headers) -> None:
        response = client.post(
            f"/api/courses/{course.id}/enroll", headers=make_headers(user_id=STUDENT_ID)
        )
        assert response.status_code == 201
        assert response.json()["status"] == "enrolled"
        student, enrolled_course = services["enrollment"].enroll.call_args.args
        assert student.id == STUDENT_ID
        assert enrolled_course is course

    def test_enroll_full_course(
        self, client: TestClient, services, course: Course, make_headers
    ) -> None:
        services["enrollment"].enroll.side_effect = CourseFullError()
        response = client.post(f"/api/courses/{course.id}/enroll", headers=make_headers())
        assert response.status_code == 409

    def test_faculty_cannot_enroll(
        self, client: TestClient, services, course: Course, make_headers
    ) -> None:
        response = client.post(
            f"/api/courses/{course.id}/enroll", headers=make_headers(UserRole.FACULTY)
        )
        assert response.status_code == 403

    def test_enrolled_route_not_taken_for_course_id(
        self, client: TestClient, services, make_headers
    ) -> None:
        """/courses/enrolled resolves to the student's list."""
        response = client.get("/api/courses/enrolled", headers=make_headers(user_id=STUDENT_ID))
        assert response.status_code == 200
        items = response.json()["items"]
        assert items[0]["course"]["code"] == "CS101"
        assert items[0]["enrollment"]["user_id"] == str(STUDENT_ID)

    def test_unenroll_drops_progress(
        self, client: TestClient, services, course: Course, make_headers
    ) -> None:
        response = client.delete(
            f"/api/courses/{course.id}/unenroll", headers=make_headers(user_id=STUDENT_ID)
        )
        assert response.status_code == 200
        services["progress"].delete_progress.assert_awaited_once_with(STUDENT_ID, course.id)


class TestRosterExport:
    def test_export_is_csv_attachment(
        self, client: TestClient, services, course: Course, make_headers
    ) -> None:
        response = client.get(
            f"/api/courses/{course.id}/students/export",
            headers=make_headers(UserRole.FACULTY, user_id=FACULTY_ID),
        )
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert (
            response.headers["content-disposition"]
            == 'attachment; filename="Python_Basics_Enrolled_Students_2025-02-01.csv"'
        )

    def test_export_empty_roster(
        self, client: TestClient, services, course: Course, make_headers
    ) -> None:
        services["enrollment"].export_roster.side_effect = EmptyRosterError()
        response = client.get(
            f"/api/courses/{course.id}/students/export",
            headers=make_headers(UserRole.FACULTY, user_id=FACULTY_ID),
        )
        assert response.status_code == 404
        assert response.json()["message"] == "No students to export"

    def test_other_faculty_cannot_export(
        self, client: TestClient, services, course: Course, make_headers
    ) -> None:
        response = client.get(
            f"/api/courses/{course.id}/students/export",
            headers=make_headers(UserRole.FACULTY),
        )
        assert response.status_code == 403
