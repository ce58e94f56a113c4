"""Tests for analytics endpoints."""

from unittest.mock import AsyncMock, Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from skillhub.analytics.schemas import EnrollmentAnalyticsResponse, TimeFilter
from skillhub.auth.permissions import UserRole


@pytest.fixture
def analytics_service(app: FastAPI) -> Mock:
    service = Mock()
    service.get_enrollment_analytics = AsyncMock(
        return_value=EnrollmentAnalyticsResponse(
            time_filter=TimeFilter.WEEK,
            total_courses=0,
            total_enrollments=0,
            average_enrollment_rate=0.0,
            courses=[],
        )
    )
    service.export_csv = AsyncMock(
        return_value=('"Course Code"\n', "course_analytics_all_2025-06-01.csv")
    )
    app.state.analytics_service = service
    return service


class TestAnalyticsRoutes:
    def test_faculty(self, client: TestClient, analytics_service, make_headers) -> None:
        response = client.get(
            "/api/analytics/enrollments",
            params={"time_filter": "week"},
            headers=make_headers(UserRole.FACULTY),
        )
        assert response.status_code == 200
        assert response.json()["time_filter"] == "week"
        assert analytics_service.get_enrollment_analytics.await_args.args[1] == TimeFilter.WEEK

    def test_student_forbidden(self, client: TestClient, analytics_service, make_headers) -> None:
        response = client.get("/api/analytics/enrollments", headers=make_headers())
        assert response.status_code == 403

    def test_bad_filter(self, client: TestClient, analytics_service, make_headers) -> None:
        response = client.get(
            "/api/analytics/enrollments",
            params={"time_filter": "decade"},
            headers=make_headers(UserRole.FACULTY),
        )
        assert response.status_code == 422

    def test_export(self, client: TestClient, analytics_service, make_headers) -> None:
        response = client.get(
            "/api/analytics/enrollments/export", headers=make_headers(UserRole.ADMIN)
        )
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert (
            'attachment; filename="course_analytics_all_2025-06-01.csv"'
            == response.headers["content-disposition"]
        )
