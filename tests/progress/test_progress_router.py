"""Tests for progress endpoints with a mocked ProgressService."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from skillhub.auth.permissions import UserRole
from skillhub.enrollments.service import NotEnrolledError
from skillhub.progress.schemas import CourseProgressResponse, CourseProgressSummary
from skillhub.progress.unlock import ModuleIndexError, ModuleLockedError


COURSE_ID = uuid4()


def _progress() -> CourseProgressResponse:
    return CourseProgressResponse(
        course_id=COURSE_ID,
        user_id=uuid4(),
        course_progress=CourseProgressSummary(
            total_modules=2,
            completed_modules=1,
            total_videos=2,
            completed_videos=1,
            overall_progress=50,
            is_completed=False,
        ),
        modules=[],
        unlocked_modules=[0, 1],
        certificate_eligible=False,
    )


@pytest.fixture
def progress_service(app: FastAPI) -> Mock:
    service = Mock()
    service.get_course_progress = AsyncMock(return_value=_progress())
    service.set_module_completion = AsyncMock(return_value=_progress())
    service.record_video_progress = AsyncMock()
    app.state.progress_service = service
    return service


class TestProgressRoutes:
    def test_get_progress(self, client: TestClient, progress_service, make_headers) -> None:
        response = client.get(f"/api/progress/{COURSE_ID}", headers=make_headers())
        assert response.status_code == 200
        assert response.json()["course_progress"]["overall_progress"] == 50

    def test_not_enrolled(self, client: TestClient, progress_service, make_headers) -> None:
        progress_service.get_course_progress.side_effect = NotEnrolledError()
        response = client.get(f"/api/progress/{COURSE_ID}", headers=make_headers())
        assert response.status_code == 404

    def test_faculty_has_no_progress(
        self, client: TestClient, progress_service, make_headers
    ) -> None:
        response = client.get(
            f"/api/progress/{COURSE_ID}", headers=make_headers(UserRole.FACULTY)
        )
        assert response.status_code == 403

    def test_complete_locked_module(
        self, client: TestClient, progress_service, make_headers
    ) -> None:
        progress_service.set_module_completion.side_effect = ModuleLockedError()
        response = client.post(
            f"/api/progress/{COURSE_ID}/modules/2/complete", headers=make_headers()
        )
        assert response.status_code == 403
        assert "locked" in response.json()["message"]

    def test_incomplete_passes_flag(
        self, client: TestClient, progress_service, make_headers
    ) -> None:
        response = client.post(
            f"/api/progress/{COURSE_ID}/modules/0/incomplete", headers=make_headers()
        )
        assert response.status_code == 200
        assert progress_service.set_module_completion.call_args.kwargs["completed"] is False

    def test_video_report_unknown_module(
        self, client: TestClient, progress_service, make_headers
    ) -> None:
        progress_service.record_video_progress.side_effect = ModuleIndexError(9)
        response = client.post(
            "/api/progress/video",
            json={
                "course_id": str(COURSE_ID),
                "module_index": 9,
                "video_index": 0,
                "watched_percentage": 95,
            },
            headers=make_headers(),
        )
        assert response.status_code == 404

    def test_video_report_validates_percentage(
        self, client: TestClient, progress_service, make_headers
    ) -> None:
        response = client.post(
            "/api/progress/video",
            json={
                "course_id": str(COURSE_ID),
                "module_index": 0,
                "video_index": 0,
                "watched_percentage": 120,
            },
            headers=make_headers(),
        )
        assert response.status_code == 422
