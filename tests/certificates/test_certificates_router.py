"""Tests for certificate endpoints with mocked services."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from skillhub.certificates.models import Certificate
from skillhub.certificates.service import (
    CertificateNotEligibleError,
    CertificateNotFoundError,
)
from skillhub.courses.models import Course
from skillhub.enrollments.service import NotEnrolledError


COURSE = Course(title="Python Basics", code="CS101", instructor="Dr. Rao")
USER_ID = uuid4()


def _certificate() -> Certificate:
    return Certificate(
        user_id=USER_ID,
        course_id=COURSE.id,
        student_name="Asha Verma",
        course_title=COURSE.title,
        course_code=COURSE.code,
        instructor=COURSE.instructor,
    )


@pytest.fixture
def progress_service(app: FastAPI) -> Mock:
    service = Mock()
    service.get_snapshot = AsyncMock(return_value=Mock(course=COURSE, eligible=True))
    app.state.progress_service = service
    return service


@pytest.fixture
def certificate_service(app: FastAPI) -> Mock:
    service = Mock()
    service.generate = AsyncMock(return_value=_certificate())
    service.get_valid_certificate = AsyncMock(return_value=_certificate())
    service.render_html = Mock(return_value="<!DOCTYPE html><html></html>")
    app.state.certificate_service = service
    return service


class TestGenerate:
    def test_generate(
        self, client: TestClient, progress_service, certificate_service, make_headers
    ) -> None:
        response = client.post(
            f"/api/certificates/{COURSE.id}", headers=make_headers(user_id=USER_ID)
        )
        assert response.status_code == 201
        data = response.json()
        assert data["course_code"] == "CS101"
        assert data["status"] == "generated"
        kwargs = certificate_service.generate.await_args.kwargs
        assert kwargs["student_name"] == "Asha Verma"
        assert kwargs["eligible"] is True

    def test_not_eligible(
        self, client: TestClient, progress_service, certificate_service, make_headers
    ) -> None:
        certificate_service.generate.side_effect = CertificateNotEligibleError()
        response = client.post(f"/api/certificates/{COURSE.id}", headers=make_headers())
        assert response.status_code == 409

    def test_not_enrolled(
        self, client: TestClient, progress_service, certificate_service, make_headers
    ) -> None:
        progress_service.get_snapshot.side_effect = NotEnrolledError()
        response = client.post(f"/api/certificates/{COURSE.id}", headers=make_headers())
        assert response.status_code == 404
        certificate_service.generate.assert_not_called()


class TestDocument:
    def test_download_is_attachment(
        self, client: TestClient, progress_service, certificate_service, make_headers
    ) -> None:
        response = client.get(
            f"/api/certificates/{COURSE.id}/download", headers=make_headers()
        )
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        disposition = response.headers["content-disposition"]
        assert disposition.startswith("attachment;")
        assert f"SkillHub-Certificate-{COURSE.id}-" in disposition

    def test_view_is_inline(
        self, client: TestClient, progress_service, certificate_service, make_headers
    ) -> None:
        response = client.get(f"/api/certificates/{COURSE.id}/view", headers=make_headers())
        assert response.status_code == 200
        assert response.headers["content-disposition"].startswith("inline;")

    def test_revoked_certificate_is_missing(
        self, client: TestClient, progress_service, certificate_service, make_headers
    ) -> None:
        progress_service.get_snapshot.return_value = Mock(course=COURSE, eligible=False)
        certificate_service.get_valid_certificate.side_effect = CertificateNotFoundError()
        response = client.get(f"/api/certificates/{COURSE.id}", headers=make_headers())
        assert response.status_code == 404
        assert certificate_service.get_valid_certificate.await_args.kwargs["eligible"] is False
