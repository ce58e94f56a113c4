"""Tests for auth endpoints with a mocked AuthService."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from skillhub.auth.models import User
from skillhub.auth.permissions import UserRole
from skillhub.auth.schemas import AuthResponse, UserResponse
from skillhub.auth.service import InvalidCredentialsError, UserExistsError


@pytest.fixture
def user() -> User:
    return User(
        email="asha@example.com",
        name="Asha Verma",
        password_hash="x",
        role="student",
        registration_number="21CS042",
    )


@pytest.fixture
def auth_service(app: FastAPI, user: User) -> Mock:
    service = Mock()
    service.register_user = AsyncMock(return_value=user)
    service.authenticate_user = AsyncMock(return_value=user)
    service.get_user_by_id = AsyncMock(return_value=user)
    service.to_response = Mock(side_effect=UserResponse.model_validate)
    service.issue_token = Mock(
        return_value=AuthResponse(
            token="tok", expires_in=3600, user=UserResponse.model_validate(user)
        )
    )
    app.state.auth_service = service
    return service


REGISTER_BODY = {
    "name": "Asha Verma",
    "email": "asha@example.com",
    "password": "secret1",
    "role": "student",
    "registration_number": "21CS042",
}


class TestRegister:
    def test_register_returns_token(self, client: TestClient, auth_service: Mock) -> None:
        response = client.post("/api/auth/register", json=REGISTER_BODY)
        assert response.status_code == 201
        assert response.json()["token"] == "tok"
        assert response.json()["user"]["registration_number"] == "21CS042"

    def test_register_existing_email(self, client: TestClient, auth_service: Mock) -> None:
        auth_service.register_user.side_effect = UserExistsError()
        response = client.post("/api/auth/register", json=REGISTER_BODY)
        assert response.status_code == 409

    def test_register_validation_error_envelope(
        self, client: TestClient, auth_service: Mock
    ) -> None:
        """Validation errors use the common error envelope with field details."""
        response = client.post("/api/auth/register", json={**REGISTER_BODY, "password": "1"})
        assert response.status_code == 422
        body = response.json()
        assert body["error"] is True
        assert body["details"]


class TestLogin:
    def test_login_ok(self, client: TestClient, auth_service: Mock) -> None:
        response = client.post(
            "/api/auth/login", json={"email": "asha@example.com", "password": "secret1"}
        )
        assert response.status_code == 200
        assert response.json()["token_type"] == "Bearer"

    def test_login_bad_credentials(self, client: TestClient, auth_service: Mock) -> None:
        auth_service.authenticate_user.side_effect = InvalidCredentialsError()
        response = client.post(
            "/api/auth/login", json={"email": "asha@example.com", "password": "nope"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"


class TestProfile:
    def test_profile_requires_token(self, client: TestClient, auth_service: Mock) -> None:
        response = client.get("/api/auth/profile")
        assert response.status_code == 401

    def test_profile_with_token(
        self, client: TestClient, auth_service: Mock, user: User, make_headers
    ) -> None:
        response = client.get(
            "/api/auth/profile", headers=make_headers(UserRole.STUDENT, user_id=user.id)
        )
        assert response.status_code == 200
        assert response.json()["email"] == "asha@example.com"

    def test_profile_of_deleted_account(
        self, client: TestClient, auth_service: Mock, make_headers
    ) -> None:
        auth_service.get_user_by_id.return_value = None
        response = client.get("/api/auth/profile", headers=make_headers(user_id=uuid4()))
        assert response.status_code == 404
