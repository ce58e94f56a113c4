"""Shared fixtures for API tests."""

import os


# Settings are cached on first use, so the environment is set before any
# skillhub import.
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("GEMINI_API_KEY", "")

from collections.abc import Callable  # noqa: E402
from uuid import UUID, uuid4  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from skillhub.auth.permissions import UserRole  # noqa: E402
from skillhub.auth.security import create_access_token  # noqa: E402
from skillhub.main import create_app  # noqa: E402


@pytest.fixture
def app() -> FastAPI:
    """Fresh application without lifespan; tests put mocks on ``app.state``."""
    return create_app()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def make_headers() -> Callable[..., dict[str, str]]:
    """Build an Authorization header for a user with the given role."""

    def _make(
        role: UserRole = UserRole.STUDENT,
        user_id: UUID | None = None,
        name: str = "Asha Verma",
        email: str = "asha@example.com",
    ) -> dict[str, str]:
        token = create_access_token(
            {
                "sub": str(user_id or uuid4()),
                "email": email,
                "role": role.value,
                "name": name,
            }
        )
        return {"Authorization": f"Bearer {token}"}

    return _make
