"""Tests for the SkillBot chat endpoint."""

from unittest.mock import AsyncMock, Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from skillhub.assistant.schemas import ChatResponse, ChatTurn
from skillhub.assistant.service import (
    AssistantNotConfiguredError,
    AssistantProviderError,
    AssistantRateLimitError,
    AssistantUnavailableError,
)
from skillhub.auth.permissions import UserRole


@pytest.fixture
def assistant_service(app: FastAPI) -> Mock:
    service = Mock()
    service.chat = AsyncMock(
        return_value=ChatResponse(
            reply="Hello!",
            history=[
                ChatTurn(role="Student", content="hi"),
                ChatTurn(role="SkillBot", content="Hello!"),
            ],
        )
    )
    app.state.assistant_service = service
    return service


class TestChatEndpoint:
    def test_chat(self, client: TestClient, assistant_service, make_headers) -> None:
        response = client.post(
            "/api/assistant/chat", json={"message": "hi"}, headers=make_headers()
        )
        assert response.status_code == 200
        assert response.json()["reply"] == "Hello!"
        kwargs = assistant_service.chat.await_args.kwargs
        assert kwargs["student_name"] == "Asha Verma"
        assert kwargs["history"] == []

    def test_students_only(self, client: TestClient, assistant_service, make_headers) -> None:
        response = client.post(
            "/api/assistant/chat",
            json={"message": "hi"},
            headers=make_headers(UserRole.FACULTY),
        )
        assert response.status_code == 403

    def test_empty_message(self, client: TestClient, assistant_service, make_headers) -> None:
        response = client.post(
            "/api/assistant/chat", json={"message": ""}, headers=make_headers()
        )
        assert response.status_code == 422

    @pytest.mark.parametrize(
        ("error", "status_code"),
        [
            (AssistantNotConfiguredError(), 503),
            (AssistantUnavailableError(), 503),
            (AssistantRateLimitError(), 429),
            (AssistantProviderError("denied", "access_denied"), 502),
        ],
    )
    def test_errors(
        self, client: TestClient, assistant_service, make_headers, error, status_code
    ) -> None:
        assistant_service.chat.side_effect = error
        response = client.post(
            "/api/assistant/chat", json={"message": "hi"}, headers=make_headers()
        )
        assert response.status_code == status_code
        assert response.json()["message"] == error.message
