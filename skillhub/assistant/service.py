"""SkillBot assistant service.

Forwards a student's question, with a short window of the conversation, to
the Gemini ``generateContent`` endpoint. Only an overloaded provider (503)
is retried; every other failure is reported to the caller at once.
"""

import asyncio
from typing import TYPE_CHECKING, Any

import httpx

from skillhub.assistant.schemas import ChatResponse, ChatTurn
from skillhub.config.settings import Settings
from skillhub.core.logging import get_logger
from skillhub.core.redis import rate_limit_key


if TYPE_CHECKING:
    from redis.asyncio import Redis


logger = get_logger(__name__)


SYSTEM_PROMPT = """You are SkillBot, SkillHub's AI learning assistant. Give SHORT, CLEAR responses.

RESPONSE RULES:
- Keep answers under 3-4 sentences OR use bullet points
- Be direct and specific
- Use simple language
- No long explanations unless asked
- Use emojis sparingly (1-2 max)

SKILLHUB INFO:
- Courses in Programming, Data Science, Design, Marketing, Business and more
- Expert instructors, certificates, hands-on projects
- Students can browse, enroll, learn, get certified

YOUR ROLE:
Help with:
- Course content & concepts
- Study tips & strategies
- Assignment guidance
- Platform navigation
- Course recommendations

RESPONSE FORMAT:
For questions: Give direct answers in 2-3 sentences
For lists: Use bullet points (max 5 items)
For explanations: Keep under 50 words
For recommendations: List 2-3 specific options

Always be helpful but CONCISE. Students want quick, clear answers."""


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class AssistantError(Exception):
    """Base assistant error."""

    def __init__(self, message: str, code: str = "assistant_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class AssistantNotConfiguredError(AssistantError):
    def __init__(self, message: str = "API key not configured. Please contact support."):
        super().__init__(message, "not_configured")


class AssistantRateLimitError(AssistantError):
    def __init__(self, message: str = "Too many requests. Please wait a moment and try again."):
        super().__init__(message, "rate_limited")


class AssistantUnavailableError(AssistantError):
    def __init__(
        self,
        message: str = (
            "The AI service is currently overloaded. "
            "Please wait a few moments and try again."
        ),
    ):
        super().__init__(message, "overloaded")


class AssistantProviderError(AssistantError):
    """The provider rejected the call or answered with something unusable."""


# Provider status -> (code, message). 429 and 503 have their own classes.
PROVIDER_ERRORS: dict[int, tuple[str, str]] = {
    400: ("invalid_request", "Invalid request format. Please try a different question."),
    403: ("access_denied", "API access denied. Please check API key permissions."),
    404: ("endpoint_not_found", "API endpoint not found. Please contact support."),
}


# ==============================================================================
# Prompt helpers
# ==============================================================================


def recent_history(history: list[ChatTurn], window: int) -> list[ChatTurn]:
    return history[-window:] if window > 0 else []


def build_prompt(
    question: str,
    history: list[ChatTurn],
    student_name: str | None = None,
    student_email: str | None = None,
) -> str:
    """System prompt, student context, recent turns, then the question."""
    parts = [SYSTEM_PROMPT]
    if student_name or student_email:
        parts.append(f"\n\nCurrent student: {student_name or ''} ({student_email or ''})")
    if history:
        lines = "\n".join(f"{turn.role}: {turn.content}" for turn in history)
        parts.append(f"\n\nRecent conversation context:\n{lines}\n")
    parts.append(f"\n\nStudent question: {question}")
    return "".join(parts)


def extract_reply(data: Any) -> str:
    """Text of the first candidate.

    Raises:
        AssistantProviderError: If the body has no candidate text
    """
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise AssistantProviderError(
            "Received unexpected response format. Please try again.", "invalid_response"
        ) from e
    if not isinstance(text, str):
        raise AssistantProviderError(
            "Received unexpected response format. Please try again.", "invalid_response"
        )
    return text


# ==============================================================================
# Service
# ==============================================================================


class AssistantService:
    """Chat proxy in front of the Gemini API."""

    RATE_LIMIT_SCOPE = "assistant"

    def __init__(
        self,
        settings: Settings,
        redis: "Redis | None" = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.redis = redis
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return self.settings.assistant_configured

    @property
    def endpoint(self) -> str:
        base = self.settings.gemini_base_url.rstrip("/")
        return f"{base}/{self.settings.gemini_model}:generateContent"

    async def check_rate_limit(self, user_id: str) -> None:
        """Count this request against the student's per-minute budget.

        Without Redis there is no limit.

        Raises:
            AssistantRateLimitError: If the budget is used up
        """
        if not self.redis:
            return

        key = rate_limit_key(self.RATE_LIMIT_SCOPE, user_id)
        pipe = self.redis.pipeline()
        pipe.incr(key)
        pipe.expire(key, 60)
        count, _ = await pipe.execute()
        if int(count) > self.settings.assistant_rate_limit_per_minute:
            logger.info("assistant_rate_limited", user_id=user_id)
            raise AssistantRateLimitError

    async def chat(
        self,
        user_id: str,
        message: str,
        history: list[ChatTurn],
        student_name: str | None = None,
        student_email: str | None = None,
    ) -> ChatResponse:
        """Ask SkillBot and return the reply with the updated window.

        Raises:
            AssistantError: Subclass or code describing why there is no reply
        """
        if not self.is_configured:
            raise AssistantNotConfiguredError

        await self.check_rate_limit(user_id)

        window = self.settings.assistant_history_window
        context = recent_history(history, window)
        prompt = build_prompt(message, context, student_name, student_email)
        reply = await self._generate(prompt)

        updated = [
            *history,
            ChatTurn(role="Student", content=message),
            ChatTurn(role="SkillBot", content=reply),
        ]
        return ChatResponse(reply=reply, history=recent_history(updated, window))

    async def _generate(self, prompt: str) -> str:
        body = {"contents": [{"parts": [{"text": prompt}]}]}
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.settings.gemini_api_key or "",
        }
        max_retries = self.settings.assistant_max_retries

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.assistant_timeout_seconds,
                transport=self._transport,
            ) as client:
                attempt = 0
                while True:
                    response = await client.post(self.endpoint, json=body, headers=headers)
                    if response.status_code != httpx.codes.SERVICE_UNAVAILABLE:
                        break
                    if attempt >= max_retries:
                        logger.warning("assistant_overloaded", attempts=attempt + 1)
                        raise AssistantUnavailableError
                    attempt += 1
                    delay = self.settings.assistant_retry_base_delay * attempt
                    logger.info("assistant_retry_scheduled", attempt=attempt, delay=delay)
                    await asyncio.sleep(delay)
        except httpx.TimeoutException as e:
            logger.error("assistant_timeout", error=str(e))
            raise AssistantProviderError(
                "Network error. Please check your connection and try again.", "network_error"
            ) from e
        except httpx.RequestError as e:
            logger.error("assistant_request_error", error=str(e))
            raise AssistantProviderError(
                "Network error. Please check your connection and try again.", "network_error"
            ) from e

        return self._parse(response)

    @staticmethod
    def _parse(response: httpx.Response) -> str:
        status_code = response.status_code
        if status_code == httpx.codes.TOO_MANY_REQUESTS:
            raise AssistantRateLimitError
        if status_code in PROVIDER_ERRORS:
            code, message = PROVIDER_ERRORS[status_code]
            logger.error(
                "assistant_provider_error",
                status_code=status_code,
                response_text=response.text[:500],
            )
            raise AssistantProviderError(message, code)
        if status_code != httpx.codes.OK:
            logger.error("assistant_provider_error", status_code=status_code)
            raise AssistantProviderError(
                "Sorry, I encountered an error. Please try again later.", "provider_error"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise AssistantProviderError(
                "Received unexpected response format. Please try again.", "invalid_response"
            ) from e
        return extract_reply(data)
