"""FastAPI dependencies for the assistant."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from skillhub.assistant.service import AssistantError, AssistantService


async def get_assistant_service(request: Request) -> AssistantService:
    """Get assistant service from app state."""
    service = getattr(request.app.state, "assistant_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Assistant service unavailable",
        )
    return service


AssistantServiceDep = Annotated[AssistantService, Depends(get_assistant_service)]


def handle_assistant_error(error: AssistantError) -> HTTPException:
    """Convert assistant errors to HTTPException."""
    status_map = {
        "not_configured": status.HTTP_503_SERVICE_UNAVAILABLE,
        "invalid_request": status.HTTP_400_BAD_REQUEST,
        "access_denied": status.HTTP_502_BAD_GATEWAY,
        "endpoint_not_found": status.HTTP_502_BAD_GATEWAY,
        "rate_limited": status.HTTP_429_TOO_MANY_REQUESTS,
        "overloaded": status.HTTP_503_SERVICE_UNAVAILABLE,
        "invalid_response": status.HTTP_502_BAD_GATEWAY,
        "network_error": status.HTTP_502_BAD_GATEWAY,
    }
    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_502_BAD_GATEWAY),
        detail=error.message,
    )
