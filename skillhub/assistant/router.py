"""SkillBot chat endpoint."""

from fastapi import APIRouter

from skillhub.assistant.dependencies import AssistantServiceDep, handle_assistant_error
from skillhub.assistant.schemas import ChatRequest, ChatResponse
from skillhub.assistant.service import AssistantError
from skillhub.auth.dependencies import StudentUser


router = APIRouter(prefix="/assistant", tags=["assistant"])


@router.post(
    "/chat",
    response_model=ChatResponse,
    summary="Ask SkillBot",
    responses={
        429: {"description": "Too many requests"},
        502: {"description": "AI provider error"},
        503: {"description": "Assistant not configured or overloaded"},
    },
)
async def chat(
    data: ChatRequest,
    assistant_service: AssistantServiceDep,
    user: StudentUser,
) -> ChatResponse:
    """Answer a student's question.

    The client keeps the conversation and sends it back as ``history``; the
    response carries the updated window to send next time.
    """
    try:
        return await assistant_service.chat(
            user_id=str(user.id),
            message=data.message,
            history=data.history,
            student_name=user.name,
            student_email=user.email,
        )
    except AssistantError as e:
        raise handle_assistant_error(e) from e
