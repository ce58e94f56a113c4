"""Pydantic schemas for the SkillBot assistant."""

from typing import Literal

from pydantic import BaseModel, Field


class ChatTurn(BaseModel):
    """One line of the conversation as the assistant sees it."""

    role: Literal["Student", "SkillBot"]
    content: str = Field(..., max_length=8000)


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)
    history: list[ChatTurn] = Field(
        default_factory=list,
        max_length=50,
        description="Earlier turns; only the most recent ones are sent along",
    )


class ChatResponse(BaseModel):
    reply: str
    history: list[ChatTurn] = Field(..., description="Updated conversation window")
