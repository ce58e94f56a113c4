"""Pydantic schemas for progress tracking."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from skillhub.progress.unlock import ModuleStatus


# ==============================================================================
# Request Schemas
# ==============================================================================


class VideoProgressRequest(BaseModel):
    """Report from the video player.

    The video counts when ``completed`` is set (the video ended) or when
    ``watched_percentage`` reaches 90.
    """

    course_id: UUID
    module_index: int = Field(..., ge=0)
    video_index: int = Field(..., ge=0)
    watched_percentage: float = Field(0, ge=0, le=100)
    completed: bool = False


# ==============================================================================
# Response Schemas
# ==============================================================================


class ModuleProgressResponse(BaseModel):
    index: int
    label: str
    topic: str
    status: ModuleStatus
    completed: bool
    completed_videos: list[int]
    total_videos: int


class CourseProgressSummary(BaseModel):
    total_modules: int
    completed_modules: int
    total_videos: int
    completed_videos: int
    overall_progress: int = Field(..., ge=0, le=100)
    is_completed: bool
    certificate_generated: bool = False


class CourseProgressResponse(BaseModel):
    """A student's progress through one course."""

    course_id: UUID
    user_id: UUID
    course_progress: CourseProgressSummary
    modules: list[ModuleProgressResponse]
    unlocked_modules: list[int]
    certificate_eligible: bool
    state: dict[str, Any] = Field(
        default_factory=dict, description="Module progress as plain JSON"
    )


class VideoProgressResponse(BaseModel):
    counted: bool = Field(..., description="Whether the video was marked watched")
    module_completed: bool
    progress: CourseProgressResponse
