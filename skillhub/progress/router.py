"""Student progress API endpoints.

Provides routes for:
- Video completion reports from the player
- Manual module completion and un-completion
- Progress queries with module lock status
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException

from skillhub.auth.dependencies import StudentUser
from skillhub.courses.dependencies import handle_course_error
from skillhub.courses.service import CourseError
from skillhub.enrollments.dependencies import handle_enrollment_error
from skillhub.enrollments.service import EnrollmentError
from skillhub.progress.dependencies import ProgressServiceDep, handle_progress_error
from skillhub.progress.schemas import (
    CourseProgressResponse,
    VideoProgressRequest,
    VideoProgressResponse,
)
from skillhub.progress.unlock import ProgressError


router = APIRouter(prefix="/progress", tags=["progress"])


def _to_http(error: Exception) -> HTTPException:
    if isinstance(error, ProgressError):
        return handle_progress_error(error)
    if isinstance(error, EnrollmentError):
        return handle_enrollment_error(error)
    return handle_course_error(error)


@router.get(
    "/{course_id}",
    response_model=CourseProgressResponse,
    summary="Course progress with module lock status",
)
async def get_course_progress(
    course_id: UUID,
    progress_service: ProgressServiceDep,
    user: StudentUser,
) -> CourseProgressResponse:
    try:
        return await progress_service.get_course_progress(user.id, course_id)
    except (EnrollmentError, CourseError) as e:
        raise _to_http(e) from e


@router.post(
    "/video",
    response_model=VideoProgressResponse,
    summary="Report video progress",
    responses={
        403: {"description": "Module is locked"},
        404: {"description": "Not enrolled, or no such module or video"},
    },
)
async def report_video_progress(
    data: VideoProgressRequest,
    progress_service: ProgressServiceDep,
    user: StudentUser,
) -> VideoProgressResponse:
    """Count a video as watched once it ended or reached 90%.

    Watching the last missing video completes the module and unlocks the
    next one.
    """
    try:
        return await progress_service.record_video_progress(user.id, data)
    except (ProgressError, EnrollmentError, CourseError) as e:
        raise _to_http(e) from e


@router.post(
    "/{course_id}/modules/{module_index}/complete",
    response_model=CourseProgressResponse,
    summary="Mark module as completed",
)
async def complete_module(
    course_id: UUID,
    module_index: int,
    progress_service: ProgressServiceDep,
    user: StudentUser,
) -> CourseProgressResponse:
    try:
        return await progress_service.set_module_completion(
            user.id, course_id, module_index, completed=True
        )
    except (ProgressError, EnrollmentError, CourseError) as e:
        raise _to_http(e) from e


@router.post(
    "/{course_id}/modules/{module_index}/incomplete",
    response_model=CourseProgressResponse,
    summary="Mark module as incomplete",
)
async def uncomplete_module(
    course_id: UUID,
    module_index: int,
    progress_service: ProgressServiceDep,
    user: StudentUser,
) -> CourseProgressResponse:
    """Un-complete a module. Every module after it is locked again."""
    try:
        return await progress_service.set_module_completion(
            user.id, course_id, module_index, completed=False
        )
    except (ProgressError, EnrollmentError, CourseError) as e:
        raise _to_http(e) from e
