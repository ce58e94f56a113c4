"""FastAPI dependencies for course management.

Provides dependency injection for:
- The course service
- Ownership checks for edit, delete and roster access
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status

from skillhub.auth.dependencies import FacultyUser
from skillhub.auth.permissions import UserRole
from skillhub.auth.schemas import TokenUser
from skillhub.courses.models import Course
from skillhub.courses.service import CourseError, CourseService


async def get_course_service(request: Request) -> CourseService:
    """Get course service from app state."""
    service = getattr(request.app.state, "course_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Course service unavailable",
        )
    return service


CourseServiceDep = Annotated[CourseService, Depends(get_course_service)]


def is_owner_or_admin(user: TokenUser, creator_id: UUID | None) -> bool:
    """Check if user is the course owner or an admin."""
    if user.role == UserRole.ADMIN.value:
        return True
    return creator_id is not None and str(user.id) == str(creator_id)


async def verify_course_owner_access(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: FacultyUser,
) -> Course:
    """Load a course the caller may manage (owner faculty or admin)."""
    course = await course_service.get_course(course_id)
    if not course:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Course not found",
        )
    if not is_owner_or_admin(user, course.creator_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only manage your own courses",
        )
    return course


OwnedCourse = Annotated[Course, Depends(verify_course_owner_access)]


def handle_course_error(error: CourseError) -> HTTPException:
    """Convert course errors to HTTPException."""
    status_map = {
        "course_not_found": status.HTTP_404_NOT_FOUND,
        "module_not_found": status.HTTP_404_NOT_FOUND,
        "file_not_found": status.HTTP_404_NOT_FOUND,
        "course_deleted": status.HTTP_404_NOT_FOUND,
        "duplicate_file": status.HTTP_409_CONFLICT,
        "empty_syllabus": status.HTTP_400_BAD_REQUEST,
        "invalid_course": status.HTTP_400_BAD_REQUEST,
    }
    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_400_BAD_REQUEST),
        detail=error.message,
    )
