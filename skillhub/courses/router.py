"""Course management API endpoints.

Provides routes for:
- Catalog listing, search and course details
- Course CRUD for faculty, with soft delete, restore and permanent delete
- Module attachments
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from skillhub.auth.dependencies import CurrentUser, FacultyUser, OptionalUser
from skillhub.auth.permissions import UserRole
from skillhub.auth.schemas import MessageResponse
from skillhub.certificates.dependencies import CertificateServiceDep
from skillhub.core.logging import get_logger
from skillhub.courses.dependencies import (
    CourseServiceDep,
    OwnedCourse,
    handle_course_error,
    is_owner_or_admin,
)
from skillhub.courses.schemas import (
    CourseListResponse,
    CourseModulesResponse,
    CourseResponse,
    CourseSort,
    CreateCourseRequest,
    ModuleFileInput,
    ModuleFileResponse,
    UpdateCourseRequest,
)
from skillhub.courses.service import CourseError
from skillhub.enrollments.dependencies import EnrollmentServiceDep
from skillhub.progress.dependencies import ProgressServiceDep


logger = get_logger(__name__)

router = APIRouter(prefix="/courses", tags=["courses"])


# ==============================================================================
# Catalog
# ==============================================================================


@router.get(
    "",
    response_model=CourseListResponse,
    summary="List active courses",
)
async def list_courses(
    course_service: CourseServiceDep,
    search: str | None = Query(None, max_length=200, description="Title, code or description"),
    category: str | None = Query(None, max_length=50, description="Category name or \"all\""),
    sort: CourseSort | None = Query(None),
) -> CourseListResponse:
    courses = await course_service.list_courses(
        search=search,
        category=category,
        sort=sort,
    )
    return CourseListResponse(
        items=[course_service.to_response(c) for c in courses],
        total=len(courses),
    )


@router.get(
    "/my-courses",
    response_model=CourseListResponse,
    summary="Courses created by the current faculty member",
)
async def list_my_courses(
    course_service: CourseServiceDep,
    user: FacultyUser,
) -> CourseListResponse:
    """Own courses, newest first. Deleted courses are included so they can be restored."""
    courses = await course_service.list_courses_by_creator(user.id)
    return CourseListResponse(
        items=[course_service.to_response(c) for c in courses],
        total=len(courses),
    )


@router.get(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Get course details",
)
async def get_course(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: OptionalUser,
) -> CourseResponse:
    """Active courses are public; a deleted one is visible to its owner and admins."""
    course = await course_service.get_course(course_id)
    if course is None or (
        not course.is_active and (user is None or not is_owner_or_admin(user, course.creator_id))
    ):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    return course_service.to_response(course)


@router.get(
    "/{course_id}/modules",
    response_model=CourseModulesResponse,
    summary="Course modules with videos and files",
)
async def get_course_modules(
    course_id: UUID,
    course_service: CourseServiceDep,
    enrollment_service: EnrollmentServiceDep,
    user: CurrentUser,
) -> CourseModulesResponse:
    """Module content for enrolled students, the owner and admins."""
    course = await course_service.get_course(course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")

    allowed = is_owner_or_admin(user, course.creator_id)
    if not allowed and user.role == UserRole.STUDENT.value:
        allowed = await enrollment_service.get_enrollment(user.id, course_id) is not None
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Enroll in this course to access its modules",
        )

    return CourseModulesResponse(
        course_id=course.id,
        modules=[course_service.module_to_response(m) for m in course.syllabus],
    )


# ==============================================================================
# Course CRUD
# ==============================================================================


@router.post(
    "",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new course",
)
async def create_course(
    data: CreateCourseRequest,
    course_service: CourseServiceDep,
    user: FacultyUser,
) -> CourseResponse:
    """Create a course (FACULTY or ADMIN only)."""
    try:
        course = await course_service.create_course(data, creator_id=user.id, creator_name=user.name)
    except CourseError as e:
        raise handle_course_error(e) from e
    return course_service.to_response(course)


@router.put(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Update course",
)
async def update_course(
    data: UpdateCourseRequest,
    course: OwnedCourse,
    course_service: CourseServiceDep,
    progress_service: ProgressServiceDep,
) -> CourseResponse:
    """Partial update; a new syllabus also refits enrolled students' progress."""
    try:
        updated = await course_service.update_course(course.id, data)
    except CourseError as e:
        raise handle_course_error(e) from e
    if data.syllabus is not None:
        await progress_service.resync_course(updated)
    return course_service.to_response(updated)


@router.delete(
    "/{course_id}",
    response_model=MessageResponse,
    summary="Soft delete course",
)
async def delete_course(
    course: OwnedCourse,
    course_service: CourseServiceDep,
) -> MessageResponse:
    """Hide the course from the catalog. Enrollments and progress are kept."""
    await course_service.set_active(course.id, is_active=False)
    return MessageResponse(message="Course deleted successfully")


@router.put(
    "/{course_id}/restore",
    response_model=CourseResponse,
    summary="Restore a deleted course",
)
async def restore_course(
    course: OwnedCourse,
    course_service: CourseServiceDep,
) -> CourseResponse:
    restored = await course_service.set_active(course.id, is_active=True)
    return course_service.to_response(restored)


@router.delete(
    "/{course_id}/permanent",
    response_model=MessageResponse,
    summary="Permanently delete course",
)
async def permanently_delete_course(
    course: OwnedCourse,
    course_service: CourseServiceDep,
    enrollment_service: EnrollmentServiceDep,
    progress_service: ProgressServiceDep,
    certificate_service: CertificateServiceDep,
) -> MessageResponse:
    """Remove the course with its enrollments, progress and certificates."""
    user_ids = await enrollment_service.delete_course_enrollments(course.id)
    await progress_service.delete_course_progress(course.id, user_ids)
    await certificate_service.delete_course_certificates(course.id, user_ids)
    try:
        await course_service.delete_course(course.id)
    except CourseError as e:
        raise handle_course_error(e) from e
    logger.info("course_purged", course_id=str(course.id), students=len(user_ids))
    return MessageResponse(message="Course permanently deleted")


# ==============================================================================
# Module attachments
# ==============================================================================


@router.post(
    "/{course_id}/modules/{position}/files",
    response_model=ModuleFileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Attach a file to a module",
    responses={409: {"description": "Same file already attached"}},
)
async def add_module_file(
    position: int,
    data: ModuleFileInput,
    course: OwnedCourse,
    course_service: CourseServiceDep,
) -> ModuleFileResponse:
    try:
        attachment = await course_service.add_module_file(course.id, position, data)
    except CourseError as e:
        raise handle_course_error(e) from e
    return ModuleFileResponse.model_validate(attachment)


@router.delete(
    "/{course_id}/modules/{position}/files/{file_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a module attachment",
)
async def remove_module_file(
    position: int,
    file_id: UUID,
    course: OwnedCourse,
    course_service: CourseServiceDep,
) -> None:
    try:
        await course_service.remove_module_file(course.id, position, file_id)
    except CourseError as e:
        raise handle_course_error(e) from e
