"""Enrollment API endpoints.

Provides routes for:
- Students enrolling in and leaving courses
- A student's enrolled courses with progress
- Faculty rosters, student removal and roster CSV export
"""

from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, HTTPException, Response, status

from skillhub.auth.dependencies import AuthServiceDep, StudentUser
from skillhub.auth.schemas import MessageResponse
from skillhub.core.exports import download_response
from skillhub.courses.dependencies import CourseServiceDep, OwnedCourse
from skillhub.enrollments.dependencies import EnrollmentServiceDep, handle_enrollment_error
from skillhub.enrollments.schemas import (
    EnrolledCourseListResponse,
    EnrolledCourseResponse,
    EnrollmentResponse,
    RosterResponse,
)
from skillhub.enrollments.service import EnrollmentError
from skillhub.progress.dependencies import ProgressServiceDep


# Mounted on /courses next to the course routes; include it first so the
# static paths win over /courses/{course_id}.
router = APIRouter(prefix="/courses", tags=["enrollments"])


# ==============================================================================
# Student endpoints
# ==============================================================================


@router.get(
    "/enrolled",
    response_model=EnrolledCourseListResponse,
    summary="Courses the current student is enrolled in",
)
async def list_enrolled_courses(
    enrollment_service: EnrollmentServiceDep,
    course_service: CourseServiceDep,
    user: StudentUser,
) -> EnrolledCourseListResponse:
    """Enrolled courses with progress, newest enrollment first.

    Courses removed since enrolling are skipped.
    """
    items = []
    for enrollment in await enrollment_service.get_user_enrollments(user.id):
        course = await course_service.get_course(enrollment.course_id)
        if course is None:
            continue
        items.append(
            EnrolledCourseResponse(
                course=course_service.to_response(course),
                enrollment=EnrollmentResponse.model_validate(enrollment),
            )
        )
    return EnrolledCourseListResponse(items=items, total=len(items))


@router.post(
    "/{course_id}/enroll",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll in a course",
    responses={
        404: {"description": "Course not found"},
        409: {"description": "Already enrolled or course full"},
    },
)
async def enroll(
    course_id: UUID,
    enrollment_service: EnrollmentServiceDep,
    course_service: CourseServiceDep,
    auth_service: AuthServiceDep,
    user: StudentUser,
) -> EnrollmentResponse:
    course = await course_service.get_course(course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    student = await auth_service.get_user_by_id(user.id)
    if student is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    try:
        enrollment = await enrollment_service.enroll(student, course)
    except EnrollmentError as e:
        raise handle_enrollment_error(e) from e
    return EnrollmentResponse.model_validate(enrollment)


@router.delete(
    "/{course_id}/unenroll",
    response_model=MessageResponse,
    summary="Leave a course",
)
async def unenroll(
    course_id: UUID,
    enrollment_service: EnrollmentServiceDep,
    progress_service: ProgressServiceDep,
    user: StudentUser,
) -> MessageResponse:
    """Leave the course. Progress and any certificate for it are removed."""
    try:
        await enrollment_service.unenroll(user.id, course_id)
    except EnrollmentError as e:
        raise handle_enrollment_error(e) from e
    await progress_service.delete_progress(user.id, course_id)
    return MessageResponse(message="Successfully unenrolled from course")


# ==============================================================================
# Faculty endpoints
# ==============================================================================


@router.get(
    "/{course_id}/students",
    response_model=RosterResponse,
    summary="Course roster",
)
async def list_course_students(
    course: OwnedCourse,
    enrollment_service: EnrollmentServiceDep,
) -> RosterResponse:
    roster = await enrollment_service.get_roster(course.id)
    return RosterResponse(
        course_id=course.id,
        course_title=course.title,
        max_students=course.max_students,
        items=roster,
        total=len(roster),
    )


@router.get(
    "/{course_id}/students/export",
    summary="Download the roster as CSV",
    response_class=Response,
    responses={
        200: {"content": {"text/csv": {}}},
        404: {"description": "No students to export"},
    },
)
async def export_course_students(
    course: OwnedCourse,
    enrollment_service: EnrollmentServiceDep,
) -> Response:
    try:
        content, filename = await enrollment_service.export_roster(
            course, datetime.now(UTC).date()
        )
    except EnrollmentError as e:
        raise handle_enrollment_error(e) from e
    return download_response(content, filename, media_type="text/csv")


@router.delete(
    "/{course_id}/students/{student_id}",
    response_model=MessageResponse,
    summary="Remove a student from a course",
)
async def remove_student(
    student_id: UUID,
    course: OwnedCourse,
    enrollment_service: EnrollmentServiceDep,
    progress_service: ProgressServiceDep,
) -> MessageResponse:
    try:
        await enrollment_service.unenroll(student_id, course.id)
    except EnrollmentError as e:
        raise handle_enrollment_error(e) from e
    await progress_service.delete_progress(student_id, course.id)
    return MessageResponse(message="Student removed from course")
