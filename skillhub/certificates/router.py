"""Certificate API endpoints.

Provides routes for:
- Generating a certificate once every module is unlocked and completed
- Fetching, downloading and viewing the HTML certificate
- Faculty listing of certificates issued for a course
"""

from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, Response, status

from skillhub.auth.dependencies import StudentUser
from skillhub.certificates.dependencies import CertificateServiceDep, handle_certificate_error
from skillhub.certificates.models import Certificate
from skillhub.certificates.schemas import CertificateResponse, CourseCertificateListResponse
from skillhub.certificates.service import CertificateError, certificate_filename
from skillhub.core.exports import download_response
from skillhub.courses.dependencies import OwnedCourse, handle_course_error
from skillhub.courses.service import CourseError
from skillhub.enrollments.dependencies import handle_enrollment_error
from skillhub.enrollments.service import EnrollmentError
from skillhub.progress.dependencies import ProgressServiceDep
from skillhub.progress.service import ProgressSnapshot


router = APIRouter(prefix="/certificates", tags=["certificates"])


async def _snapshot(
    progress_service: ProgressServiceDep, user_id: UUID, course_id: UUID
) -> ProgressSnapshot:
    try:
        return await progress_service.get_snapshot(user_id, course_id)
    except EnrollmentError as e:
        raise handle_enrollment_error(e) from e
    except CourseError as e:
        raise handle_course_error(e) from e


async def _valid_certificate(
    course_id: UUID,
    user: StudentUser,
    progress_service: ProgressServiceDep,
    certificate_service: CertificateServiceDep,
) -> Certificate:
    snapshot = await _snapshot(progress_service, user.id, course_id)
    try:
        return await certificate_service.get_valid_certificate(
            user.id, course_id, eligible=snapshot.eligible
        )
    except CertificateError as e:
        raise handle_certificate_error(e) from e


# ==============================================================================
# Faculty endpoints
# ==============================================================================


@router.get(
    "/course/{course_id}",
    response_model=CourseCertificateListResponse,
    summary="Certificates issued for a course",
)
async def list_course_certificates(
    course: OwnedCourse,
    certificate_service: CertificateServiceDep,
) -> CourseCertificateListResponse:
    certificates = await certificate_service.list_course_certificates(course.id)
    items = []
    for certificate in certificates:
        certificate.course_title = certificate.course_title or course.title
        certificate.course_code = certificate.course_code or course.code
        items.append(CertificateResponse.model_validate(certificate))
    return CourseCertificateListResponse(course_id=course.id, items=items, total=len(items))


# ==============================================================================
# Student endpoints
# ==============================================================================


@router.post(
    "/{course_id}",
    response_model=CertificateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generate certificate",
    responses={409: {"description": "Course not fully completed"}},
)
async def generate_certificate(
    course_id: UUID,
    user: StudentUser,
    progress_service: ProgressServiceDep,
    certificate_service: CertificateServiceDep,
) -> CertificateResponse:
    """Issue the certificate, or return the one already issued."""
    snapshot = await _snapshot(progress_service, user.id, course_id)
    try:
        certificate = await certificate_service.generate(
            user_id=user.id,
            student_name=user.name or user.email,
            course=snapshot.course,
            eligible=snapshot.eligible,
        )
    except CertificateError as e:
        raise handle_certificate_error(e) from e
    return CertificateResponse.model_validate(certificate)


@router.get(
    "/{course_id}",
    response_model=CertificateResponse,
    summary="Get certificate",
)
async def get_certificate(
    course_id: UUID,
    user: StudentUser,
    progress_service: ProgressServiceDep,
    certificate_service: CertificateServiceDep,
) -> CertificateResponse:
    """The certificate, if the course is still fully completed.

    One whose course is no longer completed is revoked and reported missing.
    """
    certificate = await _valid_certificate(
        course_id, user, progress_service, certificate_service
    )
    return CertificateResponse.model_validate(certificate)


@router.get(
    "/{course_id}/download",
    summary="Download certificate as HTML",
    response_class=Response,
    responses={200: {"content": {"text/html": {}}}},
)
async def download_certificate(
    course_id: UUID,
    user: StudentUser,
    progress_service: ProgressServiceDep,
    certificate_service: CertificateServiceDep,
) -> Response:
    certificate = await _valid_certificate(
        course_id, user, progress_service, certificate_service
    )
    return download_response(
        certificate_service.render_html(certificate),
        certificate_filename(course_id, datetime.now(UTC).date()),
        media_type="text/html",
    )


@router.get(
    "/{course_id}/view",
    summary="View certificate in the browser",
    response_class=Response,
    responses={200: {"content": {"text/html": {}}}},
)
async def view_certificate(
    course_id: UUID,
    user: StudentUser,
    progress_service: ProgressServiceDep,
    certificate_service: CertificateServiceDep,
) -> Response:
    certificate = await _valid_certificate(
        course_id, user, progress_service, certificate_service
    )
    return download_response(
        certificate_service.render_html(certificate),
        certificate_filename(course_id, datetime.now(UTC).date()),
        media_type="text/html",
        inline=True,
    )
