"""Enrollment analytics endpoints for faculty."""

from fastapi import APIRouter, Query, Response

from skillhub.analytics.dependencies import AnalyticsServiceDep
from skillhub.analytics.schemas import EnrollmentAnalyticsResponse, TimeFilter
from skillhub.auth.dependencies import FacultyUser
from skillhub.core.exports import download_response


router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get(
    "/enrollments",
    response_model=EnrollmentAnalyticsResponse,
    summary="Enrollment statistics for your courses",
)
async def get_enrollment_analytics(
    analytics_service: AnalyticsServiceDep,
    user: FacultyUser,
    time_filter: TimeFilter = Query(TimeFilter.ALL),
) -> EnrollmentAnalyticsResponse:
    """Per-course enrollments, capacity and rate inside the selected window."""
    return await analytics_service.get_enrollment_analytics(user, time_filter)


@router.get(
    "/enrollments/export",
    summary="Download enrollment statistics as CSV",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}},
)
async def export_enrollment_analytics(
    analytics_service: AnalyticsServiceDep,
    user: FacultyUser,
    time_filter: TimeFilter = Query(TimeFilter.ALL),
) -> Response:
    content, filename = await analytics_service.export_csv(user, time_filter)
    return download_response(content, filename, media_type="text/csv")
