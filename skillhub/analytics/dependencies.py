"""FastAPI dependencies for analytics."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from skillhub.analytics.service import AnalyticsService


async def get_analytics_service(request: Request) -> AnalyticsService:
    """Get analytics service from app state."""
    service = getattr(request.app.state, "analytics_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Analytics service unavailable",
        )
    return service


AnalyticsServiceDep = Annotated[AnalyticsService, Depends(get_analytics_service)]
