"""SkillHub API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from skillhub.analytics.router import router as analytics_router
from skillhub.analytics.service import AnalyticsService
from skillhub.assistant.router import router as assistant_router
from skillhub.assistant.service import AssistantService
from skillhub.auth.router import router as auth_router
from skillhub.auth.service import AuthService
from skillhub.certificates.router import router as certificates_router
from skillhub.certificates.service import CertificateService
from skillhub.config import get_settings
from skillhub.config.settings import Settings
from skillhub.core.context import get_request_id
from skillhub.core.database import init_async_cassandra, shutdown_async_cassandra
from skillhub.core.logging import configure_structlog, get_logger
from skillhub.core.middleware import RequestContextMiddleware
from skillhub.core.redis import init_redis, shutdown_redis
from skillhub.courses.router import router as courses_router
from skillhub.courses.service import CourseService
from skillhub.enrollments.router import router as enrollments_router
from skillhub.enrollments.service import EnrollmentService
from skillhub.health.router import router as health_router
from skillhub.progress.router import router as progress_router
from skillhub.progress.service import ProgressService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir), file_output=not settings.is_testing)

logger = get_logger(__name__)


def init_services(app: FastAPI, session: Any, settings: Settings) -> None:
    """Create the Cassandra-backed services and expose them on ``app.state``."""
    keyspace = settings.cassandra_keyspace

    app.state.auth_service = AuthService(session=session, keyspace=keyspace)
    app.state.course_service = CourseService(session=session, keyspace=keyspace)
    app.state.enrollment_service = EnrollmentService(session=session, keyspace=keyspace)
    app.state.certificate_service = CertificateService(
        session=session,
        keyspace=keyspace,
        platform_name=settings.certificate_platform_name,
    )
    app.state.progress_service = ProgressService(
        session=session,
        keyspace=keyspace,
        course_service=app.state.course_service,
        enrollment_service=app.state.enrollment_service,
        certificate_service=app.state.certificate_service,
    )
    app.state.analytics_service = AnalyticsService(
        course_service=app.state.course_service,
        enrollment_service=app.state.enrollment_service,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Redis is optional; without it the assistant is not rate limited
    redis_client = None
    if settings.redis_enabled:
        try:
            redis_client = await init_redis()
            logger.info("redis_initialized")
        except Exception as e:
            logger.warning(
                "redis_init_skipped",
                error=str(e),
                message="Running without Redis - assistant rate limiting disabled",
            )

    try:
        app.state.cassandra_session = await init_async_cassandra()
        logger.info("cassandra_initialized")
        init_services(app, app.state.cassandra_session, settings)
        logger.info("services_initialized")
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    # The assistant does not need the database
    app.state.assistant_service = AssistantService(settings, redis=redis_client)
    logger.info("assistant_service_initialized", configured=settings.assistant_configured)

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await shutdown_redis()
    await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # debug stays off so Starlette never renders tracebacks; the handlers
    # below log details and return safe messages.
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="SkillHub Learning Platform - API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        """Get request_id from request state or context."""
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": str(exc.detail)
                if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
                or exc.status_code in {
                    status.HTTP_502_BAD_GATEWAY,
                    status.HTTP_503_SERVICE_UNAVAILABLE,
                }
                else "Internal server error",
                "status_code": exc.status_code,
                "request_id": _get_request_id_safe(request),
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors; field messages are safe to expose."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "message": "Validation error",
                "status_code": 422,
                "request_id": _get_request_id_safe(request),
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions.

        Details go to the log only; the client gets a generic message.
        """
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": 500,
                "request_id": _get_request_id_safe(request),
            },
        )

    # Include routers. Enrollment routes go before course routes so
    # /courses/enrolled is not taken for a course id.
    prefix = settings.api_prefix
    app.include_router(health_router)
    app.include_router(auth_router, prefix=prefix)
    app.include_router(enrollments_router, prefix=prefix)
    app.include_router(courses_router, prefix=prefix)
    app.include_router(progress_router, prefix=prefix)
    app.include_router(certificates_router, prefix=prefix)
    app.include_router(assistant_router, prefix=prefix)
    app.include_router(analytics_router, prefix=prefix)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "SkillHub API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
