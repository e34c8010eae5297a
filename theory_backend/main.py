"""
Main FastAPI application.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from theory_backend.api.v1.api import api_router
from theory_backend.api.v1.practice import SESSION_POINTER_KEY
from theory_backend.core.analytics import AnalyticsTracker
from theory_backend.core.config import settings
from theory_backend.core.error_responses import ErrorMessages
from theory_backend.core.error_tracking import error_tracker
from theory_backend.core.exceptions import (
    AssignmentNotFound,
    InvalidAssignment,
    InvalidSessionState,
    NoQuestionsAvailable,
    PersistenceFailure,
    QuestionNotFound,
    SubscriptionRequired,
    TestAccessDenied,
    TestAlreadyComplete,
    TestNotFound,
    TopicNotFound,
)
from theory_backend.core.logging_config import setup_logging
from theory_backend.middleware import RequestLoggingMiddleware

# Initialize logging configuration at startup
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan event handler.

    Initializes error tracking on startup.
    """
    error_tracker.init(
        settings.SENTRY_DSN,
        environment=settings.ENV,
        release=settings.APP_VERSION,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} starting ({settings.ENV})")

    yield

    logger.info("Application shutting down")


# OpenAPI tags metadata
tags_metadata = [
    {
        "name": "health",
        "description": "Health check endpoint for monitoring application status",
    },
    {
        "name": "topics",
        "description": "Study topics and single-question topic practice",
    },
    {
        "name": "tests",
        "description": "Custom tests: generation, answering, navigation and results",
    },
    {
        "name": "practice",
        "description": "Practice tests tracked by the practice session cookie",
    },
    {
        "name": "assignments",
        "description": "Tests set by organisations for their students",
    },
    {
        "name": "user",
        "description": "Learner progress",
    },
]


def _error_response(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail})


def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
        description=(
            "**Theory Practice API** - question selection, tests and practice "
            "for music theory study.\n\n"
            "## Authentication\n\n"
            "Endpoints require a JWT Bearer token issued by the accounts service."
        ),
        docs_url=f"{settings.API_V1_PREFIX}/docs",
        redoc_url=f"{settings.API_V1_PREFIX}/redoc",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        openapi_tags=tags_metadata,
    )

    # Signed cookie holding the active practice test pointer
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY,
        session_cookie=settings.PRACTICE_SESSION_COOKIE,
        max_age=settings.PRACTICE_SESSION_MAX_AGE,
        same_site="lax",
        https_only=settings.ENV == "production",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    # Added last so it wraps everything and logs every request
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @app.exception_handler(NoQuestionsAvailable)
    async def no_questions_handler(request: Request, exc: NoQuestionsAvailable):
        logger.info(f"No questions available: {exc.message}")
        return _error_response(
            status.HTTP_404_NOT_FOUND, ErrorMessages.NO_QUESTIONS_AVAILABLE
        )

    @app.exception_handler(TestAccessDenied)
    async def access_denied_handler(request: Request, exc: TestAccessDenied):
        """Security event: someone asked for another learner's test."""
        logger.warning(
            f"Access denied: user {exc.user_id} requested test {exc.test_id}",
            extra={"user_id": exc.user_id, "test_id": exc.test_id},
        )
        AnalyticsTracker.track_access_denied(
            exc.user_id, exc.test_id, str(request.url.path)
        )
        return _error_response(
            status.HTTP_403_FORBIDDEN, ErrorMessages.TEST_ACCESS_DENIED
        )

    @app.exception_handler(SubscriptionRequired)
    async def subscription_handler(request: Request, exc: SubscriptionRequired):
        return _error_response(
            status.HTTP_403_FORBIDDEN, ErrorMessages.SUBSCRIPTION_REQUIRED
        )

    not_found_messages = {
        TestNotFound: ErrorMessages.TEST_NOT_FOUND,
        QuestionNotFound: ErrorMessages.QUESTION_NOT_FOUND,
        TopicNotFound: ErrorMessages.TOPIC_NOT_FOUND,
        AssignmentNotFound: ErrorMessages.ASSIGNMENT_NOT_FOUND,
    }

    async def not_found_handler(request: Request, exc: Exception):
        return _error_response(
            status.HTTP_404_NOT_FOUND, not_found_messages[type(exc)]
        )

    for exc_class in not_found_messages:
        app.add_exception_handler(exc_class, not_found_handler)

    @app.exception_handler(InvalidAssignment)
    async def invalid_assignment_handler(request: Request, exc: InvalidAssignment):
        return _error_response(status.HTTP_400_BAD_REQUEST, exc.message)

    @app.exception_handler(InvalidSessionState)
    async def invalid_session_handler(request: Request, exc: InvalidSessionState):
        """Reject the request and clear the practice pointer so the client restarts."""
        request.session.pop(SESSION_POINTER_KEY, None)
        if isinstance(exc, TestAlreadyComplete):
            detail = ErrorMessages.TEST_ALREADY_COMPLETE
        else:
            detail = exc.message
        logger.info(f"Invalid session state on {request.url.path}: {exc.message}")
        return _error_response(status.HTTP_409_CONFLICT, detail)

    @app.exception_handler(PersistenceFailure)
    async def persistence_handler(request: Request, exc: PersistenceFailure):
        error_id = str(uuid.uuid4())
        AnalyticsTracker.track_api_error(
            method=request.method,
            path=str(request.url.path),
            error_type="PersistenceFailure",
            error_message=exc.message,
        )
        error_tracker.capture_error(
            exc.original_error or exc,
            context={"path": str(request.url.path), "error_id": error_id},
            tags={"error_type": "PersistenceFailure"},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": ErrorMessages.database_operation_failed(exc.operation_name),
                "error_id": error_id,
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """
        Handle HTTP exceptions and track them in analytics.
        """
        if exc.status_code >= 400:
            AnalyticsTracker.track_api_error(
                method=request.method,
                path=str(request.url.path),
                error_type="HTTPException",
                error_message=str(exc.detail),
            )

        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """
        Handle request validation errors.
        """
        # Convert errors to serializable format
        errors = []
        for error in exc.errors():
            error_dict = {
                "loc": list(error.get("loc", [])),
                "msg": str(error.get("msg", "")),
                "type": str(error.get("type", "")),
            }
            if "input" in error:
                error_dict["input"] = error["input"]
            errors.append(error_dict)

        AnalyticsTracker.track_api_error(
            method=request.method,
            path=str(request.url.path),
            error_type="ValidationError",
            error_message=str(errors),
        )

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": errors},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """
        Handle unexpected exceptions and track them.

        Each exception gets an error_id that is returned to the client and
        logged with the traceback.
        """
        error_id = str(uuid.uuid4())

        logger.exception(
            f"Unhandled exception [error_id={error_id}]: {exc}",
            extra={"error_id": error_id},
        )

        AnalyticsTracker.track_api_error(
            method=request.method,
            path=str(request.url.path),
            error_type=exc.__class__.__name__,
            error_message=str(exc),
        )

        error_tracker.capture_error(
            exc,
            context={
                "path": str(request.url.path),
                "method": request.method,
                "error_id": error_id,
            },
            tags={"error_type": exc.__class__.__name__},
        )

        # Don't leak internal details
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal server error",
                "error_id": error_id,
            },
        )

    return app


app = create_application()


@app.get("/")
def root():
    """
    Root endpoint.
    """
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": f"{settings.API_V1_PREFIX}/docs",
    }
