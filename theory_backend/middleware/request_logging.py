"""
Request/response logging middleware for tracking API interactions.
"""
import logging
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from typing import Callable

from theory_backend.core.analytics import AnalyticsTracker
from theory_backend.core.logging_config import request_id_context

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log incoming requests and outgoing responses.

    Logs:
    - Request method and path
    - Response status code and duration
    - User identifier (token preview from the auth header if present)

    Requests slower than ``slow_request_threshold`` seconds are also reported
    to the analytics tracker.
    """

    def __init__(self, app, slow_request_threshold: float = 1.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Generate or extract request ID for correlation
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request_id_context.set(request_id)

        start_time = time.time()

        user_identifier = "anonymous"
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            # First few chars of the token only
            token_preview = auth_header[7:17] + "..."
            user_identifier = f"token:{token_preview}"

        method = request.method
        path = str(request.url.path)
        client_host = request.client.host if request.client else "unknown"

        logger.info(
            "Incoming request",
            extra={
                "method": method,
                "path": path,
                "client_host": client_host,
                "user_identifier": user_identifier,
            },
        )

        response = await call_next(request)

        duration_seconds = time.time() - start_time
        duration_ms = round(duration_seconds * 1000, 2)
        status_code = response.status_code

        response.headers["X-Request-ID"] = request_id

        extra_fields = {
            "method": method,
            "path": path,
            "status_code": status_code,
            "duration_ms": duration_ms,
            "client_host": client_host,
            "user_identifier": user_identifier,
        }

        if status_code >= 500:
            logger.error("Server error response", extra=extra_fields)
        elif status_code >= 400:
            logger.warning("Client error response", extra=extra_fields)
        else:
            logger.info("Request completed", extra=extra_fields)

        if duration_seconds > self.slow_request_threshold:
            AnalyticsTracker.track_slow_request(
                method, path, round(duration_seconds, 4), status_code
            )

        return response
