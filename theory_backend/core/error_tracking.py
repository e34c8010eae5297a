"""Sentry error tracking.

Initialised once from the application lifespan. When SENTRY_DSN is empty
every call here is a no-op, which is the normal state in development and
tests.
"""
import logging
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

logger = logging.getLogger(__name__)


class ErrorTracker:
    """Thin wrapper over the Sentry SDK."""

    def __init__(self) -> None:
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def init(
        self,
        dsn: str,
        *,
        environment: str,
        release: Optional[str] = None,
        traces_sample_rate: float = 0.1,
    ) -> bool:
        """Initialize the Sentry SDK with FastAPI/Starlette integrations.

        Returns:
            True if Sentry was initialized, False if skipped (no DSN) or failed.
            Failures are logged rather than raised so startup continues.
        """
        if not dsn:
            logger.debug("Sentry initialization skipped (DSN not configured)")
            return False

        try:
            sentry_sdk.init(
                dsn=dsn,
                environment=environment,
                release=release,
                traces_sample_rate=traces_sample_rate,
                integrations=[
                    LoggingIntegration(
                        level=None,  # Don't capture breadcrumbs from logs
                        event_level=None,  # Don't send log events
                    ),
                    FastApiIntegration(transaction_style="endpoint"),
                    StarletteIntegration(transaction_style="endpoint"),
                ],
                send_default_pii=False,
            )
        except Exception as e:
            logger.error(f"Failed to initialize Sentry: {e}", exc_info=True)
            return False

        self._initialized = True
        logger.info(
            f"Sentry initialized for environment '{environment}' "
            f"with {traces_sample_rate * 100:.0f}% trace sampling"
        )
        return True

    def capture_error(
        self,
        exception: BaseException,
        *,
        context: Optional[Dict[str, Any]] = None,
        user_id: Optional[int] = None,
        tags: Optional[Dict[str, str]] = None,
    ) -> Optional[str]:
        """Capture an exception and send it to Sentry.

        Returns:
            Event ID if captured, None if not initialized.
        """
        if not self._initialized:
            return None

        with sentry_sdk.push_scope() as scope:
            if context:
                scope.set_context("additional", {k: str(v) for k, v in context.items()})
            if user_id is not None:
                scope.set_user({"id": str(user_id)})
            if tags:
                for key, value in tags.items():
                    scope.set_tag(key, value)
            return sentry_sdk.capture_exception(exception)


error_tracker = ErrorTracker()
