"""
Analytics and event tracking for monitoring learner actions and system events.
"""
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any

from theory_backend.core.config import settings

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Analytics event types."""

    # Test events
    TEST_STARTED = "test.started"
    TEST_COMPLETED = "test.completed"
    TEST_FINISHED = "test.finished"
    TEST_EXPIRED = "test.expired"
    TEST_EXITED = "test.exited"

    # Question events
    ANSWER_RECORDED = "question.answered"

    # Assignment events
    ASSIGNMENT_CREATED = "assignment.created"

    # Performance events
    SLOW_REQUEST = "performance.slow_request"
    API_ERROR = "api.error"

    # Security events
    ACCESS_DENIED = "security.access_denied"


class AnalyticsTracker:
    """
    Analytics event tracker for logging and monitoring learner actions.

    Events are emitted as structured INFO logs; the JSON formatter carries
    the event payload in the ``event_data`` field.
    """

    @staticmethod
    def track_event(
        event_type: EventType,
        user_id: Optional[int] = None,
        properties: Optional[Dict[str, Any]] = None,
        level: int = logging.INFO,
    ) -> None:
        """
        Track an analytics event.

        Example:
            AnalyticsTracker.track_event(
                EventType.TEST_COMPLETED,
                user_id=123,
                properties={"test_id": 9, "marks": 8},
            )
        """
        event_data = {
            "event": event_type.value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "user_id": user_id,
            "properties": properties or {},
            "environment": settings.ENV,
        }

        logger.log(
            level,
            f"Analytics Event: {event_type.value}",
            extra={
                "event_data": event_data,
                "user_id": user_id,
            },
        )

    @staticmethod
    def track_test_started(
        user_id: int, test_id: int, question_count: int, test_type: str
    ) -> None:
        """Track test creation."""
        AnalyticsTracker.track_event(
            EventType.TEST_STARTED,
            user_id=user_id,
            properties={
                "test_id": test_id,
                "question_count": question_count,
                "test_type": test_type,
            },
        )

    @staticmethod
    def track_answer_recorded(
        user_id: int,
        question_id: int,
        correct: bool,
        test_id: Optional[int] = None,
        is_new: bool = True,
    ) -> None:
        AnalyticsTracker.track_event(
            EventType.ANSWER_RECORDED,
            user_id=user_id,
            properties={
                "question_id": question_id,
                "test_id": test_id,
                "correct": correct,
                "is_new": is_new,
            },
        )

    @staticmethod
    def track_test_completed(
        user_id: int,
        test_id: int,
        marks: int,
        marks_available: int,
        duration_seconds: Optional[int] = None,
    ) -> None:
        """Track a test reaching its last question."""
        AnalyticsTracker.track_event(
            EventType.TEST_COMPLETED,
            user_id=user_id,
            properties={
                "test_id": test_id,
                "marks": marks,
                "marks_available": marks_available,
                "duration_seconds": duration_seconds,
            },
        )

    @staticmethod
    def track_test_finished(user_id: int, test_id: int, answered_count: int) -> None:
        """Track an explicit finish before the last question."""
        AnalyticsTracker.track_event(
            EventType.TEST_FINISHED,
            user_id=user_id,
            properties={"test_id": test_id, "answered_count": answered_count},
        )

    @staticmethod
    def track_test_expired(user_id: int, test_id: int, time_limit: int) -> None:
        AnalyticsTracker.track_event(
            EventType.TEST_EXPIRED,
            user_id=user_id,
            properties={"test_id": test_id, "time_limit": time_limit},
        )

    @staticmethod
    def track_test_exited(user_id: int, test_id: int) -> None:
        """Track a learner leaving a practice test without finishing it."""
        AnalyticsTracker.track_event(
            EventType.TEST_EXITED,
            user_id=user_id,
            properties={"test_id": test_id},
        )

    @staticmethod
    def track_assignment_created(
        user_id: int, assignment_id: int, student_count: int
    ) -> None:
        AnalyticsTracker.track_event(
            EventType.ASSIGNMENT_CREATED,
            user_id=user_id,
            properties={
                "assignment_id": assignment_id,
                "student_count": student_count,
            },
        )

    @staticmethod
    def track_access_denied(user_id: int, test_id: int, path: str) -> None:
        """Track an attempt to use another learner's test."""
        AnalyticsTracker.track_event(
            EventType.ACCESS_DENIED,
            user_id=user_id,
            properties={"test_id": test_id, "path": path},
            level=logging.WARNING,
        )

    @staticmethod
    def track_slow_request(
        method: str, path: str, duration_seconds: float, status_code: int
    ) -> None:
        """Track slow API request."""
        AnalyticsTracker.track_event(
            EventType.SLOW_REQUEST,
            properties={
                "method": method,
                "path": path,
                "duration_seconds": duration_seconds,
                "status_code": status_code,
            },
        )

    @staticmethod
    def track_api_error(
        method: str,
        path: str,
        error_type: str,
        error_message: str,
        user_id: Optional[int] = None,
    ) -> None:
        """Track API error."""
        AnalyticsTracker.track_event(
            EventType.API_ERROR,
            user_id=user_id,
            properties={
                "method": method,
                "path": path,
                "error_type": error_type,
                "error_message": error_message,
            },
        )
