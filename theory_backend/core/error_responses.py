"""
Standardized error response messages and builders.

Using these utilities keeps user-facing messages consistent across endpoints
and keeps implementation details out of responses.

Error Message Format Guidelines:
- Use sentence case (capitalize first letter only)
- End with a period for complete sentences
- Include relevant IDs in parentheses when helpful for debugging: "(ID: 123)"
- Use "Please try again later." for transient server errors

Usage:
    from theory_backend.core.error_responses import ErrorMessages, raise_forbidden

    if user.user_type not in ALLOWED:
        raise_forbidden(ErrorMessages.ORGANISATION_REQUIRED)
"""

from typing import NoReturn

from fastapi import HTTPException, status


class ErrorMessages:
    """Centralized error message constants and templates.

    Naming Convention:
    - Constants: SCREAMING_SNAKE_CASE for static messages
    - Methods: snake_case for templates that accept parameters
    """

    # ==========================================================================
    # Authentication Errors (401)
    # ==========================================================================
    INVALID_TOKEN = "Invalid authentication token."
    INVALID_TOKEN_TYPE = "Invalid token type."
    INVALID_TOKEN_PAYLOAD = "Invalid token payload."
    USER_NOT_FOUND_AUTH = "User not found."

    # ==========================================================================
    # Authorization Errors (403)
    # ==========================================================================
    TEST_ACCESS_DENIED = "Not authorized to access this test."
    SUBSCRIPTION_REQUIRED = (
        "An active subscription is required. Please renew to continue practising."
    )
    ORGANISATION_REQUIRED = "Only organisation accounts can create assignments."

    # ==========================================================================
    # Not Found Errors (404)
    # ==========================================================================
    TEST_NOT_FOUND = "Test not found."
    QUESTION_NOT_FOUND = "Question not found."
    TOPIC_NOT_FOUND = "Topic not found."
    ASSIGNMENT_NOT_FOUND = "Assignment not found."
    NO_QUESTIONS_AVAILABLE = (
        "No questions match your choices. "
        "Please adjust your filters by adding topics or difficulty levels, "
        "or by including questions you have answered before."
    )

    # ==========================================================================
    # Conflict Errors (409)
    # ==========================================================================
    NO_ACTIVE_TEST = "No active test. Please start a new test."
    TEST_ALREADY_COMPLETE = "This test is already complete."

    # ==========================================================================
    # Bad Request Errors (400)
    # ==========================================================================
    NO_STUDENTS_SELECTED = "Please select at least one student."
    NO_TOPICS_SELECTED = "Please select at least one topic."
    INVALID_DIFFICULTY_RANGE = "Minimum difficulty cannot exceed maximum difficulty."

    # ==========================================================================
    # Template Methods for Dynamic Messages
    # ==========================================================================
    @staticmethod
    def question_not_in_test(question_id: int, test_id: int) -> str:
        """Message when an answer names a question outside the test."""
        return f"Question {question_id} does not belong to test {test_id}."

    @staticmethod
    def question_index_out_of_range(index: int, num_questions: int) -> str:
        """Message when a requested position is outside the question list."""
        return (
            f"Question position {index} is out of range for a test of "
            f"{num_questions} questions."
        )

    @staticmethod
    def students_not_in_organisation(student_ids) -> str:
        """Message when an assignment names students from another organisation."""
        ids_str = ", ".join(str(sid) for sid in sorted(student_ids))
        return f"Students {ids_str} do not belong to your organisation."

    @staticmethod
    def database_operation_failed(operation: str) -> str:
        """Generic message for database operation failures."""
        return f"Failed to {operation}. Please try again later."


# ==============================================================================
# HTTPException Builder Functions
# ==============================================================================


def raise_unauthorized(
    detail: str,
    include_www_authenticate: bool = True,
) -> NoReturn:
    """Raise a 401 Unauthorized exception.

    Use for authentication failures (invalid/missing credentials).

    Args:
        detail: User-facing error message
        include_www_authenticate: Whether to include WWW-Authenticate header

    Raises:
        HTTPException: 401 Unauthorized
    """
    headers = {"WWW-Authenticate": "Bearer"} if include_www_authenticate else None
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers=headers,
    )


def raise_forbidden(detail: str) -> NoReturn:
    """Raise a 403 Forbidden exception.

    Use for authorization failures (valid credentials but insufficient permissions).
    """
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=detail,
    )
