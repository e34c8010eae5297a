"""
Domain exceptions raised by the test engine.

Core modules raise these instead of HTTPException so they stay usable outside
a request. main.py maps each one to an HTTP response.
"""
from typing import Optional


class PracticeError(Exception):
    """Base class for test engine errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NoQuestionsAvailable(PracticeError):
    """The candidate pool was empty after filtering."""

    def __init__(self, topic_ids=None, difficulty_levels=None):
        self.topic_ids = sorted(topic_ids or [])
        self.difficulty_levels = sorted(difficulty_levels or [])
        super().__init__(
            f"No questions match topics {self.topic_ids} "
            f"at difficulties {self.difficulty_levels}"
        )


class TestAccessDenied(PracticeError):
    """A user tried to read or change a test they do not own."""

    __test__ = False

    def __init__(self, test_id: int, user_id: int):
        self.test_id = test_id
        self.user_id = user_id
        super().__init__(f"User {user_id} does not own test {test_id}")


class TestNotFound(PracticeError):
    __test__ = False

    def __init__(self, test_id: int):
        self.test_id = test_id
        super().__init__(f"Test {test_id} not found")


class QuestionNotFound(PracticeError):
    def __init__(self, question_id: int):
        self.question_id = question_id
        super().__init__(f"Question {question_id} not found")


class TopicNotFound(PracticeError):
    def __init__(self, study_area_id: int):
        self.study_area_id = study_area_id
        super().__init__(f"Study area {study_area_id} not found")


class AssignmentNotFound(PracticeError):
    def __init__(self, user_assignment_id: int):
        self.user_assignment_id = user_assignment_id
        super().__init__(f"Assignment {user_assignment_id} not found")


class InvalidAssignment(PracticeError):
    """An assignment could not be created from the given details."""


class InvalidSessionState(PracticeError):
    """
    The client's view of the active test is unusable.

    Raised when there is no active test pointer, or when a request refers to
    a position outside the test's question list. The HTTP layer clears the
    pointer so the client starts over.
    """


class TestAlreadyComplete(InvalidSessionState):
    """A completed test was asked to change."""

    __test__ = False

    def __init__(self, test_id: int):
        self.test_id = test_id
        super().__init__(f"Test {test_id} is already complete")


class SubscriptionRequired(PracticeError):
    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User {user_id} has no active subscription")


class PersistenceFailure(PracticeError):
    """A database write failed and was rolled back."""

    def __init__(self, operation_name: str, original_error: Optional[Exception] = None):
        self.operation_name = operation_name
        self.original_error = original_error
        super().__init__(f"Failed to {operation_name}: {original_error}")
