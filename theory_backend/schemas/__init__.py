"""
Pydantic schemas for request/response validation.
"""
from .questions import (
    QuestionOption,
    ExtractResponse,
    QuestionResponse,
)
from .topics import (
    TopicResponse,
    TopicQuestionResponse,
    PracticeAnswerRequest,
    PracticeAnswerResponse,
)
from .tests import (
    TestCreateRequest,
    TestResponse,
    TestViewResponse,
    AnswerRequest,
    AnswerResponse,
    QuestionReviewResponse,
    TestSummaryResponse,
)
from .practice import (
    PracticeStartRequest,
    PracticeStepResponse,
    PracticeExitResponse,
)
from .assignments import (
    AssignmentCreateRequest,
    AssignmentResponse,
    UserAssignmentResponse,
    AssignmentListResponse,
)
from .user import (
    TypeBreakdownResponse,
    RecentAnswerResponse,
    UserProgressResponse,
)

__all__ = [
    "QuestionOption",
    "ExtractResponse",
    "QuestionResponse",
    "TopicResponse",
    "TopicQuestionResponse",
    "PracticeAnswerRequest",
    "PracticeAnswerResponse",
    "TestCreateRequest",
    "TestResponse",
    "TestViewResponse",
    "AnswerRequest",
    "AnswerResponse",
    "QuestionReviewResponse",
    "TestSummaryResponse",
    "PracticeStartRequest",
    "PracticeStepResponse",
    "PracticeExitResponse",
    "AssignmentCreateRequest",
    "AssignmentResponse",
    "UserAssignmentResponse",
    "AssignmentListResponse",
    "TypeBreakdownResponse",
    "RecentAnswerResponse",
    "UserProgressResponse",
]
