"""
Pydantic schemas for test endpoints.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Literal, Optional
from datetime import datetime

from theory_backend.core.config import settings
from theory_backend.core.question_filter import DIFFICULTY_PRESETS
from theory_backend.schemas.questions import QuestionResponse

DifficultyPreset = Literal["easy", "intermediate", "hard", "all"]


def validate_topic_ids(v: List[int]) -> List[int]:
    if not v:
        raise ValueError("At least one topic is required")
    if any(topic_id < 1 for topic_id in v):
        raise ValueError("Topic IDs must be positive")
    return sorted(set(v))


def validate_levels(v: Optional[List[int]]) -> Optional[List[int]]:
    if v is None:
        return v
    if not v:
        raise ValueError("At least one difficulty level is required")
    if any(level < 1 or level > 5 for level in v):
        raise ValueError("Difficulty levels must be between 1 and 5")
    return sorted(set(v))


class TestCreateRequest(BaseModel):
    """Schema for creating a custom test."""

    topics: List[int] = Field(..., description="Study area IDs to draw from")
    num_questions: int = Field(..., description="Number of questions requested")
    difficulty: Optional[DifficultyPreset] = Field(
        None, description="Difficulty preset (easy, intermediate, hard, all)"
    )
    difficulties: Optional[List[int]] = Field(
        None, description="Explicit difficulty levels; overrides the preset"
    )
    include_previous_correct: bool = Field(
        False, description="Allow questions recently answered correctly"
    )
    include_previous_incorrect: bool = Field(
        False, description="Allow questions previously answered incorrectly"
    )
    time_limit_minutes: Optional[int] = Field(
        None, ge=1, le=300, description="Time limit in minutes; omit for untimed"
    )

    @field_validator("topics")
    @classmethod
    def validate_topics(cls, v: List[int]) -> List[int]:
        return validate_topic_ids(v)

    @field_validator("difficulties")
    @classmethod
    def validate_difficulties(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        return validate_levels(v)

    @field_validator("num_questions")
    @classmethod
    def validate_num_questions(cls, v: int) -> int:
        if not settings.TEST_MIN_QUESTIONS <= v <= settings.TEST_MAX_QUESTIONS:
            raise ValueError(
                f"Number of questions must be between {settings.TEST_MIN_QUESTIONS} "
                f"and {settings.TEST_MAX_QUESTIONS}"
            )
        return v

    def difficulty_levels(self) -> List[int]:
        """Explicit levels if given, else the preset's, else every level."""
        if self.difficulties is not None:
            return self.difficulties
        return sorted(DIFFICULTY_PRESETS[self.difficulty or "all"])


class TestResponse(BaseModel):
    """Schema for a test."""

    id: int = Field(..., description="Test ID")
    test_type: str = Field(..., description="custom, practice or assignment")
    assignment_id: Optional[int] = Field(None, description="Linked assignment")
    topic_ids: List[int] = Field(..., description="Topics the test draws from")
    difficulty_levels: List[int] = Field(..., description="Difficulty levels used")
    difficulty: Optional[str] = Field(None, description="Difficulty preset label")
    include_previous_correct: bool
    include_previous_incorrect: bool
    num_questions_requested: int
    num_questions: int = Field(..., description="Questions actually selected")
    current_question: int = Field(..., description="Cursor into the question list")
    time_limit_requested: bool
    time_limit: Optional[int] = Field(None, description="Time limit in seconds")
    start_time: datetime
    end_time: Optional[datetime] = None
    marks: int
    marks_available: int
    progress: int = Field(..., description="Percentage of questions answered")
    complete: bool

    @field_validator("test_type", mode="before")
    @classmethod
    def enum_value(cls, v):
        return getattr(v, "value", v)

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class TestViewResponse(BaseModel):
    """A test with the question to show and the answers given so far."""

    test: TestResponse
    question: Optional[QuestionResponse] = Field(
        None, description="Question to show; empty once the test is complete"
    )
    question_index: Optional[int] = Field(
        None, description="Position of the question in the test"
    )
    answers: Dict[int, int] = Field(
        default_factory=dict, description="Question ID to selected answer"
    )
    time_remaining: Optional[int] = Field(
        None, description="Seconds left on a timed test"
    )


class AnswerRequest(BaseModel):
    """Schema for answering a test question."""

    selected_answer: int = Field(..., ge=1, le=5, description="Chosen option id")
    question_id: Optional[int] = Field(
        None, description="Question being answered; defaults to the current one"
    )

    @field_validator("question_id")
    @classmethod
    def validate_question_id(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("Question ID must be positive")
        return v


class AnswerResponse(BaseModel):
    """Outcome of an answer plus the next step of the test."""

    correct: bool
    question_id: int
    selected_answer: int
    view: TestViewResponse


class QuestionReviewResponse(BaseModel):
    position: int
    question_id: int
    question_text: Optional[str] = None
    question_type: str
    study_area: Optional[str] = None
    selected_answer: Optional[int] = None
    correct: Optional[bool] = None
    correct_answer: Optional[int] = None
    notes: Optional[str] = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class TestSummaryResponse(BaseModel):
    """Results of a test."""

    test_id: int
    test_type: str
    complete: bool
    total_questions: int
    answered: int
    correct: int
    incorrect: int
    unanswered: int
    percentage_score: int
    time_taken_seconds: Optional[int] = None
    topics: List[str] = Field(default_factory=list)
    difficulty_levels: List[int] = Field(default_factory=list)
    review: List[QuestionReviewResponse] = Field(default_factory=list)

    class Config:
        """Pydantic configuration."""

        from_attributes = True
