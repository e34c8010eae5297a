"""
Pydantic schemas for practice endpoints.

Practice tests are ordinary tests tracked by a session pointer cookie, so
their views and results reuse the test schemas.
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Literal, Optional, Self

from theory_backend.core.config import settings
from theory_backend.schemas.tests import (
    TestViewResponse,
    validate_levels,
    validate_topic_ids,
)


class PracticeStartRequest(BaseModel):
    """Schema for starting a practice test."""

    topics: List[int] = Field(..., description="Study area IDs to draw from")
    difficulties: List[int] = Field(
        default_factory=lambda: [1, 2, 3, 4, 5], description="Difficulty levels"
    )
    num_questions: int = Field(..., description="One of the offered practice sizes")
    repeat_previous: Literal["none", "incorrect", "all"] = Field(
        "none",
        description=(
            "Which earlier answers may come back: none, incorrect only, or all"
        ),
    )
    timed: bool = Field(False, description="Apply a time limit")
    time_limit_minutes: Optional[int] = Field(
        None, ge=1, le=300, description="Override the per-question time allowance"
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
        if v not in settings.PRACTICE_QUESTION_COUNTS:
            choices = ", ".join(str(c) for c in settings.PRACTICE_QUESTION_COUNTS)
            raise ValueError(f"Number of questions must be one of: {choices}")
        return v

    @model_validator(mode="after")
    def validate_time_limit(self) -> Self:
        if self.time_limit_minutes is not None and not self.timed:
            raise ValueError("time_limit_minutes requires timed to be true")
        return self

    @property
    def include_previous_correct(self) -> bool:
        return self.repeat_previous == "all"

    @property
    def include_previous_incorrect(self) -> bool:
        return self.repeat_previous in ("incorrect", "all")


class PracticeStepResponse(BaseModel):
    """The active practice test after an operation."""

    active: bool = Field(..., description="Whether a practice test is still active")
    view: TestViewResponse
    correct: Optional[bool] = Field(
        None, description="Whether the submitted answer was correct"
    )


class PracticeExitResponse(BaseModel):
    test_id: int
    message: str
