"""
Pydantic schemas for assignment endpoints.
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Literal, Optional, Self
from datetime import datetime

from theory_backend.core.config import settings
from theory_backend.schemas.tests import TestResponse, validate_topic_ids


class AssignmentCreateRequest(BaseModel):
    """Schema for creating an assignment."""

    savename: str = Field(..., min_length=1, max_length=255, description="Name")
    student_ids: List[int] = Field(..., description="Students to assign")
    topics: List[int] = Field(..., description="Study area IDs to draw from")
    num_questions: int = Field(..., description="Number of questions")
    difficulty: Optional[Literal["easy", "intermediate", "hard", "all"]] = Field(
        None, description="Difficulty preset; ignored when explicit bounds are set"
    )
    min_difficulty: Optional[int] = Field(None, ge=1, le=5)
    max_difficulty: Optional[int] = Field(None, ge=1, le=5)
    deadline: Optional[datetime] = Field(None, description="Due date")
    time_limit_minutes: Optional[int] = Field(
        None, ge=1, le=300, description="Time limit in minutes; omit for untimed"
    )

    @field_validator("savename")
    @classmethod
    def strip_savename(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty")
        return v

    @field_validator("student_ids")
    @classmethod
    def validate_students(cls, v: List[int]) -> List[int]:
        if not v:
            raise ValueError("At least one student is required")
        return sorted(set(v))

    @field_validator("topics")
    @classmethod
    def validate_topics(cls, v: List[int]) -> List[int]:
        return validate_topic_ids(v)

    @field_validator("num_questions")
    @classmethod
    def validate_num_questions(cls, v: int) -> int:
        if not settings.TEST_MIN_QUESTIONS <= v <= settings.TEST_MAX_QUESTIONS:
            raise ValueError(
                f"Number of questions must be between {settings.TEST_MIN_QUESTIONS} "
                f"and {settings.TEST_MAX_QUESTIONS}"
            )
        return v

    @model_validator(mode="after")
    def validate_difficulty_bounds(self) -> Self:
        if (
            self.min_difficulty is not None
            and self.max_difficulty is not None
            and self.min_difficulty > self.max_difficulty
        ):
            raise ValueError("min_difficulty cannot exceed max_difficulty")
        return self


class AssignmentResponse(BaseModel):
    """Schema for an assignment."""

    id: int
    savename: str
    deadline: Optional[datetime] = None
    topic_ids: List[int]
    num_questions: int
    min_difficulty: Optional[int] = None
    max_difficulty: Optional[int] = None
    time_limit_requested: bool
    time_limit: Optional[int] = None
    created_at: datetime
    student_count: int = 0

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class UserAssignmentResponse(BaseModel):
    """An assignment as seen by the student it was set for."""

    id: int = Field(..., description="User assignment ID, used to start the test")
    assignment: AssignmentResponse
    test: Optional[TestResponse] = Field(None, description="Test once started")

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class AssignmentListResponse(BaseModel):
    """Assignments set for the caller, and assignments the caller has set."""

    assigned: List[UserAssignmentResponse] = Field(default_factory=list)
    created: List[AssignmentResponse] = Field(default_factory=list)
