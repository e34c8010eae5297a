"""
Pydantic schemas for the learner progress endpoint.
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime


class TypeBreakdownResponse(BaseModel):
    question_type: str
    total: int
    correct: int
    accuracy: int = Field(..., description="Percentage correct")

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class RecentAnswerResponse(BaseModel):
    question_id: int
    study_area: Optional[str] = None
    question_type: str
    correct: bool
    test_id: Optional[int] = None
    answered_at: datetime

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class UserProgressResponse(BaseModel):
    """Schema for a learner's progress summary."""

    tests_count: int = Field(..., description="Tests started")
    tests_completed: int = Field(..., description="Tests completed")
    questions_total: int
    questions_correct: int
    questions_incorrect: int
    accuracy: int = Field(..., description="Percentage of answers correct")
    progress_total: int
    grades: Dict[int, int] = Field(
        default_factory=dict, description="Correct answers per exam grade"
    )
    by_type: List[TypeBreakdownResponse] = Field(default_factory=list)
    recent: List[RecentAnswerResponse] = Field(default_factory=list)

    class Config:
        """Pydantic configuration."""

        from_attributes = True
