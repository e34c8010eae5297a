"""
Pydantic schemas for questions as shown to a learner.

Correct answers are never part of these schemas; they only appear in
results once a test is complete.
"""
from pydantic import BaseModel, Field
from typing import List, Optional


class QuestionOption(BaseModel):
    """One multiple choice option."""

    id: int = Field(..., ge=1, le=5, description="Option id submitted as the answer")
    text: Optional[str] = Field(None, description="Option text")
    image_url: Optional[str] = Field(None, description="Option image")


class ExtractResponse(BaseModel):
    """Audio clip attached to a listening question."""

    id: int = Field(..., description="Extract ID")
    title: Optional[str] = Field(None, description="Extract title")
    audio_url: str = Field(..., description="Audio file location")

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class QuestionResponse(BaseModel):
    """Schema for a question presented during a test or practice."""

    id: int = Field(..., description="Question ID")
    study_area_id: int = Field(..., description="Topic the question belongs to")
    question_type: str = Field(..., description="TMCQ, GMCQ or DDI")
    difficulty: int = Field(..., ge=1, le=5, description="Difficulty level (1-5)")
    question_text: Optional[str] = Field(None, description="The question text")
    options: List[QuestionOption] = Field(
        default_factory=list, description="Answer options"
    )
    extract: Optional[ExtractResponse] = Field(
        None, description="Audio extract for listening questions"
    )

    class Config:
        """Pydantic configuration."""

        from_attributes = True  # Allows conversion from ORM models
