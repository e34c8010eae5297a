"""
Pydantic schemas for topic (study area) endpoints.
"""
from pydantic import BaseModel, Field
from typing import Optional

from theory_backend.schemas.questions import QuestionResponse


class TopicResponse(BaseModel):
    """Schema for a study area."""

    id: int = Field(..., description="Study area ID")
    name: str = Field(..., description="Topic name")
    position: int = Field(..., description="Display order")
    description: Optional[str] = Field(None, description="Topic description")
    grade: Optional[int] = Field(None, description="Exam grade (1-7)")
    question_count: int = Field(0, description="Number of questions in the topic")

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class TopicQuestionResponse(BaseModel):
    """A practice question picked from one topic."""

    topic: TopicResponse
    question: QuestionResponse


class PracticeAnswerRequest(BaseModel):
    """Answer to a single practice question."""

    selected_answer: int = Field(..., ge=1, le=5, description="Chosen option id")


class PracticeAnswerResponse(BaseModel):
    """Outcome of a single practice answer."""

    question_id: int
    selected_answer: int
    correct: bool
    correct_answer: int = Field(..., description="Option id of the right answer")
    notes: Optional[str] = Field(None, description="Study notes for the question")
