"""
Utility functions for turning models and engine results into response schemas.
"""
from typing import Any, Dict, List

from theory_backend.core.test_progression import TestView
from theory_backend.models.models import Question
from theory_backend.schemas.questions import QuestionResponse
from theory_backend.schemas.tests import TestResponse, TestViewResponse


def normalize_options(options: Any) -> List[Dict[str, Any]]:
    """
    Options as a list of {"id", "text", "image_url"} dicts.

    Plain strings are accepted and numbered from 1 in order, which is how
    older text-only questions were stored.
    """
    if not options:
        return []
    normalized = []
    for position, option in enumerate(options, start=1):
        if isinstance(option, dict):
            normalized.append(
                {
                    "id": option.get("id", position),
                    "text": option.get("text"),
                    "image_url": option.get("image_url"),
                }
            )
        else:
            normalized.append({"id": position, "text": str(option), "image_url": None})
    return normalized


def question_to_response(question: Question) -> QuestionResponse:
    """
    Convert a Question model to the learner-facing QuestionResponse.

    The correct answer and study notes are left out.
    """
    extract = None
    if question.extract is not None:
        extract = {
            "id": question.extract.id,
            "title": question.extract.title,
            "audio_url": question.extract.audio_url,
        }

    return QuestionResponse.model_validate(
        {
            "id": question.id,
            "study_area_id": question.study_area_id,
            "question_type": question.question_type.value,
            "difficulty": question.difficulty,
            "question_text": question.question_text,
            "options": normalize_options(question.options),
            "extract": extract,
        }
    )


def view_to_response(view: TestView) -> TestViewResponse:
    """Convert a TestView into its response schema."""
    return TestViewResponse(
        test=TestResponse.model_validate(view.test),
        question=(
            question_to_response(view.question) if view.question is not None else None
        ),
        question_index=view.question_index,
        answers=view.answers,
        time_remaining=view.time_remaining,
    )
