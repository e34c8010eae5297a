"""
Topic catalogue and single-question topic practice endpoints.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from theory_backend.core.auth import get_current_user, require_active_subscription
from theory_backend.core.question_utils import question_to_response
from theory_backend.core.topic_practice import (
    answer_practice_question,
    get_study_area_or_raise,
    pick_topic_question,
)
from theory_backend.models import Question, StudyArea, User, get_db
from theory_backend.schemas.topics import (
    PracticeAnswerRequest,
    PracticeAnswerResponse,
    TopicQuestionResponse,
    TopicResponse,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _question_count(db: Session, study_area_id: int) -> int:
    return db.execute(
        select(func.count(Question.id)).where(Question.study_area_id == study_area_id)
    ).scalar_one()


def _topic_response(study_area: StudyArea, question_count: int) -> TopicResponse:
    return TopicResponse(
        id=study_area.id,
        name=study_area.name,
        position=study_area.position,
        description=study_area.description,
        grade=study_area.grade,
        question_count=question_count,
    )


@router.get("", response_model=List[TopicResponse])
def list_topics(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List every study area in display order with its question count."""
    rows = db.execute(
        select(StudyArea, func.count(Question.id))
        .outerjoin(Question, Question.study_area_id == StudyArea.id)
        .group_by(StudyArea.id)
        .order_by(StudyArea.position, StudyArea.id)
    ).all()
    return [_topic_response(study_area, count) for study_area, count in rows]


@router.get("/{topic_id}", response_model=TopicResponse)
def get_topic(
    topic_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    study_area = get_study_area_or_raise(db, topic_id)
    return _topic_response(study_area, _question_count(db, topic_id))


@router.get("/{topic_id}/question", response_model=TopicQuestionResponse)
def get_topic_question(
    topic_id: int,
    question_id: Optional[int] = Query(
        None, ge=1, description="Show this question if it belongs to the topic"
    ),
    current_user: User = Depends(require_active_subscription),
    db: Session = Depends(get_db),
):
    """
    Pick a practice question from a topic.

    Prefers questions the learner has not yet answered correctly.
    """
    question = pick_topic_question(
        db, current_user.id, topic_id, question_id=question_id
    )
    study_area = question.study_area
    return TopicQuestionResponse(
        topic=_topic_response(study_area, _question_count(db, topic_id)),
        question=question_to_response(question),
    )


@router.post(
    "/questions/{question_id}/answer", response_model=PracticeAnswerResponse
)
def answer_topic_question(
    question_id: int,
    answer: PracticeAnswerRequest,
    current_user: User = Depends(require_active_subscription),
    db: Session = Depends(get_db),
):
    """Score a single practice answer and reveal the correct option."""
    record = answer_practice_question(
        db, current_user.id, question_id, answer.selected_answer
    )
    question = db.get(Question, question_id)
    return PracticeAnswerResponse(
        question_id=record.question_id,
        selected_answer=record.selected_answer,
        correct=record.correct,
        correct_answer=question.correct_answer,
        notes=question.notes,
    )
