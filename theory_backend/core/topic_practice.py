"""
Single-question practice within one topic, outside of any test.
"""
import logging
import random
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from theory_backend.core.db_error_handling import handle_db_error
from theory_backend.core.exceptions import (
    NoQuestionsAvailable,
    QuestionNotFound,
    TopicNotFound,
)
from theory_backend.core.scoring import AnswerRecord, record_answer
from theory_backend.models import Question, StudyArea, UserQuestion

logger = logging.getLogger(__name__)


def get_study_area_or_raise(db: Session, study_area_id: int) -> StudyArea:
    study_area = db.get(StudyArea, study_area_id)
    if study_area is None:
        raise TopicNotFound(study_area_id)
    return study_area


def pick_topic_question(
    db: Session,
    user_id: int,
    study_area_id: int,
    *,
    question_id: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> Question:
    """
    Choose the next practice question for a topic.

    A specific ``question_id`` from the topic is returned as-is. Otherwise a
    random question the learner has not yet answered correctly is chosen,
    falling back to any question in the topic once all have been mastered.

    Raises:
        TopicNotFound: If the study area does not exist
        NoQuestionsAvailable: If the topic has no questions
    """
    get_study_area_or_raise(db, study_area_id)

    if question_id is not None:
        question = db.execute(
            select(Question).where(
                Question.id == question_id, Question.study_area_id == study_area_id
            )
        ).scalar_one_or_none()
        if question is not None:
            return question
        logger.debug(
            f"Question {question_id} is not in study area {study_area_id}; "
            "picking another"
        )

    topic_question_ids = list(
        db.execute(
            select(Question.id)
            .where(Question.study_area_id == study_area_id)
            .order_by(Question.id)
        )
        .scalars()
        .all()
    )
    if not topic_question_ids:
        raise NoQuestionsAvailable([study_area_id], [])

    mastered = set(
        db.execute(
            select(UserQuestion.question_id).where(
                UserQuestion.user_id == user_id,
                UserQuestion.correct.is_(True),
                UserQuestion.question_id.in_(topic_question_ids),
            )
        )
        .scalars()
        .all()
    )
    remaining = [qid for qid in topic_question_ids if qid not in mastered]
    pool = remaining or topic_question_ids

    rng = rng or random.Random()
    chosen_id = rng.choice(pool)
    return db.get(Question, chosen_id)


def answer_practice_question(
    db: Session,
    user_id: int,
    question_id: int,
    selected_answer: int,
    *,
    now: Optional[datetime] = None,
) -> AnswerRecord:
    """
    Score a single practice answer and update the learner's counters.

    The answer is stored with no test.

    Raises:
        QuestionNotFound: If the question does not exist
        PersistenceFailure: If the answer could not be saved
    """
    question = db.get(Question, question_id)
    if question is None:
        raise QuestionNotFound(question_id)

    with handle_db_error(db, "record practice answer"):
        record = record_answer(db, user_id, question, selected_answer, now=now)
        db.commit()
    return record
