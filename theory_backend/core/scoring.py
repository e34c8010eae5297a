"""
Answer scoring and aggregate counter updates.

Every recorded answer updates the learner's counters with relative
increments (``col = col + n``) so concurrent submissions from the same
learner never overwrite each other.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from theory_backend.core.analytics import AnalyticsTracker
from theory_backend.core.datetime_utils import utc_now
from theory_backend.models import Question, User, UserQuestion
from theory_backend.models.models import GRADE_BUCKETS

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


@dataclass(frozen=True)
class AnswerRecord:
    """Outcome of recording one answer."""

    question_id: int
    selected_answer: int
    correct: bool
    is_new: bool
    previous_correct: Optional[bool] = None

    @property
    def changed(self) -> bool:
        """True when a re-answer flipped correctness."""
        return not self.is_new and self.previous_correct != self.correct


def is_correct_answer(question: Question, selected_answer: int) -> bool:
    """Check a selected option id against the question's correct answer."""
    return selected_answer == question.correct_answer


def counter_deltas(
    correct: bool,
    previous_correct: Optional[bool],
    grade: Optional[int] = None,
) -> Dict[str, int]:
    """
    Counter increments for one answer.

    A first answer counts once. A re-answer only moves counts when its
    correctness differs from the stored answer.
    """
    deltas: Dict[str, int] = {}
    grade_column = (
        f"progress_grade{grade}"
        if grade is not None and 1 <= grade <= GRADE_BUCKETS
        else None
    )

    if previous_correct is None:
        deltas["questions_total"] = 1
        if correct:
            deltas["questions_correct"] = 1
            deltas["progress_total"] = 1
            if grade_column:
                deltas[grade_column] = 1
        else:
            deltas["questions_incorrect"] = 1
        return deltas

    if previous_correct == correct:
        return deltas

    step = 1 if correct else -1
    deltas["questions_correct"] = step
    deltas["questions_incorrect"] = -step
    deltas["progress_total"] = step
    if grade_column:
        deltas[grade_column] = step
    return deltas


def apply_counter_deltas(db: Session, user_id: int, deltas: Dict[str, int]) -> None:
    """Apply relative increments to the user's counters in one UPDATE."""
    if not deltas:
        return
    values = {
        name: getattr(User, name) + delta for name, delta in deltas.items()
    }
    db.execute(
        update(User)
        .where(User.id == user_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )


def _upsert_answer(
    db: Session,
    user_id: int,
    question: Question,
    selected_answer: int,
    correct: bool,
    test_id: int,
    now: datetime,
) -> None:
    dialect = db.get_bind().dialect.name
    insert = _INSERT_BY_DIALECT.get(dialect)
    if insert is None:
        raise RuntimeError(f"Unsupported database dialect for upsert: {dialect}")

    stmt = insert(UserQuestion).values(
        user_id=user_id,
        question_id=question.id,
        test_id=test_id,
        selected_answer=selected_answer,
        correct=correct,
        question_type=question.question_type,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "question_id", "test_id"],
        set_={
            "selected_answer": stmt.excluded.selected_answer,
            "correct": stmt.excluded.correct,
            "question_type": stmt.excluded.question_type,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    db.execute(stmt)


def record_answer(
    db: Session,
    user_id: int,
    question: Question,
    selected_answer: int,
    *,
    test_id: Optional[int] = None,
    grade: Optional[int] = None,
    now: Optional[datetime] = None,
) -> AnswerRecord:
    """
    Persist an answer and update the learner's counters.

    Answers inside a test are upserted on (user, question, test), so
    re-answering replaces the earlier row. Answers outside a test are
    always new rows.

    Does not commit; the caller owns the transaction.

    Args:
        db: Database session
        user_id: Learner answering
        question: Question being answered
        selected_answer: Option id chosen
        test_id: Test the answer belongs to, if any
        grade: Grade bucket for progress; defaults to the topic's grade
        now: Answer time (defaults to utc_now())

    Returns:
        AnswerRecord describing the outcome
    """
    now = now or utc_now()
    correct = is_correct_answer(question, selected_answer)
    if grade is None and question.study_area is not None:
        grade = question.study_area.grade

    previous_correct: Optional[bool] = None
    if test_id is None:
        db.add(
            UserQuestion(
                user_id=user_id,
                question_id=question.id,
                test_id=None,
                selected_answer=selected_answer,
                correct=correct,
                question_type=question.question_type,
                created_at=now,
                updated_at=now,
            )
        )
        db.flush()
    else:
        previous_correct = db.execute(
            select(UserQuestion.correct).where(
                UserQuestion.user_id == user_id,
                UserQuestion.question_id == question.id,
                UserQuestion.test_id == test_id,
            )
        ).scalar_one_or_none()
        _upsert_answer(db, user_id, question, selected_answer, correct, test_id, now)

    apply_counter_deltas(db, user_id, counter_deltas(correct, previous_correct, grade))

    record = AnswerRecord(
        question_id=question.id,
        selected_answer=selected_answer,
        correct=correct,
        is_new=previous_correct is None,
        previous_correct=previous_correct,
    )
    logger.debug(
        f"Recorded answer for user {user_id}, question {question.id}, "
        f"test {test_id}: correct={correct}, new={record.is_new}"
    )
    AnalyticsTracker.track_answer_recorded(
        user_id=user_id,
        question_id=question.id,
        correct=correct,
        test_id=test_id,
        is_new=record.is_new,
    )
    return record
