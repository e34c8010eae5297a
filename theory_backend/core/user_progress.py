"""
Learner progress summary built from the user's counters and answer history.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from theory_backend.core.config import settings
from theory_backend.models import Question, StudyArea, Test, User, UserQuestion


@dataclass
class TypeBreakdown:
    question_type: str
    total: int
    correct: int

    @property
    def accuracy(self) -> int:
        return round(self.correct * 100 / self.total) if self.total else 0


@dataclass
class RecentAnswer:
    question_id: int
    study_area: Optional[str]
    question_type: str
    correct: bool
    test_id: Optional[int]
    answered_at: datetime


@dataclass
class UserProgress:
    tests_count: int
    tests_completed: int
    questions_total: int
    questions_correct: int
    questions_incorrect: int
    accuracy: int
    progress_total: int
    grades: Dict[int, int] = field(default_factory=dict)
    by_type: List[TypeBreakdown] = field(default_factory=list)
    recent: List[RecentAnswer] = field(default_factory=list)


def build_user_progress(
    db: Session, user: User, recent_limit: Optional[int] = None
) -> UserProgress:
    """Counters, per-type accuracy and the most recent answers for a learner."""
    if recent_limit is None:
        recent_limit = settings.RECENT_ANSWERS_LIMIT

    tests_completed = db.execute(
        select(func.count(Test.id)).where(
            Test.user_id == user.id, Test.complete.is_(True)
        )
    ).scalar_one()

    type_rows = db.execute(
        select(
            UserQuestion.question_type,
            func.count(UserQuestion.id),
            func.count(UserQuestion.id).filter(UserQuestion.correct.is_(True)),
        )
        .where(UserQuestion.user_id == user.id)
        .group_by(UserQuestion.question_type)
        .order_by(UserQuestion.question_type)
    ).all()
    by_type = [
        TypeBreakdown(question_type=qtype.value, total=total, correct=correct)
        for qtype, total, correct in type_rows
    ]

    recent_rows = db.execute(
        select(UserQuestion, StudyArea.name)
        .join(Question, Question.id == UserQuestion.question_id)
        .outerjoin(StudyArea, StudyArea.id == Question.study_area_id)
        .where(UserQuestion.user_id == user.id)
        .order_by(UserQuestion.created_at.desc(), UserQuestion.id.desc())
        .limit(recent_limit)
    ).all()
    recent = [
        RecentAnswer(
            question_id=answer.question_id,
            study_area=study_area_name,
            question_type=answer.question_type.value,
            correct=answer.correct,
            test_id=answer.test_id,
            answered_at=answer.created_at,
        )
        for answer, study_area_name in recent_rows
    ]

    total = user.questions_total or 0
    correct = user.questions_correct or 0
    return UserProgress(
        tests_count=user.tests_count or 0,
        tests_completed=tests_completed,
        questions_total=total,
        questions_correct=correct,
        questions_incorrect=user.questions_incorrect or 0,
        accuracy=round(correct * 100 / total) if total else 0,
        progress_total=user.progress_total or 0,
        grades=user.grade_progress(),
        by_type=by_type,
        recent=recent,
    )
