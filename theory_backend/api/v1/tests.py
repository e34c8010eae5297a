"""
Custom test endpoints.

Tests are addressed by ID; any read of a timed test that has run out of time
completes it first.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from theory_backend.core.auth import get_current_user, require_active_subscription
from theory_backend.core.question_utils import view_to_response
from theory_backend.core.test_progression import (
    TestRequest,
    build_test_view,
    create_test,
    finish_test,
    list_tests,
    load_test,
    move_to_previous,
    submit_answer,
)
from theory_backend.core.test_results import build_test_summary
from theory_backend.models import TestType, User, get_db
from theory_backend.schemas.tests import (
    AnswerRequest,
    AnswerResponse,
    TestCreateRequest,
    TestResponse,
    TestSummaryResponse,
    TestViewResponse,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def answer_and_view(
    db: Session, test, user: User, answer: AnswerRequest
) -> AnswerResponse:
    """Submit an answer (defaulting to the cursor question) and build the next view."""
    question_id = answer.question_id
    if question_id is None and not test.complete:
        question_ids = test.question_ids
        if test.current_question < len(question_ids):
            question_id = question_ids[test.current_question]

    record = submit_answer(db, test, user, question_id, answer.selected_answer)
    return AnswerResponse(
        correct=record.correct,
        question_id=record.question_id,
        selected_answer=record.selected_answer,
        view=view_to_response(build_test_view(db, test)),
    )


@router.post("", response_model=TestViewResponse, status_code=status.HTTP_201_CREATED)
def create_custom_test(
    request: TestCreateRequest,
    current_user: User = Depends(require_active_subscription),
    db: Session = Depends(get_db),
):
    """
    Generate a custom test from topics, difficulty and history preferences.

    Fewer questions than requested may be selected when the pool is small.
    """
    test = create_test(
        db,
        current_user,
        TestRequest(
            topic_ids=frozenset(request.topics),
            difficulty_levels=frozenset(request.difficulty_levels()),
            num_questions=request.num_questions,
            include_previous_correct=request.include_previous_correct,
            include_previous_incorrect=request.include_previous_incorrect,
            time_limit=(
                request.time_limit_minutes * 60
                if request.time_limit_minutes is not None
                else None
            ),
            difficulty_label=request.difficulty,
        ),
        test_type=TestType.CUSTOM,
    )
    return view_to_response(build_test_view(db, test))


@router.get("", response_model=List[TestResponse])
def list_user_tests(
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's tests, newest first."""
    return [TestResponse.model_validate(t) for t in list_tests(db, current_user.id, limit)]


@router.get("/{test_id}", response_model=TestViewResponse)
def get_test(
    test_id: int,
    index: Optional[int] = Query(None, ge=0, description="Show this position"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    test = load_test(db, test_id, current_user.id)
    return view_to_response(build_test_view(db, test, index=index))


@router.post("/{test_id}/answer", response_model=AnswerResponse)
def answer_test_question(
    test_id: int,
    answer: AnswerRequest,
    current_user: User = Depends(require_active_subscription),
    db: Session = Depends(get_db),
):
    """Answer a question and move to the next one."""
    test = load_test(db, test_id, current_user.id, for_update=True)
    return answer_and_view(db, test, current_user, answer)


@router.post("/{test_id}/previous", response_model=TestViewResponse)
def previous_question(
    test_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    test = load_test(db, test_id, current_user.id, for_update=True)
    move_to_previous(db, test)
    return view_to_response(build_test_view(db, test))


@router.post("/{test_id}/finish", response_model=TestSummaryResponse)
def finish(
    test_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Finish the test now and return its results."""
    test = load_test(db, test_id, current_user.id, for_update=True)
    finish_test(db, test)
    return TestSummaryResponse.model_validate(build_test_summary(db, test))


@router.get("/{test_id}/results", response_model=TestSummaryResponse)
def get_results(
    test_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    test = load_test(db, test_id, current_user.id)
    return TestSummaryResponse.model_validate(build_test_summary(db, test))
