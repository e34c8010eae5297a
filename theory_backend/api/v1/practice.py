"""
Practice test endpoints.

The active practice test is remembered in the signed session cookie under
``testId``. Each endpoint reads the pointer, hands it to the practice
session functions and stores whatever pointer comes back.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from theory_backend.core.auth import get_current_user, require_active_subscription
from theory_backend.core.practice_session import (
    PracticeStep,
    SessionPointer,
    exit_active_test,
    finish_active_test,
    get_active_test_view,
    move_to_previous_question,
    practice_time_limit,
    start_practice_test,
    submit_and_next,
)
from theory_backend.core.question_utils import view_to_response
from theory_backend.core.test_progression import TestRequest, load_test
from theory_backend.core.test_results import build_test_summary
from theory_backend.models import User, get_db
from theory_backend.schemas.practice import (
    PracticeExitResponse,
    PracticeStartRequest,
    PracticeStepResponse,
)
from theory_backend.schemas.tests import AnswerRequest, TestSummaryResponse

router = APIRouter()
logger = logging.getLogger(__name__)

SESSION_POINTER_KEY = "testId"


def read_pointer(request: Request) -> SessionPointer:
    """Session pointer from the cookie; a malformed value counts as no pointer."""
    raw = request.session.get(SESSION_POINTER_KEY)
    if isinstance(raw, int) and not isinstance(raw, bool):
        return SessionPointer(raw)
    if raw is not None:
        logger.warning(f"Discarding malformed practice session pointer: {raw!r}")
        request.session.pop(SESSION_POINTER_KEY, None)
    return SessionPointer()


def store_pointer(request: Request, pointer: SessionPointer) -> None:
    if pointer.is_active:
        request.session[SESSION_POINTER_KEY] = pointer.test_id
    else:
        request.session.pop(SESSION_POINTER_KEY, None)


def _step_response(
    request: Request, step: PracticeStep
) -> PracticeStepResponse:
    store_pointer(request, step.pointer)
    return PracticeStepResponse(
        active=step.pointer.is_active,
        view=view_to_response(step.view),
        correct=step.answer.correct if step.answer is not None else None,
    )


@router.post("/start", response_model=PracticeStepResponse)
def start_practice(
    body: PracticeStartRequest,
    request: Request,
    current_user: User = Depends(require_active_subscription),
    db: Session = Depends(get_db),
):
    """Generate a practice test and make it the active one."""
    time_limit = None
    if body.timed:
        time_limit = practice_time_limit(body.num_questions, body.time_limit_minutes)

    step = start_practice_test(
        db,
        current_user,
        read_pointer(request),
        TestRequest(
            topic_ids=frozenset(body.topics),
            difficulty_levels=frozenset(body.difficulties),
            num_questions=body.num_questions,
            include_previous_correct=body.include_previous_correct,
            include_previous_incorrect=body.include_previous_incorrect,
            time_limit=time_limit,
        ),
    )
    return _step_response(request, step)


@router.get("/current", response_model=PracticeStepResponse)
def current_practice(
    request: Request,
    index: Optional[int] = Query(None, ge=0, description="Show this position"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    step = get_active_test_view(db, current_user, read_pointer(request), index=index)
    return _step_response(request, step)


@router.post("/answer", response_model=PracticeStepResponse)
def answer_practice(
    answer: AnswerRequest,
    request: Request,
    current_user: User = Depends(require_active_subscription),
    db: Session = Depends(get_db),
):
    """Answer the current question and move to the next one."""
    step = submit_and_next(
        db,
        current_user,
        read_pointer(request),
        answer.selected_answer,
        question_id=answer.question_id,
    )
    return _step_response(request, step)


@router.post("/previous", response_model=PracticeStepResponse)
def previous_practice_question(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    step = move_to_previous_question(db, current_user, read_pointer(request))
    return _step_response(request, step)


@router.post("/finish", response_model=PracticeStepResponse)
def finish_practice(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Finish the active practice test; results are at /practice/results/{id}."""
    step = finish_active_test(db, current_user, read_pointer(request))
    return _step_response(request, step)


@router.post("/exit", response_model=PracticeExitResponse)
def exit_practice(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Leave the active practice test without finishing it."""
    pointer = read_pointer(request)
    store_pointer(request, exit_active_test(db, current_user, pointer))
    return PracticeExitResponse(
        test_id=pointer.test_id,
        message="Practice test exited. Your answers so far have been kept.",
    )


@router.get("/results/{test_id}", response_model=TestSummaryResponse)
def practice_results(
    test_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    test = load_test(db, test_id, current_user.id)
    return TestSummaryResponse.model_validate(build_test_summary(db, test))
