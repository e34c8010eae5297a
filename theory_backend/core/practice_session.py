"""
Practice tests driven by a session pointer.

The pointer names the learner's active practice test. It is passed in to
every operation and the (possibly changed) pointer is handed back; storing
it, in a cookie or anywhere else, is the caller's job.
"""
import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from theory_backend.core.analytics import AnalyticsTracker
from theory_backend.core.config import settings
from theory_backend.core.error_responses import ErrorMessages
from theory_backend.core.exceptions import InvalidSessionState
from theory_backend.core.scoring import AnswerRecord
from theory_backend.core.test_progression import (
    TestRequest,
    TestView,
    build_test_view,
    create_test,
    finish_test,
    load_test,
    move_to_previous,
    submit_answer,
)
from theory_backend.models import Test, TestType, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionPointer:
    """Which test, if any, is the learner's active practice test."""

    test_id: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.test_id is not None

    def cleared(self) -> "SessionPointer":
        return SessionPointer()


@dataclass
class PracticeStep:
    """Result of a practice operation: what to show and the pointer to keep."""

    view: TestView
    pointer: SessionPointer
    answer: Optional[AnswerRecord] = None


def practice_time_limit(num_questions: int, minutes: Optional[int] = None) -> int:
    """Seconds allowed for a timed practice test."""
    if minutes is not None:
        return minutes * 60
    return num_questions * settings.PRACTICE_SECONDS_PER_QUESTION


def _require_pointer(pointer: SessionPointer) -> int:
    if not pointer.is_active:
        raise InvalidSessionState(ErrorMessages.NO_ACTIVE_TEST)
    return pointer.test_id


def _pointer_after(test: Test, pointer: SessionPointer) -> SessionPointer:
    """Completed tests are no longer active."""
    return pointer.cleared() if test.complete else pointer


def start_practice_test(
    db: Session,
    user: User,
    pointer: SessionPointer,
    request: TestRequest,
    *,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> PracticeStep:
    """
    Generate a practice test and make it the active one.

    Any previously active test is left as it was.
    """
    if pointer.is_active:
        logger.info(
            f"User {user.id} replaced active practice test {pointer.test_id}"
        )
    test = create_test(db, user, request, test_type=TestType.PRACTICE, now=now, rng=rng)
    view = build_test_view(db, test, now=now)
    return PracticeStep(view=view, pointer=SessionPointer(test.id))


def get_active_test_view(
    db: Session,
    user: User,
    pointer: SessionPointer,
    *,
    index: Optional[int] = None,
    now: Optional[datetime] = None,
) -> PracticeStep:
    """
    Show the active test. A test that expired on this read clears the pointer.

    Raises:
        InvalidSessionState: If there is no active test
    """
    test_id = _require_pointer(pointer)
    test = load_test(db, test_id, user.id, now=now)
    view = build_test_view(db, test, index=index, now=now)
    return PracticeStep(view=view, pointer=_pointer_after(test, pointer))


def submit_and_next(
    db: Session,
    user: User,
    pointer: SessionPointer,
    selected_answer: int,
    *,
    question_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> PracticeStep:
    """
    Answer the question at the cursor (or ``question_id``) and move on.

    Raises:
        InvalidSessionState: If there is no active test or the cursor is
            outside the question list
        TestAlreadyComplete: If the active test has already completed
    """
    test_id = _require_pointer(pointer)
    test = load_test(db, test_id, user.id, now=now, for_update=True)

    if question_id is None:
        question_ids = test.question_ids
        if not test.complete and test.current_question >= len(question_ids):
            raise InvalidSessionState(
                ErrorMessages.question_index_out_of_range(
                    test.current_question, len(question_ids)
                )
            )
        if not test.complete:
            question_id = question_ids[test.current_question]

    record = submit_answer(db, test, user, question_id, selected_answer, now=now)
    view = build_test_view(db, test, now=now)
    return PracticeStep(view=view, pointer=_pointer_after(test, pointer), answer=record)


def move_to_previous_question(
    db: Session,
    user: User,
    pointer: SessionPointer,
    *,
    now: Optional[datetime] = None,
) -> PracticeStep:
    test_id = _require_pointer(pointer)
    test = load_test(db, test_id, user.id, now=now, for_update=True)
    move_to_previous(db, test)
    view = build_test_view(db, test, now=now)
    return PracticeStep(view=view, pointer=pointer)


def finish_active_test(
    db: Session,
    user: User,
    pointer: SessionPointer,
    *,
    now: Optional[datetime] = None,
) -> PracticeStep:
    """Finish the active test and clear the pointer."""
    test_id = _require_pointer(pointer)
    test = load_test(db, test_id, user.id, now=now, for_update=True)
    finish_test(db, test, now=now)
    view = build_test_view(db, test, now=now)
    return PracticeStep(view=view, pointer=pointer.cleared())


def exit_active_test(
    db: Session,
    user: User,
    pointer: SessionPointer,
) -> SessionPointer:
    """
    Drop the pointer without completing the test.

    The test row stays incomplete so it can still be opened by ID.
    """
    test_id = _require_pointer(pointer)
    test = load_test(db, test_id, user.id)
    logger.info(f"User {user.id} exited practice test {test.id}")
    AnalyticsTracker.track_test_exited(user.id, test.id)
    return pointer.cleared()
