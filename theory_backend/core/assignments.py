"""
Assignments: tests set by an organisation for its students.

An assignment stores the test parameters. Each student gets a
UserAssignment, and the first time they start it a test is generated from
those parameters without any history exclusion.
"""
import logging
import random
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from theory_backend.core.analytics import AnalyticsTracker
from theory_backend.core.config import settings
from theory_backend.core.datetime_utils import utc_now
from theory_backend.core.db_error_handling import handle_db_error
from theory_backend.core.error_responses import ErrorMessages
from theory_backend.core.exceptions import AssignmentNotFound, InvalidAssignment
from theory_backend.core.question_filter import difficulties_for_preset
from theory_backend.core.test_progression import (
    TestRequest,
    create_test,
    expire_if_overdue,
    load_test,
)
from theory_backend.models import (
    Assignment,
    StudyArea,
    Test,
    TestType,
    User,
    UserAssignment,
    UserType,
)
from theory_backend.models.models import join_ids

logger = logging.getLogger(__name__)


def _validate_students(db: Session, creator: User, student_ids: List[int]) -> None:
    students = (
        db.execute(select(User).where(User.id.in_(student_ids))).scalars().all()
    )
    found = {student.id for student in students}
    invalid = set(student_ids) - found
    if creator.user_type != UserType.ADMIN:
        invalid.update(
            student.id
            for student in students
            if student.organisation_id != creator.id
        )
    if invalid:
        raise InvalidAssignment(ErrorMessages.students_not_in_organisation(invalid))


def create_assignment(
    db: Session,
    creator: User,
    *,
    savename: str,
    student_ids: Iterable[int],
    topic_ids: Iterable[int],
    num_questions: int,
    min_difficulty: Optional[int] = None,
    max_difficulty: Optional[int] = None,
    deadline: Optional[datetime] = None,
    time_limit: Optional[int] = None,
    time_limit_requested: bool = False,
) -> Assignment:
    """
    Create an assignment and link it to each student.

    Organisation accounts may only assign their own students; admins may
    assign anyone.

    Raises:
        InvalidAssignment: If the details are incomplete or out of range
        PersistenceFailure: If the assignment could not be saved
    """
    student_ids = sorted(set(student_ids))
    topic_ids = sorted(set(topic_ids))

    if not student_ids:
        raise InvalidAssignment(ErrorMessages.NO_STUDENTS_SELECTED)
    if not topic_ids:
        raise InvalidAssignment(ErrorMessages.NO_TOPICS_SELECTED)
    if not settings.TEST_MIN_QUESTIONS <= num_questions <= settings.TEST_MAX_QUESTIONS:
        raise InvalidAssignment(
            f"Assignments must have between {settings.TEST_MIN_QUESTIONS} and "
            f"{settings.TEST_MAX_QUESTIONS} questions."
        )
    if (
        min_difficulty is not None
        and max_difficulty is not None
        and min_difficulty > max_difficulty
    ):
        raise InvalidAssignment(ErrorMessages.INVALID_DIFFICULTY_RANGE)

    known_topics = set(
        db.execute(select(StudyArea.id).where(StudyArea.id.in_(topic_ids)))
        .scalars()
        .all()
    )
    if known_topics != set(topic_ids):
        missing = sorted(set(topic_ids) - known_topics)
        raise InvalidAssignment(f"Unknown topics: {', '.join(map(str, missing))}.")

    _validate_students(db, creator, student_ids)

    with handle_db_error(db, "create assignment"):
        assignment = Assignment(
            user_id=creator.id,
            savename=savename,
            deadline=deadline,
            topics=join_ids(topic_ids),
            num_questions=num_questions,
            min_difficulty=min_difficulty,
            max_difficulty=max_difficulty,
            time_limit_requested=time_limit_requested or time_limit is not None,
            time_limit=time_limit,
        )
        db.add(assignment)
        db.flush()
        db.add_all(
            UserAssignment(user_id=student_id, assignment_id=assignment.id)
            for student_id in student_ids
        )
        db.commit()
        db.refresh(assignment)

    logger.info(
        f"User {creator.id} created assignment {assignment.id} "
        f"for {len(student_ids)} students"
    )
    AnalyticsTracker.track_assignment_created(
        creator.id, assignment.id, len(student_ids)
    )
    return assignment


def assignment_test_request(assignment: Assignment) -> TestRequest:
    """Generation parameters for an assignment's test. History is ignored."""
    time_limit = None
    if assignment.time_limit_requested:
        time_limit = assignment.time_limit or (
            assignment.num_questions * settings.PRACTICE_SECONDS_PER_QUESTION
        )
    return TestRequest(
        topic_ids=frozenset(assignment.topic_ids),
        difficulty_levels=frozenset(assignment.difficulty_levels()),
        num_questions=assignment.num_questions,
        include_previous_correct=True,
        include_previous_incorrect=True,
        time_limit=time_limit,
    )


def start_assignment(
    db: Session,
    user: User,
    user_assignment_id: int,
    *,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> Test:
    """
    Return the student's test for an assignment, creating it on first start.

    Raises:
        AssignmentNotFound: If the assignment does not exist or is not the user's
        NoQuestionsAvailable: If nothing matches the assignment's criteria
    """
    user_assignment = db.execute(
        select(UserAssignment)
        .where(UserAssignment.id == user_assignment_id)
        .with_for_update()
    ).scalar_one_or_none()
    if user_assignment is None or user_assignment.user_id != user.id:
        raise AssignmentNotFound(user_assignment_id)

    if user_assignment.test_id is not None:
        return load_test(db, user_assignment.test_id, user.id, now=now)

    assignment = user_assignment.assignment
    test = create_test(
        db,
        user,
        assignment_test_request(assignment),
        test_type=TestType.ASSIGNMENT,
        assignment_id=assignment.id,
        now=now,
        rng=rng,
        commit=False,
    )
    with handle_db_error(db, "start assignment"):
        user_assignment.test_id = test.id
        db.commit()
        db.refresh(test)

    logger.info(
        f"User {user.id} started assignment {assignment.id} as test {test.id}"
    )
    return test


def list_student_assignments(
    db: Session, user_id: int, *, now: Optional[datetime] = None
) -> List[UserAssignment]:
    """Assignments set for a student, newest first. Overdue tests are expired."""
    user_assignments = list(
        db.execute(
            select(UserAssignment)
            .where(UserAssignment.user_id == user_id)
            .options(
                selectinload(UserAssignment.assignment),
                selectinload(UserAssignment.test),
            )
            .order_by(UserAssignment.id.desc())
        )
        .scalars()
        .all()
    )
    now = now or utc_now()
    for user_assignment in user_assignments:
        if user_assignment.test is not None:
            expire_if_overdue(db, user_assignment.test, now=now)
    return user_assignments


def list_created_assignments(db: Session, creator_id: int) -> List[Assignment]:
    """Assignments an organisation has set, newest first."""
    return list(
        db.execute(
            select(Assignment)
            .where(Assignment.user_id == creator_id)
            .options(selectinload(Assignment.user_assignments))
            .order_by(Assignment.created_at.desc(), Assignment.id.desc())
        )
        .scalars()
        .all()
    )


def difficulty_bounds(label: Optional[str]) -> Tuple[Optional[int], Optional[int]]:
    """(min, max) difficulty for a preset label; (None, None) means any level."""
    if label is None or label == "all":
        return None, None
    try:
        levels = difficulties_for_preset(label)
    except ValueError as e:
        raise InvalidAssignment(str(e)) from e
    return min(levels), max(levels)
