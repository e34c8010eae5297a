"""
Assignment endpoints.
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from theory_backend.core.assignments import (
    create_assignment,
    difficulty_bounds,
    list_created_assignments,
    list_student_assignments,
    start_assignment,
)
from theory_backend.core.auth import (
    UNRESTRICTED_USER_TYPES,
    get_current_user,
    require_active_subscription,
    require_organisation,
)
from theory_backend.core.question_utils import view_to_response
from theory_backend.core.test_progression import build_test_view
from theory_backend.models import User, get_db
from theory_backend.schemas.assignments import (
    AssignmentCreateRequest,
    AssignmentListResponse,
    AssignmentResponse,
    UserAssignmentResponse,
)
from theory_backend.schemas.tests import TestViewResponse

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED
)
def create(
    body: AssignmentCreateRequest,
    current_user: User = Depends(require_organisation),
    db: Session = Depends(get_db),
):
    """Set an assignment for one or more students."""
    min_difficulty, max_difficulty = body.min_difficulty, body.max_difficulty
    if min_difficulty is None and max_difficulty is None:
        min_difficulty, max_difficulty = difficulty_bounds(body.difficulty)

    assignment = create_assignment(
        db,
        current_user,
        savename=body.savename,
        student_ids=body.student_ids,
        topic_ids=body.topics,
        num_questions=body.num_questions,
        min_difficulty=min_difficulty,
        max_difficulty=max_difficulty,
        deadline=body.deadline,
        time_limit=(
            body.time_limit_minutes * 60
            if body.time_limit_minutes is not None
            else None
        ),
    )
    return AssignmentResponse.model_validate(assignment)


@router.get("", response_model=AssignmentListResponse)
def list_assignments(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Assignments set for the caller, plus those they created if they are an organisation."""
    assigned = [
        UserAssignmentResponse.model_validate(ua)
        for ua in list_student_assignments(db, current_user.id)
    ]
    created = []
    if current_user.user_type in UNRESTRICTED_USER_TYPES:
        created = [
            AssignmentResponse.model_validate(a)
            for a in list_created_assignments(db, current_user.id)
        ]
    return AssignmentListResponse(assigned=assigned, created=created)


@router.post("/{user_assignment_id}/start", response_model=TestViewResponse)
def start(
    user_assignment_id: int,
    current_user: User = Depends(require_active_subscription),
    db: Session = Depends(get_db),
):
    """Start an assignment, or resume its test if already started."""
    test = start_assignment(db, current_user, user_assignment_id)
    return view_to_response(build_test_view(db, test))
