"""
Learner progress endpoint.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from theory_backend.core.auth import get_current_user
from theory_backend.core.user_progress import build_user_progress
from theory_backend.models import User, get_db
from theory_backend.schemas.user import UserProgressResponse

router = APIRouter()


@router.get("/progress", response_model=UserProgressResponse)
def get_progress(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Answer counters, accuracy by question type and recent answers."""
    return UserProgressResponse.model_validate(build_user_progress(db, current_user))
