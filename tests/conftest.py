"""
Pytest configuration and shared fixtures for testing.
"""
import os
from pathlib import Path

# Use SQLite for tests. Path is relative to this file so the .db lands inside
# tests/ regardless of the working directory. Set before theory_backend is
# imported because settings and the engine are built at import time.
_TEST_DB = Path(__file__).parent / "test.db"
SQLALCHEMY_DATABASE_URL = f"sqlite:///{_TEST_DB}"

os.environ.setdefault("SECRET_KEY", "test-session-secret")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("DATABASE_URL", SQLALCHEMY_DATABASE_URL)
os.environ.setdefault("DEBUG", "False")
os.environ.setdefault("SENTRY_DSN", "")

from contextlib import asynccontextmanager  # noqa: E402
from datetime import timedelta  # noqa: E402
from typing import Callable, Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from theory_backend.core.datetime_utils import utc_now  # noqa: E402
from theory_backend.core.security import create_access_token  # noqa: E402
from theory_backend.main import app  # noqa: E402
from theory_backend.models import (  # noqa: E402
    Base,
    Extract,
    Question,
    QuestionType,
    StudyArea,
    User,
    UserType,
    get_db,
)


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests. Skips error tracking initialization."""
    yield


app.router.lifespan_context = _test_lifespan

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database dependency override.

    Requests get their own sessions on the same test.db file where
    db_session creates data.
    """

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _make_user(db_session, email: str, **kwargs) -> User:
    user = User(email=email, **kwargs)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def test_user(db_session):
    """
    An individual learner with an active subscription.
    """
    return _make_user(
        db_session,
        "learner@example.com",
        display_name="Test Learner",
        user_type=UserType.INDIVIDUAL,
        expiry=utc_now() + timedelta(days=30),
    )


@pytest.fixture
def other_user(db_session):
    """A second learner, used for ownership checks."""
    return _make_user(
        db_session,
        "other@example.com",
        user_type=UserType.INDIVIDUAL,
        expiry=utc_now() + timedelta(days=30),
    )


@pytest.fixture
def expired_user(db_session):
    """A learner whose subscription has lapsed."""
    return _make_user(
        db_session,
        "lapsed@example.com",
        user_type=UserType.INDIVIDUAL,
        expiry=utc_now() - timedelta(days=1),
    )


@pytest.fixture
def org_user(db_session):
    """An organisation account that can set assignments."""
    return _make_user(
        db_session,
        "school@example.com",
        display_name="Test School",
        user_type=UserType.ORGANISATION,
    )


@pytest.fixture
def student_user(db_session, org_user):
    """A student managed by org_user."""
    return _make_user(
        db_session,
        "student@example.com",
        user_type=UserType.STUDENT,
        organisation_id=org_user.id,
        expiry=utc_now() + timedelta(days=30),
    )


def make_headers(user: User) -> Dict[str, str]:
    access_token = create_access_token({"user_id": user.id})
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def headers_for() -> Callable[[User], Dict[str, str]]:
    """Build bearer headers for any user."""
    return make_headers


@pytest.fixture
def auth_headers(test_user):
    """
    Create authentication headers for test user.
    """
    return make_headers(test_user)


@pytest.fixture
def org_headers(org_user):
    return make_headers(org_user)


@pytest.fixture
def student_headers(student_user):
    return make_headers(student_user)


@pytest.fixture
def topics(db_session) -> List[StudyArea]:
    """
    Two study areas: intervals (grade 1) and cadences (grade 5).
    """
    study_areas = [
        StudyArea(name="Intervals", position=1, grade=1),
        StudyArea(name="Cadences", position=2, grade=5),
    ]
    db_session.add_all(study_areas)
    db_session.commit()
    for study_area in study_areas:
        db_session.refresh(study_area)
    return study_areas


@pytest.fixture
def add_questions(db_session) -> Callable[..., List[Question]]:
    """
    Factory for questions in a study area.

    Difficulties cycle 1-5 unless one is given. Every question has option 2
    as its correct answer.
    """

    def _add(
        study_area: StudyArea,
        count: int,
        difficulty: Optional[int] = None,
        extract: Optional[Extract] = None,
        question_type: QuestionType = QuestionType.TMCQ,
    ) -> List[Question]:
        questions = [
            Question(
                study_area_id=study_area.id,
                extract_id=extract.id if extract is not None else None,
                question_type=question_type,
                difficulty=difficulty if difficulty is not None else (i % 5) + 1,
                question_text=f"{study_area.name} question {i}",
                options=[
                    {"id": 1, "text": "Major third"},
                    {"id": 2, "text": "Perfect fifth"},
                    {"id": 3, "text": "Minor sixth"},
                ],
                correct_answer=2,
                notes=f"Notes for {study_area.name} question {i}",
            )
            for i in range(count)
        ]
        db_session.add_all(questions)
        db_session.commit()
        for question in questions:
            db_session.refresh(question)
        return questions

    return _add


@pytest.fixture
def question_pool(topics, add_questions) -> List[Question]:
    """Fifteen questions in the first topic, three at each difficulty."""
    return add_questions(topics[0], 15)
