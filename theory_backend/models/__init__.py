"""
Models package for the theory practice backend.
"""
from .base import Base, engine, SessionLocal, get_db
from .models import (
    User,
    StudyArea,
    Extract,
    Question,
    Test,
    UserQuestion,
    Assignment,
    UserAssignment,
    UserType,
    QuestionType,
    TestType,
)

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "User",
    "StudyArea",
    "Extract",
    "Question",
    "Test",
    "UserQuestion",
    "Assignment",
    "UserAssignment",
    "UserType",
    "QuestionType",
    "TestType",
]
