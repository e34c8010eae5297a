"""
Database models for the theory practice backend.
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Text,
    Enum,
    UniqueConstraint,
    Index,
    CheckConstraint,
    JSON,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from typing import List, Optional
import enum

from .base import Base

# Delimiters used by the serialized Test columns
ID_LIST_DELIMITER = ","
DIFFICULTY_DELIMITER = "|"

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5
MAX_OPTIONS = 5
GRADE_BUCKETS = 7


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def split_ids(value: Optional[str], delimiter: str = ID_LIST_DELIMITER) -> List[int]:
    """Parse a delimited string of integers, ignoring blanks."""
    if not value:
        return []
    return [int(part) for part in value.split(delimiter) if part.strip()]


def join_ids(values, delimiter: str = ID_LIST_DELIMITER) -> str:
    """Serialize integers into a delimited string."""
    return delimiter.join(str(v) for v in values)


class UserType(str, enum.Enum):
    """Account type enumeration."""

    INDIVIDUAL = "ind"
    STUDENT = "stu"
    ORGANISATION = "org"
    ADMIN = "admin"


class QuestionType(str, enum.Enum):
    """Question type enumeration."""

    TMCQ = "TMCQ"  # Text multiple choice
    GMCQ = "GMCQ"  # Graphical multiple choice
    DDI = "DDI"  # Drag and drop


class TestType(str, enum.Enum):
    """How a test was created."""

    CUSTOM = "custom"
    PRACTICE = "practice"
    ASSIGNMENT = "assignment"


class User(Base):
    """Learner or teacher account with aggregate answer counters."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    display_name = Column(String(100))
    user_type = Column(Enum(UserType), nullable=False, default=UserType.INDIVIDUAL)
    # Org that manages this student account (NULL for everyone else)
    organisation_id = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    expiry = Column(DateTime(timezone=True))  # Subscription end for ind/stu users
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    # Aggregate counters, only ever changed with relative increments
    tests_count = Column(Integer, default=0, nullable=False)
    questions_total = Column(Integer, default=0, nullable=False)
    questions_correct = Column(Integer, default=0, nullable=False)
    questions_incorrect = Column(Integer, default=0, nullable=False)
    progress_total = Column(Integer, default=0, nullable=False)
    progress_grade1 = Column(Integer, default=0, nullable=False)
    progress_grade2 = Column(Integer, default=0, nullable=False)
    progress_grade3 = Column(Integer, default=0, nullable=False)
    progress_grade4 = Column(Integer, default=0, nullable=False)
    progress_grade5 = Column(Integer, default=0, nullable=False)
    progress_grade6 = Column(Integer, default=0, nullable=False)
    progress_grade7 = Column(Integer, default=0, nullable=False)

    # Relationships
    tests = relationship("Test", back_populates="user", cascade="all, delete-orphan")
    user_questions = relationship(
        "UserQuestion", back_populates="user", cascade="all, delete-orphan"
    )
    user_assignments = relationship(
        "UserAssignment", back_populates="user", cascade="all, delete-orphan"
    )

    def grade_progress(self) -> dict[int, int]:
        """Correct-answer counts keyed by grade (1-7)."""
        return {
            grade: getattr(self, f"progress_grade{grade}") or 0
            for grade in range(1, GRADE_BUCKETS + 1)
        }


class StudyArea(Base):
    """A syllabus topic grouping related questions."""

    __tablename__ = "study_areas"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    position = Column(Integer, default=0, nullable=False)
    description = Column(Text)
    grade = Column(Integer, nullable=True)  # Exam grade the topic belongs to (1-7)

    questions = relationship("Question", back_populates="study_area")

    __table_args__ = (
        CheckConstraint(
            f"grade IS NULL OR (grade >= 1 AND grade <= {GRADE_BUCKETS})",
            name="ck_study_areas_grade_range",
        ),
    )


class Extract(Base):
    """An audio clip used by listening questions."""

    __tablename__ = "extracts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255))
    audio_url = Column(String(500), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    questions = relationship("Question", back_populates="extract")


class Question(Base):
    """A multiple choice or drag-and-drop question within one study area."""

    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    study_area_id = Column(
        Integer, ForeignKey("study_areas.id", ondelete="CASCADE"), nullable=False
    )
    extract_id = Column(
        Integer, ForeignKey("extracts.id", ondelete="SET NULL"), nullable=True
    )
    question_type = Column(Enum(QuestionType), nullable=False)
    difficulty = Column(Integer, nullable=False)
    question_text = Column(Text)
    # JSON list of {"id": 1-5, "text": str | None, "image_url": str | None}
    options = Column(JSON)
    correct_answer = Column(Integer, nullable=False)  # Option id of the right answer
    notes = Column(Text)  # Study notes shown during review
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    study_area = relationship("StudyArea", back_populates="questions")
    extract = relationship("Extract", back_populates="questions")
    user_questions = relationship("UserQuestion", back_populates="question")

    __table_args__ = (
        Index("ix_questions_area_difficulty", "study_area_id", "difficulty"),
        CheckConstraint(
            f"difficulty >= {MIN_DIFFICULTY} AND difficulty <= {MAX_DIFFICULTY}",
            name="ck_questions_difficulty_range",
        ),
        CheckConstraint(
            f"correct_answer >= 1 AND correct_answer <= {MAX_OPTIONS}",
            name="ck_questions_correct_answer_range",
        ),
    )


class Test(Base):
    """One practice, custom or assignment attempt for one user."""

    __tablename__ = "tests"
    __test__ = False  # Keep pytest from collecting this model

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    assignment_id = Column(
        Integer, ForeignKey("assignments.id", ondelete="SET NULL"), nullable=True
    )
    test_type = Column(Enum(TestType), nullable=False, default=TestType.CUSTOM)

    # Generation parameters
    include_previous_correct = Column(Boolean, default=False, nullable=False)
    include_previous_incorrect = Column(Boolean, default=False, nullable=False)
    topics = Column(Text)  # Comma separated study area IDs
    difficulties = Column(String(20))  # Pipe separated difficulty levels
    difficulty = Column(String(20))  # Preset label when one was chosen
    num_questions_requested = Column(Integer, nullable=False)
    num_questions = Column(Integer, nullable=False)
    time_limit_requested = Column(Boolean, default=False, nullable=False)
    time_limit = Column(Integer)  # Seconds

    # Fixed at generation time
    questions = Column(Text, nullable=False)  # Comma separated question IDs, in order

    # Session state
    current_question = Column(Integer, default=0, nullable=False)
    start_time = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    end_time = Column(DateTime(timezone=True))
    marks = Column(Integer, default=0, nullable=False)
    marks_available = Column(Integer, default=0, nullable=False)
    progress = Column(Integer, default=0, nullable=False)  # Percentage answered
    complete = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    user = relationship("User", back_populates="tests")
    assignment = relationship("Assignment", back_populates="tests")
    user_questions = relationship(
        "UserQuestion", back_populates="test", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_tests_user_complete", "user_id", "complete"),
        CheckConstraint(
            "current_question >= 0 AND current_question <= num_questions",
            name="ck_tests_cursor_range",
        ),
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_tests_progress"),
    )

    @property
    def question_ids(self) -> List[int]:
        return split_ids(self.questions)

    @property
    def topic_ids(self) -> List[int]:
        return split_ids(self.topics)

    @property
    def difficulty_levels(self) -> List[int]:
        return split_ids(self.difficulties, DIFFICULTY_DELIMITER)


class UserQuestion(Base):
    """One recorded answer. At most one row per (user, question, test)."""

    __tablename__ = "user_questions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    question_id = Column(
        Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=True
    )  # NULL for single-question topic practice
    selected_answer = Column(Integer, nullable=False)
    correct = Column(Boolean, nullable=False)
    question_type = Column(Enum(QuestionType), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now, nullable=False
    )

    user = relationship("User", back_populates="user_questions")
    question = relationship("Question", back_populates="user_questions")
    test = relationship("Test", back_populates="user_questions")

    __table_args__ = (
        UniqueConstraint(
            "user_id", "question_id", "test_id", name="uq_user_question_test"
        ),
        Index("ix_user_questions_user_created", "user_id", "created_at"),
        Index("ix_user_questions_test_id", "test_id"),
    )


class Assignment(Base):
    """A test configuration set by an organisation for its students."""

    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )  # Creator
    savename = Column(String(255), nullable=False)
    deadline = Column(DateTime(timezone=True))
    topics = Column(Text, nullable=False)  # Comma separated study area IDs
    num_questions = Column(Integer, nullable=False)
    min_difficulty = Column(Integer)
    max_difficulty = Column(Integer)
    time_limit_requested = Column(Boolean, default=False, nullable=False)
    time_limit = Column(Integer)  # Seconds
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    user_assignments = relationship(
        "UserAssignment", back_populates="assignment", cascade="all, delete-orphan"
    )
    tests = relationship("Test", back_populates="assignment")

    @property
    def topic_ids(self) -> List[int]:
        return split_ids(self.topics)

    @property
    def student_count(self) -> int:
        return len(self.user_assignments)

    def difficulty_levels(self) -> List[int]:
        """Levels between the optional bounds, inclusive."""
        low = self.min_difficulty or MIN_DIFFICULTY
        high = self.max_difficulty or MAX_DIFFICULTY
        return list(range(low, high + 1))


class UserAssignment(Base):
    """Links a student to an assignment and, once started, to its test."""

    __tablename__ = "user_assignments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    assignment_id = Column(
        Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False
    )
    test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="SET NULL"), nullable=True, unique=True
    )
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    user = relationship("User", back_populates="user_assignments")
    assignment = relationship("Assignment", back_populates="user_assignments")
    test = relationship("Test")

    __table_args__ = (
        UniqueConstraint("user_id", "assignment_id", name="uq_user_assignment"),
    )
