"""initial schema: users, topics, questions, tests, answers and assignments

Revision ID: 3c1f0a9e5b27
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1f0a9e5b27"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_type = sa.Enum("INDIVIDUAL", "STUDENT", "ORGANISATION", "ADMIN", name="usertype")
question_type = sa.Enum("TMCQ", "GMCQ", "DDI", name="questiontype")
test_type = sa.Enum("CUSTOM", "PRACTICE", "ASSIGNMENT", name="testtype")


def upgrade() -> None:
    """Create every table used by the practice engine."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=100), nullable=True),
        sa.Column("user_type", user_type, nullable=False),
        sa.Column("organisation_id", sa.Integer(), nullable=True),
        sa.Column("expiry", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("tests_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("questions_total", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("questions_correct", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "questions_incorrect", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("progress_total", sa.Integer(), nullable=False, server_default="0"),
        *[
            sa.Column(
                f"progress_grade{grade}",
                sa.Integer(),
                nullable=False,
                server_default="0",
            )
            for grade in range(1, 8)
        ],
        sa.ForeignKeyConstraint(
            ["organisation_id"], ["users.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_organisation_id", "users", ["organisation_id"])

    op.create_table(
        "study_areas",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("grade", sa.Integer(), nullable=True),
        sa.CheckConstraint(
            "grade IS NULL OR (grade >= 1 AND grade <= 7)",
            name="ck_study_areas_grade_range",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_study_areas_id", "study_areas", ["id"])

    op.create_table(
        "extracts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("audio_url", sa.String(length=500), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_extracts_id", "extracts", ["id"])

    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("study_area_id", sa.Integer(), nullable=False),
        sa.Column("extract_id", sa.Integer(), nullable=True),
        sa.Column("question_type", question_type, nullable=False),
        sa.Column("difficulty", sa.Integer(), nullable=False),
        sa.Column("question_text", sa.Text(), nullable=True),
        sa.Column("options", sa.JSON(), nullable=True),
        sa.Column("correct_answer", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "difficulty >= 1 AND difficulty <= 5",
            name="ck_questions_difficulty_range",
        ),
        sa.CheckConstraint(
            "correct_answer >= 1 AND correct_answer <= 5",
            name="ck_questions_correct_answer_range",
        ),
        sa.ForeignKeyConstraint(
            ["study_area_id"], ["study_areas.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["extract_id"], ["extracts.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_questions_id", "questions", ["id"])
    # Candidate pool lookups filter on topic and difficulty together
    op.create_index(
        "ix_questions_area_difficulty", "questions", ["study_area_id", "difficulty"]
    )

    op.create_table(
        "assignments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("savename", sa.String(length=255), nullable=False),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("topics", sa.Text(), nullable=False),
        sa.Column("num_questions", sa.Integer(), nullable=False),
        sa.Column("min_difficulty", sa.Integer(), nullable=True),
        sa.Column("max_difficulty", sa.Integer(), nullable=True),
        sa.Column(
            "time_limit_requested",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("time_limit", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_assignments_id", "assignments", ["id"])
    op.create_index("ix_assignments_user_id", "assignments", ["user_id"])

    op.create_table(
        "tests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("assignment_id", sa.Integer(), nullable=True),
        sa.Column("test_type", test_type, nullable=False),
        sa.Column(
            "include_previous_correct",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column(
            "include_previous_incorrect",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("topics", sa.Text(), nullable=True),
        sa.Column("difficulties", sa.String(length=20), nullable=True),
        sa.Column("difficulty", sa.String(length=20), nullable=True),
        sa.Column("num_questions_requested", sa.Integer(), nullable=False),
        sa.Column("num_questions", sa.Integer(), nullable=False),
        sa.Column(
            "time_limit_requested",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("time_limit", sa.Integer(), nullable=True),
        sa.Column("questions", sa.Text(), nullable=False),
        sa.Column("current_question", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("marks", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("marks_available", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("complete", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "current_question >= 0 AND current_question <= num_questions",
            name="ck_tests_cursor_range",
        ),
        sa.CheckConstraint(
            "progress >= 0 AND progress <= 100", name="ck_tests_progress"
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["assignment_id"], ["assignments.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tests_id", "tests", ["id"])
    op.create_index("ix_tests_user_id", "tests", ["user_id"])
    op.create_index("ix_tests_complete", "tests", ["complete"])
    op.create_index("ix_tests_user_complete", "tests", ["user_id", "complete"])

    op.create_table(
        "user_questions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("test_id", sa.Integer(), nullable=True),
        sa.Column("selected_answer", sa.Integer(), nullable=False),
        sa.Column("correct", sa.Boolean(), nullable=False),
        sa.Column("question_type", question_type, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["question_id"], ["questions.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["test_id"], ["tests.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "question_id", "test_id", name="uq_user_question_test"
        ),
    )
    op.create_index("ix_user_questions_id", "user_questions", ["id"])
    # History window lookups
    op.create_index(
        "ix_user_questions_user_created", "user_questions", ["user_id", "created_at"]
    )
    op.create_index("ix_user_questions_test_id", "user_questions", ["test_id"])

    op.create_table(
        "user_assignments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("assignment_id", sa.Integer(), nullable=False),
        sa.Column("test_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["assignment_id"], ["assignments.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["test_id"], ["tests.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "assignment_id", name="uq_user_assignment"),
        sa.UniqueConstraint("test_id"),
    )
    op.create_index("ix_user_assignments_id", "user_assignments", ["id"])
    op.create_index("ix_user_assignments_user_id", "user_assignments", ["user_id"])


def downgrade() -> None:
    """Drop every table, then the enum types."""
    op.drop_table("user_assignments")
    op.drop_table("user_questions")
    op.drop_table("tests")
    op.drop_table("assignments")
    op.drop_table("questions")
    op.drop_table("extracts")
    op.drop_table("study_areas")
    op.drop_table("users")

    bind = op.get_bind()
    test_type.drop(bind, checkfirst=True)
    question_type.drop(bind, checkfirst=True)
    user_type.drop(bind, checkfirst=True)
