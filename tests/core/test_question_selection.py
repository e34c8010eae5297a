"""
Tests for answer-history exclusion and question selection for new tests.
"""
import random
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from theory_backend.core.datetime_utils import utc_now
from theory_backend.core.exceptions import NoQuestionsAvailable, PersistenceFailure
from theory_backend.core.test_composition import (
    build_exclusion_set,
    select_practice_questions,
)
from theory_backend.models import Extract, UserQuestion


@pytest.fixture
def answer_history(db_session, test_user):
    """Record a past answer for test_user at a given age."""

    def _answer(question, correct, days_ago=1):
        answered_at = utc_now() - timedelta(days=days_ago)
        db_session.add(
            UserQuestion(
                user_id=test_user.id,
                question_id=question.id,
                test_id=None,
                selected_answer=question.correct_answer if correct else 1,
                correct=correct,
                question_type=question.question_type,
                created_at=answered_at,
                updated_at=answered_at,
            )
        )
        db_session.commit()

    return _answer


class TestBuildExclusionSet:
    def test_no_history_excludes_nothing(self, db_session, test_user, question_pool):
        assert build_exclusion_set(db_session, test_user.id, False, False) == set()

    def test_recent_correct_and_incorrect_excluded(
        self, db_session, test_user, question_pool, answer_history
    ):
        answer_history(question_pool[0], correct=True)
        answer_history(question_pool[1], correct=False)

        excluded = build_exclusion_set(db_session, test_user.id, False, False)
        assert excluded == {question_pool[0].id, question_pool[1].id}

    def test_include_correct_keeps_correct_answers(
        self, db_session, test_user, question_pool, answer_history
    ):
        answer_history(question_pool[0], correct=True)
        answer_history(question_pool[1], correct=False)

        excluded = build_exclusion_set(db_session, test_user.id, True, False)
        assert excluded == {question_pool[1].id}

    def test_include_incorrect_keeps_incorrect_answers(
        self, db_session, test_user, question_pool, answer_history
    ):
        answer_history(question_pool[0], correct=True)
        answer_history(question_pool[1], correct=False)

        excluded = build_exclusion_set(db_session, test_user.id, False, True)
        assert excluded == {question_pool[0].id}

    def test_both_flags_exclude_nothing(
        self, db_session, test_user, question_pool, answer_history
    ):
        answer_history(question_pool[0], correct=True)
        answer_history(question_pool[1], correct=False, days_ago=400)

        assert build_exclusion_set(db_session, test_user.id, True, True) == set()

    def test_correct_answers_outside_window_return(
        self, db_session, test_user, question_pool, answer_history
    ):
        """A correct answer older than the 3-month window no longer excludes."""
        answer_history(question_pool[0], correct=True, days_ago=100)
        answer_history(question_pool[1], correct=True, days_ago=10)

        excluded = build_exclusion_set(
            db_session, test_user.id, False, False, window_days=90
        )
        assert excluded == {question_pool[1].id}

    def test_incorrect_answers_excluded_for_all_time(
        self, db_session, test_user, question_pool, answer_history
    ):
        answer_history(question_pool[0], correct=False, days_ago=400)

        excluded = build_exclusion_set(
            db_session,
            test_user.id,
            False,
            False,
            window_days=90,
            exclude_all_time_incorrect=True,
        )
        assert excluded == {question_pool[0].id}

    def test_incorrect_answers_windowed_when_all_time_rule_off(
        self, db_session, test_user, question_pool, answer_history
    ):
        answer_history(question_pool[0], correct=False, days_ago=400)
        answer_history(question_pool[1], correct=False, days_ago=5)

        excluded = build_exclusion_set(
            db_session,
            test_user.id,
            False,
            False,
            window_days=90,
            exclude_all_time_incorrect=False,
        )
        assert excluded == {question_pool[1].id}

    def test_other_users_history_ignored(
        self, db_session, test_user, other_user, question_pool
    ):
        db_session.add(
            UserQuestion(
                user_id=other_user.id,
                question_id=question_pool[0].id,
                selected_answer=1,
                correct=False,
                question_type=question_pool[0].question_type,
            )
        )
        db_session.commit()

        assert build_exclusion_set(db_session, test_user.id, False, False) == set()


class TestSelectPracticeQuestions:
    def test_selects_requested_count_without_duplicates(
        self, db_session, test_user, topics, question_pool
    ):
        selected = select_practice_questions(
            db_session, test_user.id, [topics[0].id], [1, 2, 3, 4, 5], 10, False, False
        )

        pool_ids = {q.id for q in question_pool}
        assert len(selected) == 10
        assert len(set(selected)) == 10
        assert set(selected) <= pool_ids

    def test_returns_whole_pool_when_request_exceeds_it(
        self, db_session, test_user, topics, question_pool
    ):
        selected = select_practice_questions(
            db_session, test_user.id, [topics[0].id], [1, 2, 3, 4, 5], 50, False, False
        )
        assert sorted(selected) == sorted(q.id for q in question_pool)

    def test_respects_difficulty_levels(
        self, db_session, test_user, topics, question_pool
    ):
        selected = select_practice_questions(
            db_session, test_user.id, [topics[0].id], [4, 5], 10, False, False
        )

        by_id = {q.id: q for q in question_pool}
        assert len(selected) == 6
        assert all(by_id[qid].difficulty in (4, 5) for qid in selected)

    def test_excludes_previous_incorrect(
        self, db_session, test_user, topics, question_pool, answer_history
    ):
        wrong = question_pool[:5]
        for question in wrong:
            answer_history(question, correct=False)

        selected = select_practice_questions(
            db_session, test_user.id, [topics[0].id], [1, 2, 3, 4, 5], 15, False, False
        )

        assert len(selected) == 10
        assert not set(selected) & {q.id for q in wrong}

    def test_include_incorrect_allows_them_back(
        self, db_session, test_user, topics, question_pool, answer_history
    ):
        for question in question_pool[:5]:
            answer_history(question, correct=False)

        selected = select_practice_questions(
            db_session, test_user.id, [topics[0].id], [1, 2, 3, 4, 5], 15, False, True
        )
        assert len(selected) == 15

    def test_empty_pool_raises(self, db_session, test_user, topics, question_pool):
        with pytest.raises(NoQuestionsAvailable) as exc_info:
            select_practice_questions(
                db_session, test_user.id, [topics[1].id], [1, 2, 3, 4, 5], 10, False, False
            )
        assert exc_info.value.topic_ids == [topics[1].id]

    def test_fully_excluded_pool_raises(
        self, db_session, test_user, topics, add_questions, answer_history
    ):
        questions = add_questions(topics[1], 2)
        for question in questions:
            answer_history(question, correct=True)

        with pytest.raises(NoQuestionsAvailable):
            select_practice_questions(
                db_session, test_user.id, [topics[1].id], [1, 2, 3, 4, 5], 5, False, False
            )

    def test_non_positive_count_rejected(self, db_session, test_user, question_pool):
        with pytest.raises(ValueError):
            select_practice_questions(db_session, test_user.id, [1], [1], 0, False, False)

    def test_seeded_rng_is_reproducible(
        self, db_session, test_user, topics, question_pool
    ):
        args = (db_session, test_user.id, [topics[0].id], [1, 2, 3, 4, 5], 8, False, False)
        first = select_practice_questions(*args, rng=random.Random(42))
        second = select_practice_questions(*args, rng=random.Random(42))
        assert first == second

    def test_avoid_repeated_extracts(self, db_session, test_user, topics, add_questions):
        shared = Extract(title="Mozart K. 545", audio_url="/audio/k545.mp3")
        db_session.add(shared)
        db_session.commit()
        same_extract = add_questions(topics[0], 3, extract=shared)
        standalone = add_questions(topics[0], 2)

        selected = select_practice_questions(
            db_session,
            test_user.id,
            [topics[0].id],
            [1, 2, 3, 4, 5],
            5,
            False,
            False,
            avoid_repeated_extracts=True,
        )

        assert len(selected) == 3
        assert len(set(selected) & {q.id for q in same_extract}) == 1
        assert {q.id for q in standalone} <= set(selected)

    def test_repeated_extracts_allowed_by_default(
        self, db_session, test_user, topics, add_questions
    ):
        shared = Extract(title="Mozart K. 545", audio_url="/audio/k545.mp3")
        db_session.add(shared)
        db_session.commit()
        add_questions(topics[0], 3, extract=shared)

        selected = select_practice_questions(
            db_session,
            test_user.id,
            [topics[0].id],
            [1, 2, 3, 4, 5],
            5,
            False,
            False,
            avoid_repeated_extracts=False,
        )
        assert len(selected) == 3

    def test_query_failure_becomes_persistence_failure(self):
        db = MagicMock(spec=Session)
        db.execute.side_effect = OperationalError("SELECT", {}, Exception("db down"))

        with pytest.raises(PersistenceFailure) as exc_info:
            select_practice_questions(db, 1, [1], [1, 2, 3], 5, False, False)

        assert exc_info.value.operation_name == "select questions"
        db.rollback.assert_called_once()
