"""
Tests for test results summaries.
"""
from datetime import timedelta

from theory_backend.core.datetime_utils import utc_now
from theory_backend.core.test_progression import (
    TestRequest,
    create_test,
    finish_test,
    submit_answer,
)
from theory_backend.core.test_results import build_test_summary


def _request(topic_ids, num_questions):
    return TestRequest(
        topic_ids=frozenset(topic_ids),
        difficulty_levels=frozenset({1, 2, 3, 4, 5}),
        num_questions=num_questions,
    )


class TestBuildTestSummary:
    def test_counts_and_percentage(
        self, db_session, test_user, topics, question_pool
    ):
        start = utc_now() - timedelta(minutes=5)
        test = create_test(
            db_session, test_user, _request([topics[0].id], 8), now=start
        )
        ids = test.question_ids
        submit_answer(db_session, test, test_user, ids[0], 2)
        submit_answer(db_session, test, test_user, ids[1], 2)
        submit_answer(db_session, test, test_user, ids[2], 3)
        finish_test(db_session, test, now=start + timedelta(seconds=150))

        summary = build_test_summary(db_session, test)

        assert summary.complete is True
        assert summary.total_questions == 8
        assert summary.answered == 3
        assert summary.correct == 2
        assert summary.incorrect == 1
        assert summary.unanswered == 5
        assert summary.percentage_score == 25
        assert summary.time_taken_seconds == 150
        assert summary.topics == ["Intervals"]
        assert summary.test_type == "custom"

    def test_review_follows_question_order(
        self, db_session, test_user, topics, question_pool
    ):
        test = create_test(db_session, test_user, _request([topics[0].id], 5))
        submit_answer(db_session, test, test_user, test.question_ids[0], 1)
        finish_test(db_session, test)

        review = build_test_summary(db_session, test).review

        assert [item.question_id for item in review] == test.question_ids
        assert [item.position for item in review] == list(range(5))
        assert review[0].selected_answer == 1
        assert review[0].correct is False
        assert review[0].correct_answer == 2
        assert review[0].notes.startswith("Notes for")
        assert review[0].study_area == "Intervals"
        assert review[1].selected_answer is None
        assert review[1].correct is None

    def test_incomplete_test_hides_answers(
        self, db_session, test_user, topics, question_pool
    ):
        test = create_test(db_session, test_user, _request([topics[0].id], 5))
        submit_answer(db_session, test, test_user, test.question_ids[0], 2)

        summary = build_test_summary(db_session, test)

        assert summary.complete is False
        assert summary.time_taken_seconds is None
        assert all(item.correct_answer is None for item in summary.review)
        assert all(item.notes is None for item in summary.review)
        assert summary.review[0].correct is True

    def test_topics_listed_by_position(
        self, db_session, test_user, topics, add_questions
    ):
        add_questions(topics[0], 3)
        add_questions(topics[1], 3)
        test = create_test(
            db_session, test_user, _request([topics[1].id, topics[0].id], 5)
        )

        assert build_test_summary(db_session, test).topics == ["Intervals", "Cadences"]
