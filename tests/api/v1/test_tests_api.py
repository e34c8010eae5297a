"""
Tests for the custom test endpoints.
"""
from datetime import timedelta
from unittest.mock import patch

from theory_backend.core.datetime_utils import utc_now
from theory_backend.core.error_responses import ErrorMessages
from theory_backend.models import Test


def _create_test(client, headers, topic_id, **overrides):
    body = {"topics": [topic_id], "num_questions": 10}
    body.update(overrides)
    return client.post("/v1/tests", json=body, headers=headers)


class TestCreateTest:
    def test_create_returns_first_question(
        self, client, auth_headers, topics, question_pool
    ):
        response = _create_test(client, auth_headers, topics[0].id)

        assert response.status_code == 201
        data = response.json()
        assert data["test"]["num_questions"] == 10
        assert data["test"]["test_type"] == "custom"
        assert data["test"]["current_question"] == 0
        assert data["question_index"] == 0
        assert data["question"]["id"] in {q.id for q in question_pool}
        assert "correct_answer" not in data["question"]
        assert data["question"]["options"][1] == {
            "id": 2,
            "text": "Perfect fifth",
            "image_url": None,
        }
        assert data["answers"] == {}
        assert data["time_remaining"] is None

    def test_difficulty_preset(self, client, auth_headers, topics, question_pool):
        response = _create_test(
            client, auth_headers, topics[0].id, difficulty="easy", num_questions=20
        )

        assert response.status_code == 201
        test = response.json()["test"]
        assert test["difficulty"] == "easy"
        assert test["difficulty_levels"] == [1, 2]
        assert test["num_questions"] == 6
        assert test["num_questions_requested"] == 20

    def test_timed_test(self, client, auth_headers, topics, question_pool):
        response = _create_test(
            client, auth_headers, topics[0].id, time_limit_minutes=10
        )

        data = response.json()
        assert data["test"]["time_limit"] == 600
        assert 590 <= data["time_remaining"] <= 600

    def test_no_questions_available(self, client, auth_headers, topics, question_pool):
        response = _create_test(client, auth_headers, topics[1].id)

        assert response.status_code == 404
        assert response.json()["detail"] == ErrorMessages.NO_QUESTIONS_AVAILABLE

    def test_question_count_validated(self, client, auth_headers, topics):
        response = _create_test(client, auth_headers, topics[0].id, num_questions=2)
        assert response.status_code == 422

    def test_topics_required(self, client, auth_headers):
        response = client.post(
            "/v1/tests", json={"topics": [], "num_questions": 10}, headers=auth_headers
        )
        assert response.status_code == 422

    def test_subscription_required(
        self, client, expired_user, headers_for, topics, question_pool
    ):
        response = _create_test(client, headers_for(expired_user), topics[0].id)

        assert response.status_code == 403
        assert response.json()["detail"] == ErrorMessages.SUBSCRIPTION_REQUIRED

    def test_authentication_required(self, client, topics):
        response = client.post("/v1/tests", json={"topics": [1], "num_questions": 10})
        assert response.status_code in (401, 403)

    def test_invalid_token(self, client, topics):
        response = client.post(
            "/v1/tests",
            json={"topics": [1], "num_questions": 10},
            headers={"Authorization": "Bearer not-a-token"},
        )
        assert response.status_code == 401


class TestAnswering:
    def test_answer_advances(self, client, auth_headers, topics, question_pool):
        created = _create_test(client, auth_headers, topics[0].id).json()
        test_id = created["test"]["id"]
        first_id = created["question"]["id"]

        response = client.post(
            f"/v1/tests/{test_id}/answer",
            json={"selected_answer": 2},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["correct"] is True
        assert data["question_id"] == first_id
        assert data["view"]["question_index"] == 1
        assert data["view"]["test"]["progress"] == 10
        assert data["view"]["answers"] == {str(first_id): 2}

    def test_complete_run_then_read_only(
        self, client, auth_headers, topics, add_questions
    ):
        add_questions(topics[1], 5)
        test_id = _create_test(
            client, auth_headers, topics[1].id, num_questions=5
        ).json()["test"]["id"]

        for _ in range(5):
            response = client.post(
                f"/v1/tests/{test_id}/answer",
                json={"selected_answer": 2},
                headers=auth_headers,
            )
        final = response.json()["view"]
        assert final["test"]["complete"] is True
        assert final["test"]["progress"] == 100
        assert final["test"]["marks"] == 5
        assert final["question"] is None

        response = client.post(
            f"/v1/tests/{test_id}/answer",
            json={"selected_answer": 2},
            headers=auth_headers,
        )
        assert response.status_code == 409
        assert response.json()["detail"] == ErrorMessages.TEST_ALREADY_COMPLETE

    def test_answer_out_of_range_rejected(
        self, client, auth_headers, topics, question_pool
    ):
        test_id = _create_test(client, auth_headers, topics[0].id).json()["test"]["id"]
        response = client.post(
            f"/v1/tests/{test_id}/answer",
            json={"selected_answer": 6},
            headers=auth_headers,
        )
        assert response.status_code == 422

    def test_answer_question_not_in_test(
        self, client, auth_headers, topics, question_pool, add_questions
    ):
        outsider = add_questions(topics[1], 1)[0]
        test_id = _create_test(client, auth_headers, topics[0].id).json()["test"]["id"]

        response = client.post(
            f"/v1/tests/{test_id}/answer",
            json={"selected_answer": 2, "question_id": outsider.id},
            headers=auth_headers,
        )
        assert response.status_code == 409

    def test_previous_and_view_by_index(
        self, client, auth_headers, topics, question_pool
    ):
        created = _create_test(client, auth_headers, topics[0].id).json()
        test_id = created["test"]["id"]
        client.post(
            f"/v1/tests/{test_id}/answer",
            json={"selected_answer": 1},
            headers=auth_headers,
        )

        response = client.post(f"/v1/tests/{test_id}/previous", headers=auth_headers)
        assert response.json()["question_index"] == 0
        assert response.json()["question"]["id"] == created["question"]["id"]

        response = client.get(f"/v1/tests/{test_id}?index=4", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["question_index"] == 4

        response = client.get(f"/v1/tests/{test_id}?index=10", headers=auth_headers)
        assert response.status_code == 409


class TestAccess:
    def test_other_users_test_forbidden(
        self, client, auth_headers, other_user, headers_for, topics, question_pool
    ):
        test_id = _create_test(client, auth_headers, topics[0].id).json()["test"]["id"]
        other_headers = headers_for(other_user)

        assert client.get(f"/v1/tests/{test_id}", headers=other_headers).status_code == 403
        response = client.post(
            f"/v1/tests/{test_id}/answer",
            json={"selected_answer": 2},
            headers=other_headers,
        )
        assert response.status_code == 403
        assert response.json()["detail"] == ErrorMessages.TEST_ACCESS_DENIED

    def test_missing_test(self, client, auth_headers):
        response = client.get("/v1/tests/9999", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == ErrorMessages.TEST_NOT_FOUND

    def test_list_tests(self, client, auth_headers, topics, question_pool):
        first = _create_test(client, auth_headers, topics[0].id).json()["test"]["id"]
        second = _create_test(client, auth_headers, topics[0].id, include_previous_correct=True)
        second_id = second.json()["test"]["id"]

        response = client.get("/v1/tests", headers=auth_headers)
        assert [t["id"] for t in response.json()] == [second_id, first]


class TestExpiryAndResults:
    def test_overdue_test_completes_on_read(
        self, client, auth_headers, db_session, topics, question_pool
    ):
        test_id = _create_test(
            client, auth_headers, topics[0].id, time_limit_minutes=10
        ).json()["test"]["id"]

        test = db_session.get(Test, test_id)
        test.start_time = utc_now() - timedelta(seconds=700)
        db_session.commit()

        response = client.get(f"/v1/tests/{test_id}", headers=auth_headers)
        data = response.json()
        assert response.status_code == 200
        assert data["test"]["complete"] is True
        assert data["question"] is None

    def test_finish_returns_results(self, client, auth_headers, topics, question_pool):
        test_id = _create_test(client, auth_headers, topics[0].id).json()["test"]["id"]
        client.post(
            f"/v1/tests/{test_id}/answer",
            json={"selected_answer": 2},
            headers=auth_headers,
        )

        response = client.post(f"/v1/tests/{test_id}/finish", headers=auth_headers)

        assert response.status_code == 200
        summary = response.json()
        assert summary["complete"] is True
        assert summary["answered"] == 1
        assert summary["correct"] == 1
        assert summary["unanswered"] == 9
        assert summary["percentage_score"] == 10
        assert summary["review"][0]["correct_answer"] == 2

        again = client.get(f"/v1/tests/{test_id}/results", headers=auth_headers)
        assert again.json()["percentage_score"] == 10

    def test_results_of_unfinished_test_hide_answers(
        self, client, auth_headers, topics, question_pool
    ):
        test_id = _create_test(client, auth_headers, topics[0].id).json()["test"]["id"]

        response = client.get(f"/v1/tests/{test_id}/results", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["complete"] is False
        assert all(item["correct_answer"] is None for item in response.json()["review"])

    def test_expiry_with_patched_clock(
        self, client, auth_headers, topics, question_pool
    ):
        test_id = _create_test(
            client, auth_headers, topics[0].id, time_limit_minutes=1
        ).json()["test"]["id"]

        later = utc_now() + timedelta(minutes=5)
        with patch("theory_backend.core.test_progression.utc_now", return_value=later):
            response = client.post(
                f"/v1/tests/{test_id}/answer",
                json={"selected_answer": 2},
                headers=auth_headers,
            )

        assert response.status_code == 409
        results = client.get(f"/v1/tests/{test_id}/results", headers=auth_headers)
        assert results.json()["complete"] is True
        assert results.json()["time_taken_seconds"] >= 240

    def test_overdue_test_completes_in_listing(
        self, client, auth_headers, db_session, topics, question_pool
    ):
        test_id = _create_test(
            client, auth_headers, topics[0].id, time_limit_minutes=10
        ).json()["test"]["id"]

        test = db_session.get(Test, test_id)
        test.start_time = utc_now() - timedelta(seconds=700)
        db_session.commit()

        response = client.get("/v1/tests", headers=auth_headers)

        assert response.status_code == 200
        listed = response.json()[0]
        assert listed["id"] == test_id
        assert listed["complete"] is True
        assert listed["end_time"] is not None
