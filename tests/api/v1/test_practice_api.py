"""
Tests for the practice endpoints and the session cookie pointer.
"""
from theory_backend.core.config import settings
from theory_backend.core.error_responses import ErrorMessages


def _start(client, headers, topic_id, **overrides):
    body = {"topics": [topic_id], "num_questions": 5}
    body.update(overrides)
    return client.post("/v1/practice/start", json=body, headers=headers)


class TestPracticeStart:
    def test_start_sets_session_cookie(
        self, client, auth_headers, topics, question_pool
    ):
        response = _start(client, auth_headers, topics[0].id)

        assert response.status_code == 200
        data = response.json()
        assert data["active"] is True
        assert data["view"]["test"]["test_type"] == "practice"
        assert data["view"]["test"]["num_questions"] == 5
        assert settings.PRACTICE_SESSION_COOKIE in client.cookies

        current = client.get("/v1/practice/current", headers=auth_headers)
        assert current.status_code == 200
        assert current.json()["view"]["test"]["id"] == data["view"]["test"]["id"]

    def test_timed_practice(self, client, auth_headers, topics, question_pool):
        data = _start(client, auth_headers, topics[0].id, timed=True).json()
        expected = 5 * settings.PRACTICE_SECONDS_PER_QUESTION
        assert data["view"]["test"]["time_limit"] == expected

    def test_practice_size_must_be_offered(self, client, auth_headers, topics):
        response = _start(client, auth_headers, topics[0].id, num_questions=7)
        assert response.status_code == 422

    def test_time_limit_requires_timed(self, client, auth_headers, topics):
        response = _start(client, auth_headers, topics[0].id, time_limit_minutes=5)
        assert response.status_code == 422

    def test_repeat_previous_controls_history(
        self, client, auth_headers, topics, add_questions
    ):
        questions = add_questions(topics[1], 5)
        for question in questions:
            client.post(
                f"/v1/topics/questions/{question.id}/answer",
                json={"selected_answer": 1},
                headers=auth_headers,
            )

        blocked = _start(client, auth_headers, topics[1].id)
        assert blocked.status_code == 404

        allowed = _start(
            client, auth_headers, topics[1].id, repeat_previous="incorrect"
        )
        assert allowed.status_code == 200
        assert allowed.json()["view"]["test"]["num_questions"] == 5


class TestPracticeFlow:
    def test_answer_through_to_completion(
        self, client, auth_headers, topics, question_pool
    ):
        _start(client, auth_headers, topics[0].id)

        for position in range(5):
            response = client.post(
                "/v1/practice/answer", json={"selected_answer": 2}, headers=auth_headers
            )
            assert response.status_code == 200
            assert response.json()["correct"] is True

        final = response.json()
        assert final["active"] is False
        assert final["view"]["test"]["complete"] is True
        assert final["view"]["test"]["progress"] == 100

        response = client.get("/v1/practice/current", headers=auth_headers)
        assert response.status_code == 409
        assert response.json()["detail"] == ErrorMessages.NO_ACTIVE_TEST

    def test_previous(self, client, auth_headers, topics, question_pool):
        started = _start(client, auth_headers, topics[0].id).json()
        client.post(
            "/v1/practice/answer", json={"selected_answer": 3}, headers=auth_headers
        )

        response = client.post("/v1/practice/previous", headers=auth_headers)

        view = response.json()["view"]
        assert view["question_index"] == 0
        assert view["question"]["id"] == started["view"]["question"]["id"]
        assert view["answers"] == {str(started["view"]["question"]["id"]): 3}

    def test_finish_clears_pointer_and_results_available(
        self, client, auth_headers, topics, question_pool
    ):
        test_id = _start(client, auth_headers, topics[0].id).json()["view"]["test"]["id"]
        client.post(
            "/v1/practice/answer", json={"selected_answer": 2}, headers=auth_headers
        )

        response = client.post("/v1/practice/finish", headers=auth_headers)
        assert response.json()["active"] is False

        assert client.get("/v1/practice/current", headers=auth_headers).status_code == 409

        results = client.get(f"/v1/practice/results/{test_id}", headers=auth_headers)
        assert results.status_code == 200
        assert results.json()["answered"] == 1
        assert results.json()["percentage_score"] == 20

    def test_exit_keeps_test(self, client, auth_headers, topics, question_pool):
        test_id = _start(client, auth_headers, topics[0].id).json()["view"]["test"]["id"]

        response = client.post("/v1/practice/exit", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["test_id"] == test_id

        assert client.get("/v1/practice/current", headers=auth_headers).status_code == 409
        test = client.get(f"/v1/tests/{test_id}", headers=auth_headers).json()
        assert test["test"]["complete"] is False


class TestSessionState:
    def test_no_active_test(self, client, auth_headers):
        for method, path in [
            ("get", "/v1/practice/current"),
            ("post", "/v1/practice/previous"),
            ("post", "/v1/practice/finish"),
            ("post", "/v1/practice/exit"),
        ]:
            response = getattr(client, method)(path, headers=auth_headers)
            assert response.status_code == 409, path

    def test_out_of_range_index_clears_pointer(
        self, client, auth_headers, topics, question_pool
    ):
        _start(client, auth_headers, topics[0].id)

        response = client.get("/v1/practice/current?index=99", headers=auth_headers)
        assert response.status_code == 409

        response = client.get("/v1/practice/current", headers=auth_headers)
        assert response.status_code == 409
        assert response.json()["detail"] == ErrorMessages.NO_ACTIVE_TEST

    def test_pointer_is_not_shared_between_users(
        self, client, auth_headers, other_user, headers_for, topics, question_pool
    ):
        _start(client, auth_headers, topics[0].id)

        response = client.get("/v1/practice/current", headers=headers_for(other_user))
        assert response.status_code == 403
