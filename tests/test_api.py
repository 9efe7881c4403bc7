from examhall.services.seed_service import DEFAULT_CATEGORIES, seed_categories, seed_sample_exam


def login(client, username: str = "rahim", password: str = "secret123") -> dict[str, str]:
    response = client.post("/api/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_register_login_and_me(client) -> None:
    response = client.post(
        "/api/auth/register",
        json={"username": "nadia", "email": "nadia@example.com", "password": "secret123"},
    )
    assert response.status_code == 201
    assert response.json()["username"] == "nadia"

    duplicate = client.post(
        "/api/auth/register",
        json={"username": "nadia", "email": "other@example.com", "password": "secret123"},
    )
    assert duplicate.status_code == 400

    headers = login(client, "nadia@example.com")
    me = client.get("/api/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["email"] == "nadia@example.com"


def test_login_rejects_wrong_password(client, user) -> None:
    response = client.post("/api/auth/login", json={"username": "rahim", "password": "nope"})
    assert response.status_code == 401


def test_logout_invalidates_token(client, user) -> None:
    headers = login(client)
    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_refresh_swaps_token(client, user) -> None:
    old_headers = login(client)
    response = client.post("/api/auth/refresh", headers=old_headers)
    assert response.status_code == 200
    new_headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

    assert client.get("/api/auth/me", headers=old_headers).status_code == 401
    assert client.get("/api/auth/me", headers=new_headers).status_code == 200


def test_logout_without_token(client) -> None:
    response = client.post("/api/auth/logout")
    assert response.json()["message"] == "Already logged out"


def test_update_profile(client, auth_headers) -> None:
    response = client.patch(
        "/api/users/me", json={"full_name": "  Rahim U.  "}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["full_name"] == "Rahim U."


def test_dashboard_lists_categories_and_exams(client, db, live_exam) -> None:
    seed_categories(db)
    response = client.get("/api/dashboard")
    assert response.status_code == 200
    payload = response.json()
    assert payload["profile"] is None
    assert [c["name"] for c in payload["categories"]] == [c[0] for c in DEFAULT_CATEGORIES]
    locked = {c["name"] for c in payload["categories"] if c["locked"]}
    assert locked == {"Chit Chat", "AI Practice", "Leaderboard"}
    assert payload["exams"][0]["title"] == "Weekly Model Test"
    assert payload["exams"][0]["isRunning"] is True


def test_dashboard_shows_profile_when_logged_in(client, auth_headers) -> None:
    response = client.get("/api/dashboard", headers=auth_headers)
    assert response.json()["profile"]["fullName"] == "Rahim Uddin"


def test_archive_search_and_category_filter(client, archived_exam) -> None:
    assert len(client.get("/api/archive", params={"q": "bcs"}).json()) == 1
    assert client.get("/api/archive", params={"q": "Oct 11"}).json()[0]["id"] == archived_exam.id
    assert client.get("/api/archive", params={"q": "physics"}).json() == []

    detail = client.get(f"/api/archive/{archived_exam.id}").json()
    assert detail["categoryFilter"] == ["all", "Bangla", "English"]

    english = client.get(
        f"/api/archive/{archived_exam.id}/questions", params={"category": "English"}
    ).json()
    assert english["count"] == 1
    assert english["questions"][0]["text"] == "Archive question 3"

    everything = client.get(f"/api/archive/{archived_exam.id}/questions").json()
    assert everything["count"] == 3
    assert "explanation" not in everything["questions"][0]


def test_archive_question_detail_includes_explanation(client, archived_exam) -> None:
    question_id = archived_exam.questions[0].id
    response = client.get(f"/api/archive/{archived_exam.id}/questions/{question_id}")
    assert response.status_code == 200
    assert response.json()["explanation"] == "Explanation 1"
    assert client.get(f"/api/archive/{archived_exam.id}/questions/999").status_code == 404
    assert client.get("/api/archive/999").status_code == 404


def test_sessions_require_authentication(client, archived_exam) -> None:
    response = client.post("/api/sessions", json={"mode": "archive", "examId": archived_exam.id})
    assert response.status_code == 401


def test_archive_session_flow(client, auth_headers, registry, archived_exam) -> None:
    response = client.post(
        "/api/sessions",
        json={"mode": "archive", "examId": archived_exam.id},
        headers=auth_headers,
    )
    assert response.status_code == 201
    state = response.json()
    session_id = state["sessionId"]
    assert state["status"] == "in_progress"
    assert state["timerScope"] == "per_question"
    assert state["timeRemaining"] == 3
    assert state["timeRemainingDisplay"] == "00:03"
    assert state["question"]["text"] == "Archive question 1"
    assert "correctOption" not in state["question"]

    state = client.post(
        f"/api/sessions/{session_id}/answer", json={"option": 1}, headers=auth_headers
    ).json()
    assert state["answers"] == {str(state["question"]["id"]): 1}

    bad = client.post(
        f"/api/sessions/{session_id}/answer", json={"option": 5}, headers=auth_headers
    )
    assert bad.status_code == 422

    back = client.post(f"/api/sessions/{session_id}/previous", headers=auth_headers)
    assert back.status_code == 400

    state = client.post(f"/api/sessions/{session_id}/advance", headers=auth_headers).json()
    assert state["currentIndex"] == 1

    unanswered = client.post(f"/api/sessions/{session_id}/advance", headers=auth_headers)
    assert unanswered.status_code == 409
    early = client.post(f"/api/sessions/{session_id}/submit", headers=auth_headers)
    assert early.status_code == 400

    for _ in range(3):
        registry.tick_all()
    state = client.get(f"/api/sessions/{session_id}", headers=auth_headers).json()
    assert state["currentIndex"] == 2
    assert state["timeRemaining"] == 3

    client.post(f"/api/sessions/{session_id}/answer", json={"option": 2}, headers=auth_headers)
    state = client.post(f"/api/sessions/{session_id}/advance", headers=auth_headers).json()
    assert state["status"] == "completed"
    assert state["question"] is None

    result = client.get(f"/api/sessions/{session_id}/result", headers=auth_headers).json()
    assert result["score"] == 1
    assert result["answeredCount"] == 2
    assert result["questionCount"] == 3
    assert result["passed"] is False
    assert [entry["selectedOption"] for entry in result["review"]] == [1, None, 2]
    assert result["review"][0]["explanation"] == "Explanation 1"


def test_live_session_submit_and_attempt_history(client, auth_headers, live_exam) -> None:
    state = client.post(
        "/api/sessions", json={"mode": "live", "examId": live_exam.id}, headers=auth_headers
    ).json()
    session_id = state["sessionId"]
    assert state["timerScope"] == "whole_exam"
    assert state["timeRemaining"] == 60

    client.post(f"/api/sessions/{session_id}/answer", json={"option": 1}, headers=auth_headers)
    state = client.post(
        f"/api/sessions/{session_id}/goto", json={"index": 1}, headers=auth_headers
    ).json()
    assert state["currentIndex"] == 1
    client.post(f"/api/sessions/{session_id}/answer", json={"option": 2}, headers=auth_headers)

    result = client.post(f"/api/sessions/{session_id}/submit", headers=auth_headers).json()
    assert result["score"] == 2
    assert result["marksObtained"] == 3
    assert result["totalMarks"] == 4
    assert result["passed"] is True

    again = client.post(f"/api/sessions/{session_id}/submit", headers=auth_headers)
    assert again.status_code == 409

    attempts = client.get("/api/users/me/attempts", headers=auth_headers).json()
    assert len(attempts) == 1
    assert attempts[0]["status"] == "completed"
    assert attempts[0]["score"] == 3
    assert attempts[0]["percentCorrect"] == 75.0

    detail = client.get(
        f"/api/users/me/attempts/{attempts[0]['id']}", headers=auth_headers
    ).json()
    assert sorted(answer["selectedOption"] for answer in detail["answers"]) == [1, 2]


def test_attempts_of_other_users_are_hidden(client, auth_headers, live_exam) -> None:
    session_id = client.post(
        "/api/sessions", json={"mode": "live", "examId": live_exam.id}, headers=auth_headers
    ).json()["sessionId"]
    client.post(f"/api/sessions/{session_id}/submit", headers=auth_headers)
    attempt_id = client.get("/api/users/me/attempts", headers=auth_headers).json()[0]["id"]

    client.post(
        "/api/auth/register",
        json={"username": "nadia", "email": "nadia@example.com", "password": "secret123"},
    )
    other_headers = login(client, "nadia")
    response = client.get(f"/api/users/me/attempts/{attempt_id}", headers=other_headers)
    assert response.status_code == 404


def test_practice_history(client, auth_headers, archived_exam) -> None:
    session_id = client.post(
        "/api/sessions",
        json={"mode": "archive", "examId": archived_exam.id},
        headers=auth_headers,
    ).json()["sessionId"]
    client.post(f"/api/sessions/{session_id}/answer", json={"option": 2}, headers=auth_headers)
    client.post(f"/api/sessions/{session_id}/advance", headers=auth_headers)

    history = client.get(
        "/api/users/me/practice", params={"examId": archived_exam.id}, headers=auth_headers
    ).json()
    assert len(history) == 1
    assert history[0]["selectedOption"] == 2
    assert history[0]["isCorrect"] is False


def test_result_before_completion_is_conflict(client, auth_headers, archived_exam) -> None:
    session_id = client.post(
        "/api/sessions",
        json={"mode": "archive", "examId": archived_exam.id},
        headers=auth_headers,
    ).json()["sessionId"]
    response = client.get(f"/api/sessions/{session_id}/result", headers=auth_headers)
    assert response.status_code == 409


def test_session_ids_are_validated_and_scoped(client, db, auth_headers, other_user, archived_exam) -> None:
    assert client.get("/api/sessions/not.valid", headers=auth_headers).status_code == 400
    assert client.get("/api/sessions/missing", headers=auth_headers).status_code == 404

    session_id = client.post(
        "/api/sessions",
        json={"mode": "archive", "examId": archived_exam.id},
        headers=auth_headers,
    ).json()["sessionId"]
    other_headers = login(client, "karim")
    assert client.get(f"/api/sessions/{session_id}", headers=other_headers).status_code == 404

    assert client.delete(f"/api/sessions/{session_id}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/sessions/{session_id}", headers=auth_headers).status_code == 404


def test_start_session_for_missing_exam(client, auth_headers) -> None:
    response = client.post(
        "/api/sessions", json={"mode": "live", "examId": 999}, headers=auth_headers
    )
    assert response.status_code == 404


def test_seed_sample_exam_is_idempotent(db) -> None:
    first = seed_sample_exam(db)
    second = seed_sample_exam(db)
    assert first.id == second.id
    assert len(first.questions) == 3
    assert seed_categories(db) == len(DEFAULT_CATEGORIES)
    assert seed_categories(db) == 0
