from datetime import datetime, timezone

from hanatore.progression import LEVEL_TITLES

from conftest import USER_ID


def _padded(prefix: str, length: int) -> str:
	return prefix + "あ" * (length - len(prefix))


def _start(client, mode="BUSINESS", training_type="STRUCTURED"):
	r = client.post("/api/training/start", json={"mode": mode, "trainingType": training_type})
	assert r.status_code == 201
	return r.json()


def test_root(client) -> None:
	body = client.get("/").json()
	assert body["status"] == "ok"
	assert body["name"] == "Hanatore API"


def test_prep_session_end_to_end(client, clock) -> None:
	started = _start(client)
	assert started["mode"] == "BUSINESS"
	assert started["trainingType"] == "STRUCTURED"

	content = _padded("結論として、売上は3割伸びました。", 150)
	clock.advance(seconds=95)
	r = client.post("/api/training/answer", json={
		"sessionId": started["sessionId"],
		"questionId": "q-001",
		"content": content,
		"timeSpentSeconds": 90,
	})
	assert r.status_code == 200
	answer = r.json()
	assert set(answer) == {"answerId", "score", "scoreDetail", "feedback", "improvements", "xpEarned"}
	assert answer["scoreDetail"] == {"specificity": 45, "structure": 50, "persuasiveness": 30}
	assert answer["score"] == 42
	assert answer["xpEarned"] == 50

	clock.advance(seconds=25)
	r = client.post("/api/training/complete", json={"sessionId": started["sessionId"]})
	assert r.status_code == 200
	body = r.json()
	assert body["sessionId"] == started["sessionId"]
	assert body["summary"] == {
		"questionsCount": 1,
		"totalXpEarned": 50,
		"averageScore": 42,
		"duration": 120,
	}

	progress = client.get("/api/users/me/progress").json()
	assert progress["totalXp"] == 50
	assert progress["currentXp"] == 50
	assert progress["xpToNextLevel"] == 100
	assert progress["currentStreak"] == 1
	assert progress["todayCompleted"] is True
	assert progress["title"] == LEVEL_TITLES[0]

	league = client.get("/api/league/current").json()
	assert league["weeklyXp"] == 50
	assert league["leagueId"] == "2024-W15"


def test_answer_unknown_session(client) -> None:
	r = client.post("/api/training/answer", json={"sessionId": "nope", "questionId": "q-001", "content": "x"})
	assert r.status_code == 404
	assert r.json()["error"] == "not_found"


def test_complete_errors(client) -> None:
	session = _start(client)
	r = client.post("/api/training/complete", json={"sessionId": session["sessionId"]})
	assert r.status_code == 400
	assert r.json() == {"error": "no_answers", "message": "Cannot complete session without answers"}

	client.post("/api/training/answer", json={
		"sessionId": session["sessionId"], "questionId": "q-003", "content": "まとめます",
	})
	assert client.post("/api/training/complete", json={"sessionId": session["sessionId"]}).status_code == 200
	r = client.post("/api/training/complete", json={"sessionId": session["sessionId"]})
	assert r.status_code == 400
	assert r.json()["error"] == "session_completed"
	r = client.post("/api/training/answer", json={
		"sessionId": session["sessionId"], "questionId": "q-003", "content": "もう一度",
	})
	assert r.status_code == 400
	assert r.json()["error"] == "session_completed"

	r = client.post("/api/training/complete", json={"sessionId": "missing"})
	assert r.status_code == 404


def test_validation_errors(client) -> None:
	r = client.post("/api/training/start", json={"mode": "KARAOKE", "trainingType": "QUICK"})
	assert r.status_code == 422
	assert r.json()["error"] == "validation_error"

	session = _start(client)
	r = client.post("/api/training/answer", json={
		"sessionId": session["sessionId"], "questionId": "q-001", "content": "",
	})
	assert r.status_code == 422

	assert client.get("/api/training/history?limit=51").status_code == 422
	assert client.get("/api/league/ranking?limit=101").status_code == 422


def test_history_and_detail(client, clock) -> None:
	assert client.get("/api/training/history").json() == {
		"sessions": [], "total": 0, "limit": 10, "offset": 0, "hasMore": False,
	}
	ids = []
	for _ in range(3):
		session = _start(client)
		client.post("/api/training/answer", json={
			"sessionId": session["sessionId"], "questionId": "q-007", "content": "こんにちは、初めまして。",
		})
		clock.advance(minutes=3)
		client.post("/api/training/complete", json={"sessionId": session["sessionId"]})
		ids.append(session["sessionId"])

	body = client.get("/api/training/history?limit=2&offset=0").json()
	assert body["total"] == 3
	assert body["hasMore"] is True
	assert [s["sessionId"] for s in body["sessions"]] == [ids[2], ids[1]]

	detail = client.get(f"/api/training/session/{ids[0]}").json()
	assert detail["questionsCount"] == 1
	assert detail["answers"][0]["questionId"] == "q-007"
	assert "sampleAnswer" not in detail["answers"][0]
	assert client.get("/api/training/session/unknown").status_code == 404


def test_questions(client) -> None:
	body = client.get("/api/questions?mode=BUSINESS&limit=2").json()
	assert body["total"] == 4
	assert len(body["questions"]) == 2
	assert body["hasMore"] is True
	assert all("sampleAnswer" not in q for q in body["questions"])

	body = client.get("/api/questions?trainingType=QUICK&difficulty=2").json()
	assert [q["id"] for q in body["questions"]] == ["q-009", "q-010"]

	daily = client.get("/api/questions/daily").json()
	assert daily["totalCount"] == 5
	assert daily["date"] == "2024-04-10"
	assert all(not q["isPremium"] for q in daily["questions"])

	q = client.get("/api/questions/q-001").json()
	assert q["method"] == "PREP"
	assert "sampleAnswer" not in q
	assert client.get("/api/questions/q-404").status_code == 404
	assert client.get("/api/questions?difficulty=6").status_code == 422


def test_league_endpoints(client) -> None:
	current = client.get("/api/league/current").json()
	assert current["leagueId"] == "2024-W15"
	assert current["rank"] == 20
	assert current["totalParticipants"] == 20
	assert datetime.fromisoformat(current["startDate"].replace("Z", "+00:00")) == datetime(
		2024, 4, 8, tzinfo=timezone.utc
	)

	ranking = client.get("/api/league/ranking?limit=5").json()
	assert len(ranking["ranking"]) == 5
	assert ranking["currentUser"]["userId"] == USER_ID
	assert ranking["currentUser"]["isCurrentUser"] is True

	promotion = client.get("/api/league/promotion").json()
	assert promotion["inPromotionZone"] is False
	assert promotion["xpToPromotion"] == 911

	assert client.get("/api/league/history").json() == {"history": [], "totalWeeks": 0}


def test_users_me(client) -> None:
	me = client.get("/api/users/me").json()
	assert me["id"] == USER_ID
	assert me["level"] == 1
	assert me["displayName"] == "テストユーザー"

	r = client.patch("/api/users/me", json={"displayName": "新しい名前", "preferredModes": ["THINKING"]})
	assert r.status_code == 200
	assert r.json()["displayName"] == "新しい名前"
	assert r.json()["preferredModes"] == ["THINKING"]
	assert client.patch("/api/users/me", json={"displayName": ""}).status_code == 422


def test_ai_endpoints(client) -> None:
	r = client.post("/api/ai/evaluate", json={"question": "報告してください", "answer": "", "method": "PREP"})
	assert r.status_code == 200
	body = r.json()
	assert body["score"] == 0
	assert len(body["improvements"]) == 3
	assert body["xpEarned"] == 0

	status = client.get("/api/ai/status").json()
	assert status["available"] is False
	assert client.get("/api/subscription/status").json() == {"plan": "free", "status": "active"}


def test_unknown_route(client) -> None:
	r = client.get("/api/nothing-here")
	assert r.status_code == 404
	assert r.json()["error"] == "not_found"
