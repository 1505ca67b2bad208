"""Tests for the REST endpoints via FastAPI's TestClient."""

from __future__ import annotations


class TestCoreEndpoints:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_status(self, client):
        response = client.get("/status")
        assert response.status_code == 200
        data = response.json()
        assert data["agent"] == "nodemesh"
        assert "version" in data
        assert data["sessions"] == 0
        assert data["uptime_seconds"] >= 0

    def test_unknown_path(self, client):
        response = client.get("/nope")
        assert response.status_code == 404
        assert response.json()["error"] == "Not found"


class TestChatEndpoint:
    def test_weather_reply(self, client):
        response = client.post("/chat", json={"message": "What's the weather in Tokyo?", "sessionId": "web-1"})
        assert response.status_code == 200
        data = response.json()
        assert data["intent"] == "weather"
        assert data["location"] == "Tokyo"
        assert data["sessionId"] == "web-1"
        assert "Tokyo" in data["reply"]

    def test_snake_case_session_id_accepted(self, client):
        response = client.post("/chat", json={"message": "hello", "session_id": "cli"})
        assert response.json()["sessionId"] == "cli"

    def test_default_session(self, client):
        data = client.post("/chat", json={"message": "hello"}).json()
        assert data["sessionId"] == "default"
        assert data["topic"] == ""

    def test_empty_message_is_400(self, client):
        response = client.post("/chat", json={"message": "   "})
        assert response.status_code == 400
        assert response.json()["error"] == "Message required"

    def test_missing_message_is_400(self, client):
        assert client.post("/chat", json={}).status_code == 400

    def test_oversized_message_is_422(self, client):
        assert client.post("/chat", json={"message": "x" * 10001}).status_code == 422

    def test_history_shapes_seed_session(self, client):
        response = client.post("/chat", json={
            "message": "hello",
            "sessionId": "seeded",
            "history": [
                {"role": "user", "text": "plain shape"},
                {"role": "model", "parts": [{"text": "parts"}, {"text": "shape"}]},
                {"role": "system", "text": "dropped"},
                {"role": "user", "text": "   "},
            ],
        })
        assert response.status_code == 200
        turns = client.get("/sessions/seeded/history").json()["turns"]
        assert turns[0] == {"role": "user", "text": "plain shape"}
        assert turns[1] == {"role": "agent", "text": "parts\nshape"}
        assert turns[2]["text"] == "hello"
        assert len(turns) == 4


class TestSessionEndpoints:
    def test_history(self, client):
        client.post("/chat", json={"message": "hello", "sessionId": "s1"})
        data = client.get("/sessions/s1/history").json()
        assert data["sessionId"] == "s1"
        assert data["count"] == 2
        assert data["window"] == 6
        assert [t["role"] for t in data["turns"]] == ["user", "agent"]

    def test_unknown_session_is_empty(self, client):
        data = client.get("/sessions/ghost/history").json()
        assert data["count"] == 0
        assert data["turns"] == []

    def test_clear(self, client):
        client.post("/chat", json={"message": "hello", "sessionId": "s2"})
        response = client.delete("/sessions/s2")
        assert response.json() == {"status": "ok", "sessionId": "s2", "cleared": True}
        assert client.get("/sessions/s2/history").json()["count"] == 0
        assert client.delete("/sessions/s2").json()["cleared"] is False

    def test_status_counts_sessions(self, client):
        client.post("/chat", json={"message": "hello", "sessionId": "a"})
        client.post("/chat", json={"message": "hello", "sessionId": "b"})
        assert client.get("/status").json()["sessions"] == 2
