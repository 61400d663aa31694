import pytest
from fastapi.testclient import TestClient

from ticket_ai.dependencies import get_support_service
from ticket_ai.main import app

from tests.conftest import HELPFUL_REPLY


@pytest.fixture
def client(service):
    app.dependency_overrides[get_support_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _start_session(client):
    response = client.post("/sessions", json={"user_id": "customer-1"})
    assert response.status_code == 200
    return response.json()["id"]


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_chat_health(self, client):
        data = client.get("/chat/health").json()
        assert data["status"] == "ok"
        assert data["service"] == "chat-api"


class TestChatEndpoints:
    def test_message_round_trip(self, client):
        session_id = _start_session(client)

        response = client.post(f"/sessions/{session_id}/messages", json={"content": "How do I reset my password?"})

        assert response.status_code == 200
        data = response.json()
        assert data["message"]["content"] == HELPFUL_REPLY
        assert data["message"]["role"] == "assistant"
        assert data["should_escalate"] is False
        assert data["ticket_id"] is None

        session = client.get(f"/sessions/{session_id}").json()
        assert len(session["messages"]) == 2
        assert session["user_id"] == "customer-1"

    def test_escalating_message_returns_ticket(self, client):
        session_id = _start_session(client)

        data = client.post(f"/sessions/{session_id}/messages", json={"content": "I want a refund"}).json()

        assert data["should_escalate"] is True
        ticket = client.get(f"/tickets/{data['ticket_id']}").json()
        assert ticket["chat_session_id"] == session_id
        assert ticket["category"] == "billing"

    def test_unknown_session_is_404(self, client):
        response = client.post("/sessions/missing/messages", json={"content": "Hi"})

        assert response.status_code == 404
        assert response.json()["entity"] == "session"

    def test_blank_message_is_400(self, client):
        session_id = _start_session(client)
        response = client.post(f"/sessions/{session_id}/messages", json={"content": "  "})
        assert response.status_code == 400

    def test_resolved_session_rejects_messages(self, client):
        session_id = _start_session(client)
        assert client.post(f"/sessions/{session_id}/resolve").json()["status"] == "resolved"

        response = client.post(f"/sessions/{session_id}/messages", json={"content": "Hi"})

        assert response.status_code == 400


class TestTicketEndpoints:
    def _ticket(self, client):
        session_id = _start_session(client)
        response = client.post(
            "/tickets",
            json={"session_id": session_id, "title": "Cannot log in", "description": "Login page loops"},
        )
        assert response.status_code == 200
        return response.json()

    def _agent(self, client):
        return client.post("/agents", json={"name": "Ana", "email": "ana@example.com"}).json()

    def test_assign_and_close(self, client):
        ticket = self._ticket(client)
        agent = self._agent(client)

        assigned = client.post(f"/tickets/{ticket['id']}/assign", json={"agent_id": agent["id"]}).json()
        assert assigned["ticket"]["status"] == "in_progress"
        assert assigned["agent"]["status"] == "busy"

        closed = client.put(f"/tickets/{ticket['id']}", json={"status": "closed"}).json()
        assert closed["status"] == "closed"
        assert closed["resolved_at"] is not None

        agents = client.get("/agents").json()
        assert agents[0]["status"] == "available"
        assert agents[0]["active_tickets"] == []
        assert client.get("/admin/invariants").json() == {"ok": True, "violations": []}

    def test_assign_unknown_agent_is_404(self, client):
        ticket = self._ticket(client)

        response = client.post(f"/tickets/{ticket['id']}/assign", json={"agent_id": "ghost"})

        assert response.status_code == 404
        assert response.json()["entity"] == "agent"
        assert client.get(f"/tickets/{ticket['id']}").json()["assigned_agent"] is None

    def test_update_with_unknown_agent_changes_nothing(self, client):
        ticket = self._ticket(client)

        response = client.put(f"/tickets/{ticket['id']}", json={"title": "New title", "assigned_agent": "ghost"})

        assert response.status_code == 404
        assert response.json()["entity"] == "agent"
        assert client.get(f"/tickets/{ticket['id']}").json()["title"] == "Cannot log in"

    def test_update_unknown_ticket_is_404(self, client):
        assert client.put("/tickets/missing", json={"title": "x"}).status_code == 404

    def test_update_fields(self, client):
        ticket = self._ticket(client)

        updated = client.put(f"/tickets/{ticket['id']}", json={"priority": "urgent", "tags": ["vip"]}).json()

        assert updated["priority"] == "urgent"
        assert updated["tags"] == ["vip"]

    def test_empty_update_is_400(self, client):
        ticket = self._ticket(client)
        assert client.put(f"/tickets/{ticket['id']}", json={}).status_code == 400

    def test_list_filter(self, client):
        ticket = self._ticket(client)
        self._ticket(client)
        client.put(f"/tickets/{ticket['id']}", json={"status": "escalated"})

        listed = client.get("/tickets", params={"status": "escalated"}).json()

        assert [t["id"] for t in listed] == [ticket["id"]]

    def test_offline_agent(self, client):
        agent = self._agent(client)

        response = client.put(f"/agents/{agent['id']}/availability", json={"offline": True})

        assert response.json()["status"] == "offline"
        assert [a["id"] for a in client.get("/agents", params={"status": "offline"}).json()] == [agent["id"]]


class TestAdminEndpoints:
    def test_stats(self, client):
        session_id = _start_session(client)
        client.post("/tickets", json={"session_id": session_id, "title": "t", "description": "d"})

        stats = client.get("/admin/stats").json()

        assert stats["total_tickets"] == 1
        assert stats["active_tickets"] == 1

    def test_export_then_import(self, client):
        _start_session(client)
        exported = client.get("/admin/export").json()
        assert len(exported["chat_sessions"]) == 1

        response = client.post("/admin/import", json={"chat_sessions": []})

        assert response.json() == {"success": True}
        assert client.get("/admin/export").json()["chat_sessions"] == []

    def test_invalid_import_is_400(self, client):
        response = client.post("/admin/import", json={"agents": [{"name": 1}]})
        assert response.status_code == 400
