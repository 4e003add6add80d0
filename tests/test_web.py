"""
Test Web API Module
==================

Tests for the chat endpoints using FastAPI's TestClient.
"""

import pytest
from pathlib import Path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi.testclient import TestClient

from core.config import Config
from llm.base import BaseCompletionProvider, CompletionResponse, ProviderConfig
from rules.prompts import TRANSACTION_HISTORY_PROMPT
from ui.web.app import create_app


WELCOME = "Hello Gordon! I'm Annie, your expert AI assistant. How can I help you today?"
ISA_QUESTION = "How much of my ISA allowance have I used this tax year?"


class StaticProvider(BaseCompletionProvider):
    """Provider that always answers with the same text."""

    PROVIDER_NAME = "static"

    def __init__(self):
        super().__init__(ProviderConfig(model="static"))
        self.calls = 0

    async def complete_async(self, messages, **kwargs):
        self.calls += 1
        return CompletionResponse(content="Generated answer", model="static", provider="static")

    def is_available(self):
        return True


@pytest.fixture
def provider():
    return StaticProvider()


@pytest.fixture
def client(provider):
    app = create_app(config=Config(), provider=provider)
    return TestClient(app)


@pytest.fixture
def session_id(client):
    return client.post("/api/sessions").json()["session_id"]


class TestHealthAndPrompts:
    """Tests for read-only endpoints."""

    def test_health(self, client):
        data = client.get("/health").json()

        assert data["status"] == "ok"
        assert data["completion_enabled"] is True
        assert set(data["rules"]) == {"local", "general"}

    def test_prompts(self, client):
        """Suggestions are grouped for the two button rows."""
        data = client.get("/api/prompts").json()

        specific = [s["prompt"] for s in data["specific_account"]]
        general = [s["prompt"] for s in data["general_help"]]
        assert ISA_QUESTION in specific
        assert TRANSACTION_HISTORY_PROMPT in specific
        assert "Password" in general


class TestSessions:
    """Tests for the session endpoints."""

    def test_open_session(self, client):
        data = client.post("/api/sessions").json()

        assert data["pending"] is False
        assert data["history"] == [{"role": "model", "text": WELCOME}]

    def test_submit_message(self, client, session_id, provider):
        """A canned answer is returned with the updated history."""
        response = client.post(
            f"/api/sessions/{session_id}/messages",
            json={"text": "I forgot my password"}
        )
        data = response.json()

        assert response.status_code == 200
        assert data["accepted"] is True
        assert data["resolution"]["source"] == "general"
        assert data["resolution"]["rule_id"] == "forgot-password"
        assert [turn["role"] for turn in data["history"]] == ["model", "user", "model"]
        assert provider.calls == 0

    def test_blank_message_not_accepted(self, client, session_id):
        data = client.post(f"/api/sessions/{session_id}/messages", json={"text": "  "}).json()

        assert data["accepted"] is False
        assert data["resolution"] is None
        assert len(data["history"]) == 1

    def test_bypass_rules(self, client, session_id, provider):
        """bypass_rules goes straight to the completion provider."""
        data = client.post(
            f"/api/sessions/{session_id}/messages",
            json={"text": "I forgot my password", "bypass_rules": True}
        ).json()

        assert data["resolution"]["source"] == "completion"
        assert data["history"][-1] == {"role": "model", "text": "Generated answer"}
        assert provider.calls == 1

    def test_start_thread(self, client, session_id):
        """A new thread replaces the history."""
        client.post(f"/api/sessions/{session_id}/messages", json={"text": "hello"})

        data = client.post(
            f"/api/sessions/{session_id}/thread",
            json={"question": ISA_QUESTION}
        ).json()

        assert [turn["text"] for turn in data["history"][:2]] == [WELCOME, ISA_QUESTION]
        assert data["resolution"]["rule_id"] == "isa-allowance-used"
        assert len(data["history"]) == 3

    def test_suggestion_twice(self, client, session_id):
        """The second identical click is suppressed."""
        url = f"/api/sessions/{session_id}/suggestions"

        first = client.post(url, json={"prompt": ISA_QUESTION}).json()
        second = client.post(url, json={"prompt": ISA_QUESTION}).json()

        assert first["resolution"]["suppressed"] is False
        assert second["resolution"]["suppressed"] is True
        assert len(second["history"]) == 2

    def test_get_and_close(self, client, session_id):
        assert client.get(f"/api/sessions/{session_id}").status_code == 200

        assert client.delete(f"/api/sessions/{session_id}").json() == {"success": True}
        assert client.get(f"/api/sessions/{session_id}").status_code == 404

    def test_unknown_session(self, client):
        response = client.post("/api/sessions/missing/messages", json={"text": "hi"})

        assert response.status_code == 404
        assert response.json()["session_id"] == "missing"

    def test_invalid_body(self, client, session_id):
        response = client.post(f"/api/sessions/{session_id}/messages", json={})

        assert response.status_code == 422


class TestWithoutProvider:
    """The API without an API key."""

    def test_completion_disabled(self):
        config = Config()
        client = TestClient(create_app(config=config))
        session_id = client.post("/api/sessions").json()["session_id"]

        health = client.get("/health").json()
        data = client.post(
            f"/api/sessions/{session_id}/messages",
            json={"text": "What is PSD2?", "bypass_rules": True}
        ).json()

        assert health["completion_enabled"] is False
        assert data["resolution"]["source"] == "error"
        assert data["history"][-1]["text"].startswith("Error: ")


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
