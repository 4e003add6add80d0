"""
Test Session Registry Module
===========================

Unit tests for opening, looking up and closing chat sessions.
"""

import asyncio
import pytest
from pathlib import Path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from rules.loader import build_rule_store
from services.dialogue import Role
from services.sessions import SessionRegistry
from core.exceptions import SessionNotFoundError


WELCOME = "Hello Gordon!"


@pytest.fixture
def registry():
    return SessionRegistry(
        rule_store=build_rule_store(),
        welcome_message=WELCOME,
        system_instruction="",
        max_sessions=3,
    )


class TestSessionRegistry:
    """Tests for SessionRegistry."""

    def test_open_greets(self, registry):
        """A new session starts with the welcome message."""
        controller = registry.open()

        assert controller.session_id in registry
        assert [(t.role, t.text) for t in controller.history] == [(Role.MODEL, WELCOME)]

    def test_sessions_are_independent(self, registry):
        """History is per session."""
        first = registry.open()
        second = registry.open()

        asyncio.run(first.submit("I forgot my password"))

        assert first.session_id != second.session_id
        assert len(first.history) == 3
        assert len(second.history) == 1

    def test_get(self, registry):
        controller = registry.open()

        assert registry.get(controller.session_id) is controller

    def test_unknown_session(self, registry):
        with pytest.raises(SessionNotFoundError):
            registry.get("missing")

    def test_close_discards_history(self, registry):
        """Closing removes the session; a closed id is unknown."""
        controller = registry.open()
        session_id = controller.session_id

        registry.close(session_id)

        assert session_id not in registry
        assert controller.history == ()
        with pytest.raises(SessionNotFoundError):
            registry.close(session_id)

    def test_oldest_evicted_at_limit(self, registry):
        """The least recently opened session makes room."""
        ids = [registry.open().session_id for _ in range(4)]

        assert len(registry) == 3
        assert ids[0] not in registry
        assert all(session_id in registry for session_id in ids[1:])

    def test_stats(self, registry):
        registry.open()

        assert registry.stats() == {"open_sessions": 1, "max_sessions": 3}


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
