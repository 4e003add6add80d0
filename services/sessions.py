"""
Session Registry - One dialogue controller per open chat
========================================================

Sessions live in memory only. Opening the chat creates a controller,
closing it discards the conversation.
"""

import secrets
from collections import OrderedDict
from typing import Dict, Optional

from llm.base import BaseCompletionProvider
from rules.engine import RuleStore
from core.exceptions import SessionNotFoundError
from core.logging import get_logger
from .dialogue import DialogueController

logger = get_logger("services.sessions")


class SessionRegistry:
    """
    In-memory map of session id to DialogueController.

    When ``max_sessions`` is reached the least recently opened session
    is evicted.

    Example:
        registry = SessionRegistry(store, welcome, provider, instruction)
        controller = registry.open()
        await controller.submit("Hello")
        registry.close(controller.session_id)
    """

    def __init__(
        self,
        rule_store: RuleStore,
        welcome_message: str,
        provider: Optional[BaseCompletionProvider] = None,
        system_instruction: str = "",
        max_sessions: int = 1000
    ):
        self.rule_store = rule_store
        self.provider = provider
        self.welcome_message = welcome_message
        self.system_instruction = system_instruction
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, DialogueController]" = OrderedDict()

    def open(self) -> DialogueController:
        """Create a session and greet the user."""
        while len(self._sessions) >= self.max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.warning("Session limit reached, evicting oldest session", extra={"session": evicted})

        session_id = secrets.token_urlsafe(16)
        controller = DialogueController(
            rule_store=self.rule_store,
            welcome_message=self.welcome_message,
            provider=self.provider,
            system_instruction=self.system_instruction,
            session_id=session_id,
        )
        controller.open()
        self._sessions[session_id] = controller

        logger.info("Session opened", extra={"session": session_id})
        return controller

    def get(self, session_id: str) -> DialogueController:
        """
        Look up a session.

        Raises:
            SessionNotFoundError: If the id is unknown
        """
        controller = self._sessions.get(session_id)
        if controller is None:
            raise SessionNotFoundError("Unknown chat session", {"session_id": session_id})
        return controller

    def close(self, session_id: str) -> None:
        """Discard a session and its history."""
        controller = self._sessions.pop(session_id, None)
        if controller is None:
            raise SessionNotFoundError("Unknown chat session", {"session_id": session_id})
        controller.reset()
        logger.info("Session closed", extra={"session": session_id})

    def stats(self) -> Dict[str, int]:
        return {"open_sessions": len(self._sessions), "max_sessions": self.max_sessions}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions
