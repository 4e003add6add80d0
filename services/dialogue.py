"""
Dialogue Controller - Conversation state and answer resolution
==============================================================

This module owns one chat conversation: its history, the busy flag
that blocks overlapping submissions, and the pipeline that decides how
a message is answered:

1. Local rules, then general rules (first hit wins)
2. Duplicate suppression for canned answers
3. Completion provider, only when no rule applied
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple
import time

from llm.base import BaseCompletionProvider, Message
from rules.engine import MatchRule, RuleStore
from core.exceptions import ConfigError, LLMError, LLMPayloadError
from core.logging import get_logger


PARSE_ERROR_TEXT = "Could not parse response"
NO_PROVIDER_TEXT = "No completion provider is configured"


class Role(Enum):
    """Originator of a conversation turn."""
    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class ConversationTurn:
    """One message of the conversation."""
    role: Role
    text: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "text": self.text}


class ResolutionSource(Enum):
    """Where an answer came from."""
    LOCAL = "local"
    GENERAL = "general"
    COMPLETION = "completion"
    ERROR = "error"


@dataclass
class Resolution:
    """
    Outcome of resolving one message.

    Attributes:
        source (ResolutionSource): Which stage produced the answer
        text (str): The answer (or error text) for the model turn
        rule (MatchRule): The canned rule that fired, if any
        suppressed (bool): True if the answer duplicated the last turn
            and was not appended again
        latency_ms (int): Time spent resolving
    """
    source: ResolutionSource
    text: str
    rule: Optional[MatchRule] = None
    suppressed: bool = False
    latency_ms: int = 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "source": self.source.value,
            "text": self.text,
            "rule_id": self.rule.rule_id if self.rule else None,
            "suppressed": self.suppressed,
            "latency_ms": self.latency_ms,
        }


class DialogueController:
    """
    Drives a single conversation.

    The controller is asyncio based. Only the completion request awaits;
    rule matching and suppression are synchronous. While a message is
    being resolved ``pending`` is True and any other submission is
    dropped (not queued).

    Example:
        controller = DialogueController(
            rule_store=store,
            welcome_message="Hello Gordon!",
            provider=provider,
            system_instruction=instruction,
        )
        controller.open()
        resolution = await controller.submit("I forgot my password")
    """

    def __init__(
        self,
        rule_store: RuleStore,
        welcome_message: str,
        provider: Optional[BaseCompletionProvider] = None,
        system_instruction: str = "",
        session_id: str = ""
    ):
        """
        Initialize the controller.

        Args:
            rule_store: Validated rule tiers, shared and read-only
            welcome_message: Greeting that opens every conversation
            provider: Completion provider, or None to disable the fallback
            system_instruction: Text prefixed to the message sent to the provider
            session_id: Identifier used in log records

        Raises:
            ConfigError: If the welcome message is blank
        """
        if not welcome_message or not welcome_message.strip():
            raise ConfigError("A conversation needs a welcome message")

        self.rule_store = rule_store
        self.provider = provider
        self.welcome_message = welcome_message
        self.system_instruction = system_instruction
        self.session_id = session_id

        self._history: List[ConversationTurn] = []
        self.pending = False
        self.input_buffer = ""

        self.logger = get_logger("services.dialogue", session=session_id or "-")

    @property
    def history(self) -> Tuple[ConversationTurn, ...]:
        return tuple(self._history)

    def open(self) -> None:
        """Greet the user when the chat opens on an empty conversation."""
        if not self._history:
            self._history.append(ConversationTurn(Role.MODEL, self.welcome_message))

    def reset(self) -> None:
        """Discard the conversation."""
        self._history.clear()
        self.input_buffer = ""

    async def submit(
        self,
        text: Optional[str] = None,
        bypass_rules: bool = False
    ) -> Optional[Resolution]:
        """
        Submit a user message.

        Blank messages and messages sent while another one is being
        resolved are ignored without touching the history.

        Args:
            text: Message text; the input buffer is used when None
            bypass_rules: Skip canned responses and ask the provider directly

        Returns:
            The Resolution, or None if the message was ignored
        """
        message = (self.input_buffer if text is None else text).strip()
        if not message or self.pending:
            return None

        self._history.append(ConversationTurn(Role.USER, message))
        self.input_buffer = ""
        return await self._run(message, bypass_rules)

    async def start_thread(self, question: str) -> Optional[Resolution]:
        """
        Start a fresh conversation from a top-level question.

        The history is replaced by the welcome message and the question,
        and the question is answered without being appended twice.

        Returns:
            The Resolution, or None if the question was ignored
        """
        message = question.strip()
        if not message or self.pending:
            return None

        self._history = [
            ConversationTurn(Role.MODEL, self.welcome_message),
            ConversationTurn(Role.USER, message),
        ]
        return await self._run(message, bypass_rules=False)

    async def resolve(self, message: str, bypass_rules: bool = False) -> Optional[Resolution]:
        """
        Answer ``message`` without recording it as a user turn.

        Repeating the same canned answer is suppressed, so resolving the
        same message twice in a row leaves a single model turn.

        Returns:
            The Resolution, or None if the message was ignored
        """
        message = message.strip()
        if not message or self.pending:
            return None
        return await self._run(message, bypass_rules)

    async def select_suggestion(self, prompt: str) -> Optional[Resolution]:
        """Answer a clicked suggestion button; only the answer is shown."""
        return await self.resolve(prompt)

    async def _run(self, message: str, bypass_rules: bool) -> Resolution:
        self.pending = True
        start_time = time.time()
        try:
            resolution = await self._resolve(message, bypass_rules)
        finally:
            self.pending = False

        resolution.latency_ms = int((time.time() - start_time) * 1000)
        self.logger.info(
            "Message resolved",
            extra={
                "source": resolution.source.value,
                "rule": resolution.rule.rule_id if resolution.rule else None,
                "suppressed": resolution.suppressed,
            }
        )
        return resolution

    async def _resolve(self, message: str, bypass_rules: bool) -> Resolution:
        if not bypass_rules:
            tier, rule = self.rule_store.resolve(message)
            if rule is not None:
                suppressed = not self._append_canned(rule.response)
                try:
                    source = ResolutionSource(tier.name)
                except ValueError:
                    source = ResolutionSource.GENERAL
                return Resolution(source, rule.response, rule=rule, suppressed=suppressed)

            # Only reachable when the store was built without validation
            self.logger.warning("No rule matched; falling back to completion")

        return await self._complete(message)

    def _append_canned(self, response: str) -> bool:
        """
        Append a canned answer unless it repeats the last model turn.

        Returns:
            True if a turn was appended
        """
        if self._history:
            last = self._history[-1]
            if last.role == Role.MODEL and last.text == response:
                return False
        self._history.append(ConversationTurn(Role.MODEL, response))
        return True

    def build_completion_messages(self, message: str) -> List[Message]:
        """
        Build the provider request for ``message``.

        The conversation so far is sent as-is, followed by one user turn
        made of the system instruction and the message. The user turn
        for the message itself is not sent twice.
        """
        turns = list(self._history)
        if turns and turns[-1].role == Role.USER and turns[-1].text == message:
            turns.pop()

        messages = [Message(role=turn.role.value, text=turn.text) for turn in turns]
        messages.append(Message(role=Role.USER.value, text=self.system_instruction + message))
        return messages

    async def _complete(self, message: str) -> Resolution:
        if self.provider is None:
            return self._error(f"Error: {NO_PROVIDER_TEXT}")

        messages = self.build_completion_messages(message)

        try:
            response = await self.provider.complete_async(messages)
        except LLMPayloadError as e:
            self.logger.error(f"Completion payload error: {e}")
            return self._error(PARSE_ERROR_TEXT)
        except LLMError as e:
            self.logger.error(f"Completion failed: {e}")
            return self._error(f"Error: {e.message}")
        except Exception as e:
            self.logger.exception("Unexpected completion failure")
            return self._error(f"Error: {e}")

        self._history.append(ConversationTurn(Role.MODEL, response.content))
        return Resolution(ResolutionSource.COMPLETION, response.content)

    def _error(self, text: str) -> Resolution:
        self._history.append(ConversationTurn(Role.MODEL, text))
        return Resolution(ResolutionSource.ERROR, text)

    def to_dict(self) -> Dict[str, object]:
        return {
            "session_id": self.session_id,
            "pending": self.pending,
            "history": [turn.to_dict() for turn in self._history],
        }
