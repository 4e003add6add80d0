"""
Base Completion Provider - Abstract base class for completion providers
=======================================================================

This module defines the interface the dialogue controller uses to ask
a generative model for an answer when no canned response applies.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
import time


@dataclass
class ProviderConfig:
    """
    Configuration for a completion provider instance.

    Attributes:
        model (str): Model identifier to use
        api_key (str): API key for authentication
        api_base (str): Base URL for API requests
        timeout (int): Request timeout in seconds
    """
    model: str = "gemini-2.0-flash"
    api_key: str = ""
    api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout: int = 30

    def validate(self) -> None:
        """
        Validate configuration parameters.

        Raises:
            ValueError: If any parameter is invalid
        """
        if not self.model:
            raise ValueError("model must not be empty")

        if self.timeout < 1:
            raise ValueError(f"timeout must be positive, got {self.timeout}")


@dataclass
class CompletionResponse:
    """
    Response from a completion provider.

    Attributes:
        content (str): Generated text
        model (str): Model that generated the response
        provider (str): Provider name
        latency_ms (int): Response latency in milliseconds
        finish_reason (str): Reason for completion, as reported
        timestamp (datetime): When the response was received
        metadata (dict): Additional provider-specific metadata
    """
    content: str
    model: str
    provider: str
    latency_ms: int = 0
    finish_reason: str = "STOP"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Message:
    """
    One entry of a completion request.

    Roles follow the provider wire format: "user" or "model".
    """
    role: str
    text: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the request ``contents`` entry format."""
        return {"role": self.role, "parts": [{"text": self.text}]}


class BaseCompletionProvider(ABC):
    """
    Abstract base class for completion providers.

    Subclasses must implement:
    - complete_async(): Generate a reply for a conversation
    - is_available(): Check if provider is usable (used by the
      status command)

    Failures are reported with LLMError; a successful answer whose
    payload lacks the generated text raises LLMPayloadError.
    """

    PROVIDER_NAME = "base"

    def __init__(self, config: ProviderConfig):
        self.config = config
        self.config.validate()

    @abstractmethod
    async def complete_async(self, messages: List[Message], **kwargs) -> CompletionResponse:
        """
        Generate a reply for a conversation.

        Args:
            messages: Conversation, oldest first
            **kwargs: Provider-specific parameters

        Returns:
            CompletionResponse with the generated text
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        pass

    def build_payload(self, messages: List[Message]) -> Dict[str, Any]:
        return {"contents": [m.to_dict() for m in messages]}

    @staticmethod
    def _measure_latency(start_time: float) -> int:
        """Milliseconds elapsed since ``start_time`` (from time.time())."""
        return int((time.time() - start_time) * 1000)


def extract_text(payload: Any) -> Optional[str]:
    """
    Pull the generated text out of a generateContent response.

    The text lives at ``candidates[0].content.parts[0].text``.

    Returns:
        The text, or None if the payload does not have that shape
    """
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None
