"""
Gemini Provider - Completion provider for the Gemini generateContent API
========================================================================

This module implements the completion provider interface for Google's
Gemini API. Requests carry the whole conversation as ``contents`` and
the generated text is read from the first candidate.

Reference: https://ai.google.dev/api/generate-content
"""

import time
from typing import Optional, List, Dict, Any

import httpx

from .base import (
    BaseCompletionProvider,
    CompletionResponse,
    Message,
    ProviderConfig,
    extract_text,
)
from core.exceptions import LLMError, LLMPayloadError
from core.logging import get_logger

logger = get_logger("llm.gemini")


class GeminiProvider(BaseCompletionProvider):
    """
    Completion provider implementation for the Gemini API.

    Example:
        config = ProviderConfig(model="gemini-2.0-flash", api_key="...")
        provider = GeminiProvider(config)

        response = await provider.complete_async([Message(role="user", text="Hello")])
        print(response.content)
    """

    PROVIDER_NAME = "gemini"
    API_BASE = "https://generativelanguage.googleapis.com/v1beta"

    DEFAULT_HEADERS = {
        "Content-Type": "application/json",
    }

    def __init__(
        self,
        config: ProviderConfig,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Initialize Gemini provider.

        Args:
            config: Provider configuration
            transport: Optional httpx transport (used by tests)

        Raises:
            LLMError: If API key is not provided
        """
        super().__init__(config)

        self.api_base = (config.api_base or self.API_BASE).rstrip("/")

        if not config.api_key:
            raise LLMError(
                "Gemini API key is required",
                details={"hint": "Set GEMINI_API_KEY environment variable or configure in settings"}
            )

        self.api_key = config.api_key
        self._transport = transport

        logger.info(
            "Initialized Gemini provider",
            extra={"model": config.model, "api_base": self.api_base}
        )

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/models/{self.config.model}:generateContent"

    def _client_kwargs(self, timeout: Optional[int] = None) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "headers": self.DEFAULT_HEADERS,
            "params": {"key": self.api_key},
            "timeout": timeout or self.config.timeout,
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return kwargs

    async def complete_async(self, messages: List[Message], **kwargs) -> CompletionResponse:
        """Generate a reply for a conversation."""
        start_time = time.time()
        payload = self.build_payload(messages)

        try:
            async with httpx.AsyncClient(**self._client_kwargs()) as client:
                response = await client.post(self.endpoint, json=payload)
        except httpx.TimeoutException:
            raise LLMError("Request to Gemini timed out", details={"model": self.config.model})
        except httpx.RequestError as e:
            raise LLMError(f"Failed to connect to Gemini: {e}", details={"model": self.config.model})

        return self._parse_response(response, start_time)

    def _parse_response(self, response: httpx.Response, start_time: float) -> CompletionResponse:
        """
        Turn an HTTP response into a CompletionResponse.

        Raises:
            LLMError: For HTTP error statuses
            LLMPayloadError: For a success body without generated text
        """
        if response.is_error:
            raise LLMError(
                f"API error: {response.status_code} - {self._error_message(response)}",
                status=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            raise LLMPayloadError(
                "Could not parse response",
                status=response.status_code,
                details={"reason": "body is not JSON"}
            )

        text = extract_text(data)
        if text is None:
            logger.error("Unexpected API response structure", extra={"keys": _top_keys(data)})
            raise LLMPayloadError("Could not parse response", status=response.status_code)

        candidate = data["candidates"][0]
        return CompletionResponse(
            content=text,
            model=data.get("modelVersion", self.config.model),
            provider=self.PROVIDER_NAME,
            latency_ms=self._measure_latency(start_time),
            finish_reason=candidate.get("finishReason", "STOP"),
            metadata={"usage": data.get("usageMetadata", {})},
        )

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Error text from a ``{"error": {"message": ...}}`` body, else the reason phrase."""
        try:
            body = response.json()
        except ValueError:
            body = None

        message = None
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and isinstance(error.get("message"), str):
                message = error["message"]
        return message or response.reason_phrase or response.text or "Unknown error"

    def is_available(self) -> bool:
        try:
            with httpx.Client(**self._client_kwargs(timeout=5)) as client:
                response = client.get(f"{self.api_base}/models/{self.config.model}")
            return response.is_success
        except httpx.HTTPError:
            return False


def _top_keys(data: Any) -> list:
    return sorted(data.keys()) if isinstance(data, dict) else []
