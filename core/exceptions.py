"""
Exception Definitions - Custom exceptions for the Portal Chat Assistant
=======================================================================

This module defines all custom exceptions used throughout the application,
providing clear error handling and meaningful error messages.
"""

from typing import Optional


class ChatAssistantError(Exception):
    """
    Base exception for all chat assistant errors.

    All custom exceptions in this application inherit from this base class,
    allowing for easy catching of all application-specific errors.

    Attributes:
        message (str): Human-readable error description
        details (dict): Additional error details for debugging
    """

    def __init__(self, message: str, details: dict = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            details: Optional dictionary with additional error context
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return formatted error message with details if present."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigError(ChatAssistantError):
    """
    Configuration-related errors.

    Raised when there are issues with:
    - Invalid configuration values
    - Environment variable issues
    - Configuration parsing errors
    """
    pass


class RuleConfigError(ConfigError):
    """
    Malformed canned-response rule configuration.

    Raised when a rule file cannot be read or parsed, or when a single
    rule record is invalid (no condition, several conditions, empty
    keyword list, missing response).
    """
    pass


class ConfigurationDefect(ConfigError):
    """
    A rule tier violates the fallback invariant.

    The general tier must end with exactly one always-match rule. Raised
    at startup so a misconfigured deployment never reaches the chat.
    """
    pass


class LLMError(ChatAssistantError):
    """
    Completion provider errors.

    Raised when there are issues with:
    - API connection failures
    - HTTP error responses
    - Timeout errors

    Attributes:
        status (int): HTTP status code, if the provider answered
    """

    def __init__(self, message: str, status: Optional[int] = None, details: dict = None):
        self.status = status
        super().__init__(message, details)


class LLMPayloadError(LLMError):
    """
    The provider answered successfully but the payload has no text.
    """
    pass


class SessionNotFoundError(ChatAssistantError):
    """Raised when a chat session id is unknown or already closed."""
    pass
