"""
Core Module - Foundation components for the Portal Chat Assistant
=================================================================

This module provides the foundational components including:
- Configuration management
- Logging setup
- Exception handling
"""

from .config import Config, load_config, save_config
from .exceptions import (
    ChatAssistantError,
    ConfigError,
    RuleConfigError,
    ConfigurationDefect,
    LLMError,
    LLMPayloadError,
    SessionNotFoundError,
)
from .logging import setup_logging, get_logger, log_context

__all__ = [
    "Config",
    "load_config",
    "save_config",
    "ChatAssistantError",
    "ConfigError",
    "RuleConfigError",
    "ConfigurationDefect",
    "LLMError",
    "LLMPayloadError",
    "SessionNotFoundError",
    "setup_logging",
    "get_logger",
    "log_context",
]
