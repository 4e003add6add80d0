"""
LLM Module - Abstraction layer for completion providers
=======================================================

This module provides the interface the chat uses to reach a
generative model when no canned response applies:
- Gemini generateContent API
"""

from .base import BaseCompletionProvider, CompletionResponse, Message, ProviderConfig
from .gemini import GeminiProvider
from .factory import ProviderFactory, create_provider

__all__ = [
    "BaseCompletionProvider",
    "CompletionResponse",
    "Message",
    "ProviderConfig",
    "GeminiProvider",
    "ProviderFactory",
    "create_provider",
]
