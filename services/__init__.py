"""
Services Module - Conversation services for the Portal Chat Assistant
=====================================================================

This module provides the main services:
- Dialogue Controller: conversation state and answer resolution
- Session Registry: one controller per open chat
"""

from .dialogue import (
    ConversationTurn,
    DialogueController,
    Resolution,
    ResolutionSource,
    Role,
)
from .sessions import SessionRegistry

__all__ = [
    "ConversationTurn",
    "DialogueController",
    "Resolution",
    "ResolutionSource",
    "Role",
    "SessionRegistry",
]
