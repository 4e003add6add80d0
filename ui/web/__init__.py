"""
Web UI Module - FastAPI-based chat API
======================================

This module exposes chat sessions over HTTP:
- Session open / close
- Message submission and new threads
- Suggestion prompts
"""

from .app import create_app, run_app
from .routes import router

__all__ = [
    "create_app",
    "run_app",
    "router",
]
