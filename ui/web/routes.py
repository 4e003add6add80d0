"""
Web Routes - Chat API endpoints
===============================

This module defines the JSON endpoints used by the chat widget.
Rendering is left to the front end.
"""

from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from core.logging import get_logger
from rules.prompts import suggestion_groups
from services.dialogue import DialogueController, Resolution

logger = get_logger("web.routes")

router = APIRouter()


class MessageSubmit(BaseModel):
    """Message submission model."""
    text: str
    bypass_rules: bool = False


class ThreadStart(BaseModel):
    """New thread model (question typed outside the chat)."""
    question: str


class SuggestionSelect(BaseModel):
    """Clicked suggestion button."""
    prompt: str


def _exchange(controller: DialogueController, resolution: Optional[Resolution]) -> dict:
    return {
        "accepted": resolution is not None,
        "resolution": resolution.to_dict() if resolution else None,
        **controller.to_dict(),
    }


@router.get("/health")
async def health(request: Request):
    """Liveness check with rule counts."""
    return {
        "status": "ok",
        "rules": request.app.state.rule_store.counts(),
        "completion_enabled": request.app.state.provider is not None,
        "sessions": request.app.state.sessions.stats(),
    }


@router.get("/api/prompts")
async def list_prompts(request: Request):
    """Suggestion buttons grouped for display."""
    specific, general = suggestion_groups(request.app.state.rule_store)
    return {
        "specific_account": [s.to_dict() for s in specific],
        "general_help": [s.to_dict() for s in general],
    }


@router.post("/api/sessions")
async def open_session(request: Request):
    """Open a chat session; the history starts with the welcome message."""
    controller = request.app.state.sessions.open()
    return controller.to_dict()


@router.get("/api/sessions/{session_id}")
async def get_session(request: Request, session_id: str):
    """Current history of a session."""
    return request.app.state.sessions.get(session_id).to_dict()


@router.post("/api/sessions/{session_id}/messages")
async def submit_message(request: Request, session_id: str, body: MessageSubmit):
    """Submit a user message and return the updated history."""
    controller = request.app.state.sessions.get(session_id)
    resolution = await controller.submit(body.text, bypass_rules=body.bypass_rules)
    return _exchange(controller, resolution)


@router.post("/api/sessions/{session_id}/thread")
async def start_thread(request: Request, session_id: str, body: ThreadStart):
    """Restart the conversation from a new top-level question."""
    controller = request.app.state.sessions.get(session_id)
    resolution = await controller.start_thread(body.question)
    return _exchange(controller, resolution)


@router.post("/api/sessions/{session_id}/suggestions")
async def select_suggestion(request: Request, session_id: str, body: SuggestionSelect):
    """Answer a clicked suggestion button."""
    controller = request.app.state.sessions.get(session_id)
    resolution = await controller.select_suggestion(body.prompt)
    return _exchange(controller, resolution)


@router.delete("/api/sessions/{session_id}")
async def close_session(request: Request, session_id: str):
    """Close a session and discard its history."""
    request.app.state.sessions.close(session_id)
    return {"success": True}
