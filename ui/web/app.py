"""
FastAPI Application - Chat API application setup
================================================

This module creates and configures the FastAPI application that
exposes chat sessions to the portal front end.
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from core.config import Config, load_config
from core.exceptions import SessionNotFoundError
from core.logging import setup_logging, get_logger, log_context
from llm.base import BaseCompletionProvider
from llm.factory import create_provider
from rules.engine import RuleStore
from rules.loader import build_rule_store
from services.sessions import SessionRegistry

logger = get_logger("web.app")


def create_app(
    config: Optional[Config] = None,
    rule_store: Optional[RuleStore] = None,
    provider: Optional[BaseCompletionProvider] = None,
    debug: bool = False
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    The rule store is loaded and validated here, so a broken rule file
    stops the server before it accepts requests.

    Args:
        config: Application configuration
        rule_store: Prebuilt rule store (loaded from config if omitted)
        provider: Completion provider (created from config if omitted)
        debug: Enable debug mode

    Returns:
        Configured FastAPI application
    """
    if config is None:
        config = load_config()

    setup_logging(
        log_dir=config.log_dir or None,
        log_level="DEBUG" if debug or config.debug else "INFO",
        console_output=True
    )

    if rule_store is None:
        rule_store = build_rule_store(
            rules_file=config.chat.rules_file or None,
            use_local_rules=config.chat.use_local_rules,
        )

    if provider is None:
        provider = create_provider(config)

    sessions = SessionRegistry(
        rule_store=rule_store,
        provider=provider,
        welcome_message=config.chat.welcome_message(),
        system_instruction=config.chat.system_instruction,
        max_sessions=config.ui.max_sessions,
    )

    app = FastAPI(
        title=config.app_name,
        description="Chat API for the portal assistant",
        version=config.version,
        debug=debug or config.debug,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.rule_store = rule_store
    app.state.provider = provider
    app.state.sessions = sessions

    @app.middleware("http")
    async def request_log_context(request: Request, call_next):
        with log_context(method=request.method, path=request.url.path):
            return await call_next(request)

    from .routes import router as main_router
    app.include_router(main_router, prefix="")

    @app.exception_handler(SessionNotFoundError)
    async def session_not_found_handler(request: Request, exc: SessionNotFoundError):
        return JSONResponse(status_code=404, content={"error": exc.message, **exc.details})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc) if debug else "An error occurred"}
        )

    logger.info("Web application created", extra=rule_store.counts())

    return app


def run_app(
    host: str = "127.0.0.1",
    port: int = 8080,
    debug: bool = False,
    config: Optional[Config] = None
) -> None:
    """
    Run the web application server.

    Args:
        host: Host address to bind
        port: Port to listen on
        debug: Enable debug mode
        config: Application configuration
    """
    if config is None:
        config = load_config()

    app = create_app(config=config, debug=debug)

    logger.info(f"Starting web server on {host}:{port}")

    import uvicorn
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="debug" if debug else "info"
    )
