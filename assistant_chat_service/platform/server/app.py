"""FastAPI application factory and server configuration.

This module creates and configures the FastAPI application with all middleware,
routes, and lifecycle management.
"""

import asyncio
import logging
import os
import signal
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from openai import AsyncOpenAI

from assistant_chat_service.assistants.catalog import AssistantCatalog
from assistant_chat_service.assistants.routes import assistants_router
from assistant_chat_service.assistants.tools import build_tool_registry
from assistant_chat_service.platform.clients.assistants import (
    ChatOrchestrator,
    OpenAIAssistantProvider,
)
from assistant_chat_service.platform.constants import USER_AGENT
from assistant_chat_service.platform.database.repositories import ConversationRepository
from assistant_chat_service.platform.database.setup import close_db, setup_db
from assistant_chat_service.platform.observability import errors as bugsnag
from assistant_chat_service.platform.observability.logging import configure_logging
from assistant_chat_service.platform.observability.metrics import prometheus_middleware
from assistant_chat_service.platform.server.exception_handlers import register_exception_handlers
from assistant_chat_service.platform.server.health import HealthCheck, metadata
from assistant_chat_service.platform.server.middlewares import CorrelationIdMiddleware
from assistant_chat_service.platform.server.routes import root as root_router
from assistant_chat_service.platform.server.routes.conversations import conversations_router
from assistant_chat_service.platform.settings import Settings

logger = logging.getLogger(__name__)


def build_orchestrator(app: FastAPI, settings: Settings) -> ChatOrchestrator | None:
    """Create the provider client and the orchestrator around it.

    Returns None when provider credentials are missing; chat requests then
    fail fast with a configuration error while the rest of the service runs.
    """
    if not settings.openai.is_configured:
        logger.warning("OpenAI API key is not configured; chat endpoints will be unavailable")
        return None

    app.state.openai_client = AsyncOpenAI(
        api_key=settings.openai.api_key,
        base_url=settings.openai.base_url,
        timeout=settings.openai.timeout_seconds,
        max_retries=settings.openai.max_retries,
        default_headers={"User-Agent": USER_AGENT},
        http_client=app.state.http_client,
    )
    return ChatOrchestrator(
        provider=OpenAIAssistantProvider(app.state.openai_client),
        directory=app.state.catalog,
        registry=app.state.tool_registry,
        config=settings.run.driver_config(),
        store=app.state.conversation_repository,
    )


def lifespan_closure(settings):
    @asynccontextmanager
    async def lifespan(app):
        """
        Use this to initialize all of the singleton dependencies and shared
        objects.  i.e. db, reporters, bugsnag, etc
        """
        if settings.bugsnag.release_stage in ["production", "development"]:
            signal_handler = SignalHandler(app)
            signal_handler.register_signal_handler()
        await bugsnag.initialize_bugsnag(
            settings.bugsnag.api_key,
            settings.bugsnag.release_stage,
        )

        # Configure structured logging (JSON in prod/dev, console in local)
        if settings.app_http.log_json is not None:
            json_output = settings.app_http.log_json
        else:
            json_output = settings.bugsnag.release_stage != "local"
        configure_logging(settings.app_http.log_level, json_output=json_output)

        # Store settings in app.state for setup_db to access
        app.state.settings = settings

        # Shared HTTP client for the completion provider
        app.state.http_client = httpx.AsyncClient(
            timeout=settings.openai.timeout_seconds,
            limits=httpx.Limits(max_keepalive_connections=20, max_connections=100),
        )

        # Initialize database (conversation store)
        await setup_db(app)
        app.state.conversation_repository = ConversationRepository(app.state.db_engine)

        app.state.catalog = AssistantCatalog.from_settings(settings.assistants)
        app.state.tool_registry = build_tool_registry(app.state.conversation_repository)
        app.state.orchestrator = build_orchestrator(app, settings)
        app.state.default_strategy = settings.run.default_strategy
        metadata.register_chat(
            [entry.id for entry in app.state.catalog.list() if entry.is_configured],
            chat_enabled=app.state.orchestrator is not None,
            default_strategy=settings.run.default_strategy.value,
        )

        HealthCheck.enable()
        yield

    return lifespan


def create_app(settings: Settings):
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings instance

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(lifespan=lifespan_closure(settings))
    app.add_middleware(CorrelationIdMiddleware)
    app.middleware("http")(prometheus_middleware)
    register_exception_handlers(app)

    # Include platform routes (health, metrics)
    app.include_router(root_router)

    # Include chat routes
    app.include_router(assistants_router)

    # Include platform routes for debugging/inspection
    app.include_router(conversations_router)

    return app


class SignalHandler:
    def __init__(self, app: FastAPI):
        self.app = app

    async def handle_exit(self):
        """
        Handle the exit of the server
        Do NOT use FastAPI @app.on_event("shutdown") or lifespan
        The problem with this method is, it is invoked *after* server
        stops accepting request, so it does not give us any time to
        drain requests in progress and DNS cache to refresh
        """
        HealthCheck.disable()
        for i in range(20):
            logging.info("Shutting down...")
            await asyncio.sleep(1)

        # Close provider HTTP client
        if hasattr(self.app.state, "http_client"):
            await self.app.state.http_client.aclose()

        await close_db(self.app)

        # stop service successfully
        os.kill(os.getpid(), signal.SIGUSR1)

    def signal_handler(self):
        """
        Signal handler function
        """
        asyncio.create_task(self.handle_exit())

    def register_signal_handler(self) -> None:
        """
        Register signal handlers for the server
        """
        loop = asyncio.get_running_loop()
        for sig in [signal.SIGINT, signal.SIGTERM]:
            loop.add_signal_handler(sig, self.signal_handler)
