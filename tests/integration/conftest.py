"""Integration test fixtures.

This module provides shared fixtures for integration tests including:
- Route/handler tests with a stubbed chat orchestrator (shallow app setup)
- A fake database engine for repository tests
- A stubbed conversation repository for the inspection routes
"""

from collections.abc import AsyncIterator, Generator
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from assistant_chat_service.assistants.catalog import AssistantCatalog, CatalogEntry
from assistant_chat_service.assistants.routes import assistants_router
from assistant_chat_service.assistants.tools import build_tool_registry
from assistant_chat_service.platform.clients.assistants import (
    ChatReply,
    PreparedTurn,
    StreamEvent,
    StreamEventType,
)
from assistant_chat_service.platform.server.dependencies.db import get_conversation_repository
from assistant_chat_service.platform.server.exception_handlers import register_exception_handlers
from assistant_chat_service.platform.server.health import HealthCheck
from assistant_chat_service.platform.server.routes import root as root_router
from assistant_chat_service.platform.server.routes.conversations import conversations_router

THREAD_ID = "thread_abc"

# =============================================================================
# Orchestration Fixtures
# =============================================================================


@pytest.fixture
def stub_catalog() -> AssistantCatalog:
    """Create a catalog with one configured and one unconfigured assistant."""
    return AssistantCatalog(
        [
            CatalogEntry("general", "asst_1", "General", "Answers anything"),
            CatalogEntry("draft", None, "Draft"),
        ]
    )


@pytest.fixture
def stub_stream_events() -> list[StreamEvent]:
    """Create canned relay events for a short streamed reply."""
    return [
        StreamEvent(StreamEventType.MESSAGE_DELTA, {"message_id": "msg_1", "text": "Hi"}, THREAD_ID),
        StreamEvent(
            StreamEventType.RUN_COMPLETED, {"run_id": "run_1", "status": "completed"}, THREAD_ID
        ),
        StreamEvent(
            StreamEventType.STREAM_ENDED, {"run_id": "run_1", "status": "completed"}, THREAD_ID
        ),
    ]


@pytest.fixture
def stub_orchestrator(stub_stream_events: list[StreamEvent]) -> Mock:
    """Create a stub orchestrator with canned replies.

    This is a stub (not a mock) because it primarily provides predetermined
    return values rather than verifying interactions.
    """
    orchestrator = Mock()
    orchestrator.reply = AsyncMock(
        return_value=ChatReply(reply="Hello from the assistant", thread_id=THREAD_ID, run_id="run_1")
    )
    orchestrator.prepare = AsyncMock(
        return_value=PreparedTurn(
            thread_id=THREAD_ID,
            assistant_ref="general",
            assistant_id="asst_1",
            message_id="msg_user",
        )
    )

    async def stream_generator(turn: PreparedTurn) -> AsyncIterator[StreamEvent]:
        for event in stub_stream_events:
            yield event

    orchestrator.stream = Mock(side_effect=stream_generator)
    return orchestrator


@pytest.fixture
def stub_repository() -> Mock:
    """Create a stub conversation repository."""
    repository = Mock()
    repository.insert = AsyncMock()
    repository.search = AsyncMock(return_value=[])
    repository.list_thread = AsyncMock()
    return repository


# =============================================================================
# FastAPI App Fixtures (Shallow - no middleware, minimal lifespan)
# =============================================================================


@pytest.fixture
def test_app(
    stub_orchestrator: Mock,
    stub_catalog: AssistantCatalog,
    stub_repository: Mock,
    fake_db: Mock,
) -> FastAPI:
    """Create a minimal test FastAPI app for integration tests.

    This is intentionally SHALLOW - no middleware, no full lifespan.
    Tests route handlers and their interaction with dependencies.
    """
    app = FastAPI()
    register_exception_handlers(app)

    app.state.orchestrator = stub_orchestrator
    app.state.catalog = stub_catalog
    app.state.tool_registry = build_tool_registry(stub_repository)
    app.state.db_engine = fake_db
    app.dependency_overrides[get_conversation_repository] = lambda: stub_repository

    # Include only the routers being tested
    app.include_router(root_router)
    app.include_router(assistants_router)
    app.include_router(conversations_router)

    return app


@pytest.fixture
def client(test_app: FastAPI) -> TestClient:
    """Create a test client for the test app.

    No context manager needed since we're not using lifespan.
    """
    return TestClient(test_app)


@pytest.fixture
def client_with_health_enabled(test_app: FastAPI) -> Generator[TestClient]:
    """Create a test client with health checks enabled."""
    HealthCheck.enable()
    yield TestClient(test_app)
    HealthCheck.disable()


@pytest.fixture
def client_with_health_disabled(test_app: FastAPI) -> Generator[TestClient]:
    """Create a test client with health checks disabled."""
    HealthCheck.disable()
    yield TestClient(test_app)


@pytest.fixture
def fake_session() -> AsyncMock:
    """Session handed out by fake_db."""
    return AsyncMock()


@pytest.fixture
def fake_db(fake_session: AsyncMock) -> Mock:
    """Create a fake database engine for tests.

    This is a fake (not a mock) because it provides a simplified but
    working implementation of the database interface, suitable for
    testing without a real database connection.

    Example:
        async def test_with_db(fake_db, fake_session):
            async with fake_db.get_session() as session:
                assert session is fake_session
    """
    db = Mock()
    db.instance_name = "test-db"
    db.is_connected = Mock(return_value=True)

    @asynccontextmanager
    async def fake_get_session():
        yield fake_session

    db.get_session = fake_get_session
    db.get_engine = Mock(return_value=Mock())

    return db
