"""Integration tests for the assistant chat endpoints.

Tests POST /chat, POST /chat/stream, GET /assistants and GET /assistants/tools
with a stubbed orchestrator, plus request validation through a real
orchestrator wired to a stub provider.
"""

import json
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from assistant_chat_service.assistants.catalog import AssistantCatalog
from assistant_chat_service.platform.clients.assistants import (
    ChatOrchestrator,
    ExecutionStrategy,
    RunAlreadyActiveError,
    RunFailedError,
    RunTimeoutError,
    ToolRegistry,
)


def parse_sse(body: str) -> list[dict]:
    return [
        json.loads(line.removeprefix("data: "))
        for line in body.split("\n\n")
        if line.startswith("data: ")
    ]


class TestChatEndpoint:
    """Tests for POST /chat."""

    def test_reply(self, client: TestClient, stub_orchestrator: Mock):
        """A completed turn returns the reply and thread id."""
        response = client.post(
            "/chat",
            json={"assistantId": "general", "message": "Hello", "callerRef": "user-7"},
        )

        assert response.status_code == 200
        assert response.json() == {"reply": "Hello from the assistant", "threadId": "thread_abc"}

        request = stub_orchestrator.reply.await_args.args[0]
        assert request.assistant_ref == "general"
        assert request.message == "Hello"
        assert request.caller_ref == "user-7"
        assert request.thread_id is None

    def test_image_and_thread_forwarded(self, client: TestClient, stub_orchestrator: Mock):
        client.post(
            "/chat",
            json={
                "assistantId": "general",
                "imageBase64": "data:image/png;base64,aGk=",
                "threadId": "thread_old",
            },
        )

        request = stub_orchestrator.reply.await_args.args[0]
        assert request.image_data_url == "data:image/png;base64,aGk="
        assert request.thread_id == "thread_old"

    @pytest.mark.parametrize(
        ("error", "status_code"),
        [
            (RunAlreadyActiveError("thread_abc", "run_1", "in_progress"), 409),
            (RunTimeoutError("run_1", "in_progress", 45, thread_id="thread_abc"), 504),
            (
                RunFailedError(
                    "run_1",
                    "failed",
                    error_message="Rate limit reached",
                    error_code="rate_limit_exceeded",
                    thread_id="thread_abc",
                ),
                500,
            ),
        ],
    )
    def test_orchestration_errors(
        self, client: TestClient, stub_orchestrator: Mock, error, status_code
    ):
        """Orchestration errors are rendered with their status and payload."""
        stub_orchestrator.reply.side_effect = error

        response = client.post("/chat", json={"assistantId": "general", "message": "Hi"})

        assert response.status_code == status_code
        body = response.json()
        assert body["error"] == error.message
        assert body["threadId"] == "thread_abc"

    def test_failed_run_message(self, client: TestClient, stub_orchestrator: Mock):
        stub_orchestrator.reply.side_effect = RunFailedError(
            "run_1", "failed", error_message="Rate limit reached", error_code="rate_limit_exceeded"
        )

        response = client.post("/chat", json={"assistantId": "general", "message": "Hi"})

        assert response.json()["error"] == "Rate limit reached (Code: rate_limit_exceeded)"

    def test_missing_orchestrator(self, test_app: FastAPI, client: TestClient):
        """Without provider credentials chat requests fail with a configuration error."""
        test_app.state.orchestrator = None

        response = client.post("/chat", json={"assistantId": "general", "message": "Hi"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Server configuration error: OpenAI API key is missing."
        }

    def test_malformed_body(self, client: TestClient):
        """Bodies that fail schema validation are rejected with 400."""
        response = client.post("/chat", json={"assistantId": "general", "callerRef": "x" * 200})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"

    def test_unexpected_error(self, test_app: FastAPI, stub_orchestrator: Mock):
        """Unexpected failures are reported as a generic 500 payload."""
        stub_orchestrator.reply.side_effect = RuntimeError("boom")
        client = TestClient(test_app, raise_server_exceptions=False)

        response = client.post("/chat", json={"assistantId": "general", "message": "Hi"})

        assert response.status_code == 500
        assert response.json()["error"] == "Internal server error"

    def test_stream_flag_switches_to_sse(self, client: TestClient, stub_orchestrator: Mock):
        """stream: true answers with Server-Sent Events."""
        response = client.post(
            "/chat", json={"assistantId": "general", "message": "Hi", "stream": True}
        )

        assert response.headers["content-type"].startswith("text/event-stream")
        stub_orchestrator.reply.assert_not_awaited()
        stub_orchestrator.prepare.assert_awaited_once()

    def test_default_strategy_streaming(
        self, test_app: FastAPI, client: TestClient, stub_orchestrator: Mock
    ):
        """Requests without a flag follow the configured default strategy."""
        test_app.state.default_strategy = ExecutionStrategy.STREAMING

        response = client.post("/chat", json={"assistantId": "general", "message": "Hi"})
        assert response.headers["content-type"].startswith("text/event-stream")

        response = client.post(
            "/chat", json={"assistantId": "general", "message": "Hi", "stream": False}
        )
        assert response.json()["reply"] == "Hello from the assistant"


class TestChatValidation:
    """Request validation through a real orchestrator."""

    @pytest.fixture
    def provider(self) -> Mock:
        provider = Mock()
        provider.create_thread = AsyncMock(return_value="thread_new")
        return provider

    @pytest.fixture
    def validating_client(
        self, test_app: FastAPI, stub_catalog: AssistantCatalog, provider: Mock
    ) -> TestClient:
        test_app.state.orchestrator = ChatOrchestrator(provider, stub_catalog, ToolRegistry())
        return TestClient(test_app)

    @pytest.mark.parametrize(
        ("body", "message"),
        [
            ({"message": "Hi"}, "assistantId is required"),
            ({"assistantId": "general"}, "Valid text or image is required"),
            ({"assistantId": "general", "message": "  "}, "Valid text or image is required"),
            ({"assistantId": "general", "message": "Hi", "threadId": 12}, "Invalid threadId"),
        ],
    )
    def test_invalid_requests(self, validating_client: TestClient, provider: Mock, body, message):
        """Invalid requests get 400 before any provider call."""
        response = validating_client.post("/chat", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": message}
        provider.create_thread.assert_not_awaited()

    def test_unknown_assistant(self, validating_client: TestClient):
        response = validating_client.post("/chat", json={"assistantId": "ghost", "message": "Hi"})

        assert response.status_code == 404
        assert response.json() == {"error": "Assistant not found: ghost"}

    def test_unconfigured_assistant(self, validating_client: TestClient):
        response = validating_client.post("/chat", json={"assistantId": "draft", "message": "Hi"})

        assert response.status_code == 500
        assert "missing provider assistant_id" in response.json()["error"]


class TestChatStreamEndpoint:
    """Tests for POST /chat/stream."""

    def test_sse_frames(self, client: TestClient, stub_orchestrator: Mock):
        """Events are framed as SSE data lines ending with stream.ended."""
        response = client.post("/chat/stream", json={"assistantId": "general", "message": "Hi"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        assert response.headers["x-accel-buffering"] == "no"

        frames = parse_sse(response.text)
        assert [f["type"] for f in frames] == ["message.delta", "run.completed", "stream.ended"]
        assert frames[0] == {
            "type": "message.delta",
            "data": {"message_id": "msg_1", "text": "Hi"},
            "threadId": "thread_abc",
        }
        turn = stub_orchestrator.stream.call_args.args[0]
        assert turn.thread_id == "thread_abc"

    def test_prepare_errors_are_json(self, client: TestClient, stub_orchestrator: Mock):
        """Failures before the run starts are regular JSON errors."""
        stub_orchestrator.prepare.side_effect = RunAlreadyActiveError(
            "thread_abc", "run_1", "queued"
        )

        response = client.post(
            "/chat/stream",
            json={"assistantId": "general", "message": "Hi", "threadId": "thread_abc"},
        )

        assert response.status_code == 409
        assert response.json()["details"] == {"run_id": "run_1", "status": "queued"}
        stub_orchestrator.stream.assert_not_called()


class TestCatalogEndpoints:
    """Tests for GET /assistants and GET /assistants/tools."""

    def test_list_assistants(self, client: TestClient):
        response = client.get("/assistants")

        assert response.status_code == 200
        assert response.json() == [
            {"id": "general", "name": "General", "description": "Answers anything", "configured": True},
            {"id": "draft", "name": "Draft", "description": "", "configured": False},
        ]

    def test_list_tools(self, client: TestClient):
        response = client.get("/assistants/tools")

        assert response.status_code == 200
        tools = response.json()
        assert [t["function"]["name"] for t in tools] == ["search_messages"]
        assert tools[0]["function"]["parameters"]["additionalProperties"] is False
