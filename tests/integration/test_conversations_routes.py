"""Integration tests for the conversation inspection endpoint."""

from datetime import UTC, datetime
from unittest.mock import Mock

from fastapi.testclient import TestClient

from assistant_chat_service.platform.database.repositories import (
    PaginatedResult,
    Pagination,
    StoredMessage,
)


def stored(message_id: str, role: str, content: str) -> StoredMessage:
    return StoredMessage(
        id=message_id,
        thread_id="thread_1",
        role=role,
        content=content,
        created_at=datetime(2024, 5, 1, 12, 0, tzinfo=UTC),
        run_id="run_1" if role == "assistant" else None,
        assistant_ref="general",
    )


class TestGetConversation:
    """Tests for GET /conversations/{thread_id}."""

    def test_returns_page(self, client: TestClient, stub_repository: Mock):
        """Stored messages are returned oldest first with paging metadata."""
        stub_repository.list_thread.return_value = PaginatedResult(
            items=[stored("msg_1", "user", "Hi"), stored("msg_2", "assistant", "Hello")],
            total=2,
            page=1,
            page_size=20,
        )

        response = client.get("/conversations/thread_1")

        assert response.status_code == 200
        body = response.json()
        assert body["thread_id"] == "thread_1"
        assert [item["role"] for item in body["items"]] == ["user", "assistant"]
        assert body["items"][1]["run_id"] == "run_1"
        assert body["total"] == 2
        assert body["total_pages"] == 1
        stub_repository.list_thread.assert_awaited_once_with("thread_1", Pagination(1, 20))

    def test_pagination_params(self, client: TestClient, stub_repository: Mock):
        stub_repository.list_thread.return_value = PaginatedResult(
            items=[stored("msg_3", "user", "More")], total=3, page=2, page_size=2
        )

        response = client.get("/conversations/thread_1", params={"page": 2, "page_size": 2})

        assert response.json()["total_pages"] == 2
        stub_repository.list_thread.assert_awaited_once_with("thread_1", Pagination(2, 2))

    def test_page_size_capped(self, client: TestClient):
        response = client.get("/conversations/thread_1", params={"page_size": 101})
        assert response.status_code == 400

    def test_unknown_thread(self, client: TestClient, stub_repository: Mock):
        stub_repository.list_thread.return_value = PaginatedResult(
            items=[], total=0, page=1, page_size=20
        )

        response = client.get("/conversations/thread_missing")

        assert response.status_code == 404
        assert response.json() == {"detail": "Conversation not found"}
