"""Unit tests for the search_messages tool."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock

import pytest
from pydantic import ValidationError

from assistant_chat_service.assistants.tools import build_tool_registry
from assistant_chat_service.assistants.tools.search_messages import (
    NO_MESSAGES_FOUND,
    TOOL_NAME,
    SearchMessagesArguments,
    create_search_messages_tool,
    parse_filters,
)
from assistant_chat_service.platform.database.repositories import (
    FilterOperator,
    MessageFilter,
    StoredMessage,
)


@pytest.fixture
def repository() -> Mock:
    repository = Mock()
    repository.search = AsyncMock(return_value=[])
    return repository


class TestParseFilters:
    """Tests for the filter grammar."""

    def test_plain_value_is_equality(self):
        assert parse_filters({"role": "user"}) == [
            MessageFilter("role", FilterOperator.EQ, "user")
        ]

    def test_contains(self):
        assert parse_filters({"content": {"contains": "refund"}}) == [
            MessageFilter("content", FilterOperator.CONTAINS, "refund")
        ]

    def test_created_at_range(self):
        """Dates are parsed from ISO 8601 and several operators may be combined."""
        filters = parse_filters(
            {"created_at": {"gte": "2024-01-01T00:00:00+00:00", "lt": "2024-02-01"}}
        )

        assert [f.operator for f in filters] == [FilterOperator.GTE, FilterOperator.LT]
        assert filters[0].value == datetime(2024, 1, 1, tzinfo=UTC)
        assert filters[1].value == datetime(2024, 2, 1)

    def test_multiple_fields(self):
        filters = parse_filters({"role": "assistant", "thread_id": "thread_1"})
        assert {f.field for f in filters} == {"role", "thread_id"}

    def test_empty(self):
        assert parse_filters({}) == []

    @pytest.mark.parametrize(
        "raw",
        [
            {"password": "x"},  # Unknown field
            {"role": {"like": "u%"}},  # Unknown operator
            {"role": ["user", "assistant"]},  # Lists
            {"role": {}},  # Empty condition
            {"content": {"contains": ""}},  # Empty substring
            {"created_at": {"contains": "2024"}},  # Substring on dates
            {"created_at": "yesterday"},  # Not ISO 8601
            {"created_at": {"gte": 1714564800}},  # Not a string
            {"role": {"eq": {"nested": True}}},  # Non-scalar
            {"content": {"gt": 5}},  # Range needs a string
        ],
    )
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            parse_filters(raw)


class TestSearchMessagesArguments:
    """Tests for the tool's argument model."""

    def test_defaults(self):
        args = SearchMessagesArguments()
        assert args.filters == {}
        assert args.limit == 100

    def test_invalid_filters_rejected(self):
        with pytest.raises(ValidationError):
            SearchMessagesArguments(filters={"password": "x"})

    def test_extra_keys_rejected(self):
        with pytest.raises(ValidationError):
            SearchMessagesArguments(query="hello")  # type: ignore[call-arg]


class TestSearchMessagesTool:
    """Tests for the tool executor."""

    async def test_no_matches(self, repository: Mock):
        """An empty result is reported as a message, not an empty list."""
        tool = create_search_messages_tool(repository)

        result = await tool.executor(SearchMessagesArguments(filters={"role": "user"}, limit=5))

        assert result == {"message": NO_MESSAGES_FOUND}
        filters, limit = repository.search.await_args.args
        assert filters == [MessageFilter("role", FilterOperator.EQ, "user")]
        assert limit == 5

    async def test_matches(self, repository: Mock):
        """Matches carry only role, content and timestamp; the thread id is not exposed."""
        repository.search.return_value = [
            StoredMessage(
                id="msg_1",
                thread_id="thread_1",
                role="user",
                content="Where is my refund?",
                created_at=datetime(2024, 5, 1, 12, 0, tzinfo=UTC),
            )
        ]
        tool = create_search_messages_tool(repository)

        result = await tool.executor(SearchMessagesArguments())

        assert result == [
            {
                "role": "user",
                "content": "Where is my refund?",
                "created_at": "2024-05-01T12:00:00+00:00",
            }
        ]

    def test_schema(self, repository: Mock):
        """The exported schema is closed and declares limit."""
        schema = create_search_messages_tool(repository).schema()

        assert schema["function"]["name"] == TOOL_NAME
        parameters = schema["function"]["parameters"]
        assert parameters["additionalProperties"] is False
        assert set(parameters["properties"]) == {"filters", "limit"}

    def test_registered(self, repository: Mock):
        registry = build_tool_registry(repository)
        assert registry.names() == [TOOL_NAME]
        assert registry.get(TOOL_NAME).accepts_limit is True  # type: ignore[union-attr]
