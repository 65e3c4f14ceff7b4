"""Message search tool backed by the conversation store."""

import logging
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from assistant_chat_service.platform.clients.assistants.tools import RegisteredTool
from assistant_chat_service.platform.database.repositories import (
    SEARCHABLE_FIELDS,
    ConversationRepository,
    FilterOperator,
    MessageFilter,
)

logger = logging.getLogger(__name__)

TOOL_NAME = "search_messages"

NO_MESSAGES_FOUND = "No messages found matching the given filters."

_RANGE_OPERATORS = frozenset(
    {FilterOperator.GTE, FilterOperator.GT, FilterOperator.LTE, FilterOperator.LT}
)


def parse_filters(raw: dict[str, Any]) -> list[MessageFilter]:
    """Translate the tool's filter object into repository filters.

    Grammar, per field:
        "role": "user"                         -> equality
        "content": {"contains": "refund"}      -> case-insensitive substring
        "created_at": {"gte": "2024-01-01"}    -> range (gte, gt, lte, lt)

    Raises:
        ValueError: On unknown fields, unknown operators or bad values
    """
    filters = []
    for field_name, condition in raw.items():
        if field_name not in SEARCHABLE_FIELDS:
            raise ValueError(
                f"unknown field '{field_name}', allowed: {', '.join(sorted(SEARCHABLE_FIELDS))}"
            )

        if isinstance(condition, dict):
            if not condition:
                raise ValueError(f"empty condition for '{field_name}'")
            for op_name, value in condition.items():
                try:
                    operator = FilterOperator(op_name)
                except ValueError:
                    raise ValueError(f"unknown operator '{op_name}' for '{field_name}'") from None
                filters.append(_build_filter(field_name, operator, value))
        elif isinstance(condition, list):
            raise ValueError(f"lists are not supported for '{field_name}'")
        else:
            filters.append(_build_filter(field_name, FilterOperator.EQ, condition))
    return filters


def _build_filter(field_name: str, operator: FilterOperator, value: Any) -> MessageFilter:
    if isinstance(value, (dict, list)):
        raise ValueError(f"value for '{field_name}' must be a scalar")

    if operator == FilterOperator.CONTAINS:
        if field_name == "created_at":
            raise ValueError("'contains' is not supported for 'created_at'")
        if not isinstance(value, str) or not value:
            raise ValueError(f"'contains' for '{field_name}' needs a non-empty string")

    if field_name == "created_at":
        if not isinstance(value, str):
            raise ValueError("'created_at' values must be ISO 8601 strings")
        value = datetime.fromisoformat(value)
    elif operator in _RANGE_OPERATORS and not isinstance(value, str):
        raise ValueError(f"range on '{field_name}' needs a string value")

    return MessageFilter(field=field_name, operator=operator, value=value)


class SearchMessagesArguments(BaseModel):
    model_config = ConfigDict(extra="forbid")

    filters: dict[str, Any] = Field(
        default_factory=dict,
        description=(
            "Conditions on stored messages, combined with AND. Fields: role, thread_id, "
            "caller_ref, assistant_ref, run_id, content, created_at. A plain value means "
            'equality; {"contains": "text"} is a case-insensitive substring match; '
            '{"gte"|"gt"|"lte"|"lt": value} is a range (ISO 8601 for created_at).'
        ),
    )
    limit: int = Field(100, ge=1, description="Maximum number of messages to return (max 500)")

    @field_validator("filters")
    @classmethod
    def _validate_filters(cls, v: dict[str, Any]) -> dict[str, Any]:
        parse_filters(v)
        return v


def create_search_messages_tool(repository: ConversationRepository) -> RegisteredTool:
    """Create the search_messages tool.

    Args:
        repository: Conversation repository to search

    Returns:
        RegisteredTool answering with the most recent matches first
    """

    async def search_messages(args: SearchMessagesArguments) -> Any:
        filters = parse_filters(args.filters)
        logger.debug(f"Searching messages with {len(filters)} filter(s), limit {args.limit}")

        messages = await repository.search(filters, args.limit)
        if not messages:
            return {"message": NO_MESSAGES_FOUND}

        return [
            {
                "role": m.role,
                "content": m.content,
                "created_at": m.created_at.isoformat(),
            }
            for m in messages
        ]

    return RegisteredTool(
        name=TOOL_NAME,
        description=(
            "Search previously stored conversation messages. Returns the most recent "
            "matches first as a list of {role, content, created_at}."
        ),
        arguments=SearchMessagesArguments,
        executor=search_messages,
    )
