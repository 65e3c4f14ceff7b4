"""Conversation repository for stored chat messages.

This module implements the Conversation Store the orchestration engine writes
to, plus the read paths used by the message-search tool and the conversation
inspection route.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import insert as pg_insert

from assistant_chat_service.platform.clients.assistants.records import Message
from assistant_chat_service.platform.database.engine import DbEngine
from assistant_chat_service.platform.database.tables import conversation_messages


class FilterOperator(StrEnum):
    EQ = "eq"
    CONTAINS = "contains"
    GTE = "gte"
    GT = "gt"
    LTE = "lte"
    LT = "lt"


SEARCHABLE_FIELDS = frozenset(
    {"role", "thread_id", "caller_ref", "assistant_ref", "run_id", "content", "created_at"}
)


@dataclass(frozen=True)
class MessageFilter:
    """One condition on a stored message column."""

    field: str
    operator: FilterOperator
    value: Any

    def __post_init__(self):
        if self.field not in SEARCHABLE_FIELDS:
            raise ValueError(f"Field '{self.field}' cannot be filtered on")


@dataclass(frozen=True)
class Pagination:
    """Pagination parameters."""

    page: int = 1
    page_size: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass(frozen=True)
class StoredMessage:
    """A message row as read back from the store."""

    id: str
    thread_id: str
    role: str
    content: str
    created_at: datetime
    run_id: str | None = None
    assistant_ref: str | None = None
    caller_ref: str | None = None
    has_attachments: bool = False


@dataclass(frozen=True)
class PaginatedResult:
    """Paginated query result."""

    items: list[StoredMessage]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.total == 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_condition(message_filter: MessageFilter) -> sa.ColumnElement[bool]:
    """Translate a MessageFilter into a SQL condition."""
    column = conversation_messages.c[message_filter.field]
    value = message_filter.value

    match message_filter.operator:
        case FilterOperator.EQ:
            return column == value
        case FilterOperator.CONTAINS:
            return column.ilike(f"%{_escape_like(str(value))}%", escape="\\")
        case FilterOperator.GTE:
            return column >= value
        case FilterOperator.GT:
            return column > value
        case FilterOperator.LTE:
            return column <= value
        case FilterOperator.LT:
            return column < value
    raise ValueError(f"Unsupported operator: {message_filter.operator}")


def _to_stored(row: Any) -> StoredMessage:
    return StoredMessage(
        id=row.id,
        thread_id=row.thread_id,
        role=row.role,
        content=row.content,
        created_at=row.created_at,
        run_id=row.run_id,
        assistant_ref=row.assistant_ref,
        caller_ref=row.caller_ref,
        has_attachments=row.has_attachments,
    )


class ConversationRepository:
    """Repository for the append-only conversation message log.

    Implements the Conversation Store interface (``insert``). Inserts are
    idempotent on the message id so a re-delivered completion is stored once.
    """

    def __init__(self, db_engine: DbEngine) -> None:
        self._db = db_engine

    async def insert(self, message: Message) -> None:
        """Append a message to the log."""
        statement = (
            pg_insert(conversation_messages)
            .values(
                id=message.id,
                thread_id=message.thread_id,
                run_id=message.run_id,
                assistant_ref=message.assistant_ref,
                caller_ref=message.caller_ref,
                role=message.role,
                content=message.content,
                has_attachments=bool(message.attachments),
                created_at=message.created_at,
            )
            .on_conflict_do_nothing(index_elements=[conversation_messages.c.id])
        )
        async with self._db.get_session() as session:
            await session.execute(statement)

    async def search(self, filters: Sequence[MessageFilter], limit: int) -> list[StoredMessage]:
        """Return messages matching every filter, most recent first.

        Args:
            filters: Conditions combined with AND; empty matches everything
            limit: Maximum number of rows

        Returns:
            Matching messages ordered by creation time, newest first
        """
        query = (
            sa.select(conversation_messages)
            .where(sa.and_(sa.true(), *(build_condition(f) for f in filters)))
            .order_by(conversation_messages.c.created_at.desc())
            .limit(limit)
        )
        async with self._db.get_session() as session:
            result = await session.execute(query)
            rows = result.fetchall()
        return [_to_stored(row) for row in rows]

    async def list_thread(self, thread_id: str, pagination: Pagination) -> PaginatedResult:
        """List a thread's messages in chronological order.

        Args:
            thread_id: Provider thread id
            pagination: Page number and size

        Returns:
            One page of messages and the thread's total message count
        """
        where = conversation_messages.c.thread_id == thread_id
        query = (
            sa.select(conversation_messages)
            .where(where)
            .order_by(conversation_messages.c.created_at.asc(), conversation_messages.c.id.asc())
            .limit(pagination.page_size)
            .offset(pagination.offset)
        )
        count_query = sa.select(sa.func.count()).select_from(conversation_messages).where(where)

        async with self._db.get_session() as session:
            result = await session.execute(query)
            rows = result.fetchall()

            count_result = await session.execute(count_query)
            total = count_result.scalar() or 0

        return PaginatedResult(
            items=[_to_stored(row) for row in rows],
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
        )
