"""Database repositories for data access abstraction."""

from assistant_chat_service.platform.database.repositories.conversations import (
    SEARCHABLE_FIELDS,
    ConversationRepository,
    FilterOperator,
    MessageFilter,
    PaginatedResult,
    Pagination,
    StoredMessage,
)

__all__ = [
    "SEARCHABLE_FIELDS",
    "ConversationRepository",
    "FilterOperator",
    "MessageFilter",
    "PaginatedResult",
    "Pagination",
    "StoredMessage",
]
