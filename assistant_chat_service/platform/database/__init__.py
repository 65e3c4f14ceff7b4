"""Database infrastructure module.

This module provides database connectivity and persistence:
- Database engine management
- Connection setup/teardown
- SQLAlchemy table definitions
"""

from assistant_chat_service.platform.database.engine import DbEngine
from assistant_chat_service.platform.database.setup import close_db, setup_db
from assistant_chat_service.platform.database.tables import conversation_messages, db_metadata

__all__ = [
    "DbEngine",
    "setup_db",
    "close_db",
    "conversation_messages",
    "db_metadata",
]
