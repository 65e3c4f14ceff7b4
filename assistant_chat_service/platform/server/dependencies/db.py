"""Database dependencies for FastAPI routes."""

from fastapi import Depends, Request

from assistant_chat_service.platform.database.engine import DbEngine
from assistant_chat_service.platform.database.repositories import ConversationRepository


def get_primary_db(request: Request) -> DbEngine:
    """Get the primary database instance."""
    return request.app.state.db_engine


def get_conversation_repository(
    db: DbEngine = Depends(get_primary_db),
) -> ConversationRepository:
    """Get ConversationRepository for querying stored messages."""
    return ConversationRepository(db)
