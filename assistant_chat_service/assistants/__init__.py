"""Chat endpoints for the catalog assistants."""

from assistant_chat_service.assistants.catalog import AssistantCatalog, CatalogEntry
from assistant_chat_service.assistants.routes import assistants_router

__all__ = [
    "AssistantCatalog",
    "CatalogEntry",
    "assistants_router",
]
