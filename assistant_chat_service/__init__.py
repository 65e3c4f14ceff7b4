"""assistant-chat-service - Chat gateway running conversation turns on hosted LLM assistants."""

from .platform.server.app import create_app
from .platform.settings import Settings


def app():
    """Create the FastAPI application instance."""
    settings = Settings()
    return create_app(settings)
