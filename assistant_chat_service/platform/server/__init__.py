"""HTTP server infrastructure module.

This module provides the FastAPI application factory and HTTP-related utilities:
- Application factory and exception handlers
- Route handlers
- FastAPI dependencies
- Health checks
"""

from assistant_chat_service.platform.server.app import create_app
from assistant_chat_service.platform.server.health import HealthCheck

__all__ = [
    "create_app",
    "HealthCheck",
]
