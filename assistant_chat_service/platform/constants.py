"""Service-wide constants."""

SERVICE_NAME = "assistant-chat-service"
USER_AGENT = f"{SERVICE_NAME}/0.1.0"
