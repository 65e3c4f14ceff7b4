"""Application settings and configuration.

This module provides Pydantic settings classes for application configuration,
loaded from environment variables with support for nested configuration.
"""

import logging

import pydantic_settings
from pydantic import BaseModel, Field, field_validator

from assistant_chat_service.platform.clients.assistants.config import (
    ExecutionStrategy,
    RunDriverConfig,
)


class DBPoolSettings(BaseModel):
    """Connection pool sizing for the conversation store."""

    size: int = Field(5, ge=1)
    max_overflow: int = Field(5, ge=0)
    timeout_seconds: int = Field(60, ge=1)
    recycle_seconds: int = Field(120, ge=1)


class DBConnectionSettings(BaseModel):
    host: str
    port: int
    user: str
    password: str
    database: str
    echo: bool = False
    pool: DBPoolSettings = DBPoolSettings()

    def connect_kwargs(self) -> dict:
        return self.model_dump(exclude={"pool"})


class AppHTTPSettings(BaseModel):
    url: str = Field("")
    host: str = Field("0.0.0.0")
    port: int = Field(8000)
    log_level: str = Field("INFO")
    log_json: bool | None = Field(
        None, description="Override log format: True=JSON, False=console, None=auto"
    )

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v):
        v_upper = v.upper()
        if v_upper not in logging._nameToLevel:
            raise ValueError(f'invalid value "{v}"')
        return v_upper


class BugsnagSettings(BaseModel):
    api_key: str = Field("")
    release_stage: str = Field("development")

    @field_validator("release_stage")
    @classmethod
    def _validate_bugsnag_release_stage(cls, v):
        if v not in ["development", "production", "local"]:
            raise ValueError(f'invalid bugsnag release stage "{v}"')
        return v


class OpenAISettings(BaseModel):
    """Credentials and transport options for the completion provider.

    An empty ``api_key`` means the provider is not configured; the service
    still boots but every chat request fails fast.
    """

    api_key: str = Field("")
    base_url: str | None = None
    timeout_seconds: float = Field(60.0, gt=0)
    max_retries: int = Field(2, ge=0)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key.strip())


class RunSettings(BaseModel):
    """Run orchestration knobs.

    Attributes:
        poll_interval_seconds: Fixed delay between run status fetches
        max_poll_attempts: Re-fetch budget before a run is reported as timed out
        tool_default_limit: Result cap used when a tool call gives no limit
        tool_max_limit: Hard ceiling applied to any requested tool limit
        cancel_on_timeout: Ask the provider to cancel runs that exceed the budget
        default_strategy: Strategy used by clients that do not pick one
    """

    poll_interval_seconds: float = Field(2.0, gt=0)
    max_poll_attempts: int = Field(45, ge=1)
    tool_default_limit: int = Field(100, ge=1)
    tool_max_limit: int = Field(500, ge=1)
    cancel_on_timeout: bool = True
    default_strategy: ExecutionStrategy = ExecutionStrategy.POLLING

    def driver_config(self) -> RunDriverConfig:
        return RunDriverConfig(
            poll_interval_seconds=self.poll_interval_seconds,
            max_poll_attempts=self.max_poll_attempts,
            tool_default_limit=self.tool_default_limit,
            tool_max_limit=self.tool_max_limit,
            cancel_on_timeout=self.cancel_on_timeout,
        )


class AssistantSettings(BaseModel):
    """A catalog entry exposed to callers.

    Example: ASSISTANTS='[{"id":"general-assistant","assistant_id":"asst_123","name":"General"}]'
    """

    id: str = Field(min_length=1)
    assistant_id: str | None = None
    name: str = ""
    description: str = ""


class Settings(pydantic_settings.BaseSettings):
    model_config = pydantic_settings.SettingsConfigDict(env_nested_delimiter="__")

    app_http: AppHTTPSettings = AppHTTPSettings()
    bugsnag: BugsnagSettings = BugsnagSettings()

    # Conversation store
    primary_db: DBConnectionSettings

    # Completion provider
    openai: OpenAISettings = OpenAISettings()

    # Run orchestration
    run: RunSettings = RunSettings()

    # Assistants callers may talk to
    assistants: list[AssistantSettings] = []
