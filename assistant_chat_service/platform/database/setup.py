"""Conversation store lifecycle hooks for the FastAPI lifespan."""

import logging

from fastapi import FastAPI

from assistant_chat_service.platform.constants import SERVICE_NAME

from .engine import DbEngine

logger = logging.getLogger(__name__)


async def setup_db(app: FastAPI) -> None:
    """Connect the conversation store and expose it as ``app.state.db_engine``."""
    db_settings = app.state.settings.primary_db
    pool = db_settings.pool
    logger.info(f"Setting up conversation store (pool size {pool.size})...")

    db_engine = DbEngine(
        instance_name="Primary",
        app_name=SERVICE_NAME,
        pool_size=pool.size,
        max_overflow=pool.max_overflow,
        timeout=pool.timeout_seconds,
        recycle=pool.recycle_seconds,
    )
    app.state.db_engine = db_engine
    await db_engine.connect(**db_settings.connect_kwargs())

    logger.info("Conversation store ready")


async def close_db(app: FastAPI) -> None:
    logger.info("Closing conversation store...")

    if getattr(app.state, "db_engine", None):
        await app.state.db_engine.disconnect()
    app.state.db_engine = None

    logger.info("Conversation store closed")
