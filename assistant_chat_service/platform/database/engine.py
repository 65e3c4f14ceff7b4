"""Async engine for the conversation store.

DbEngine owns the SQLAlchemy pool for the PostgreSQL database that records
chat messages. Connecting is retried a few times so the service can start
while the database is still coming up.
"""

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, ClassVar, Protocol, TypeVar, cast

import sqlalchemy as sa
import tenacity
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.sql.selectable import TypedReturnsRows

logger = logging.getLogger(__name__)

_T = TypeVar("_T", bound=Any)
AsyncSessionMaker = Callable[[], AsyncSession]


class DbSession(Protocol):
    async def execute(
        self,
        query: TypedReturnsRows | sa.Insert | sa.Delete | sa.Update | sa.TextClause,
        *args,
        **kwargs,
    ) -> sa.Result[_T]: ...


@dataclass
class DbEngine:
    """Async database engine for the conversation store.

    Attributes:
        instance_name: Label used in logs and errors
        app_name: Reported to PostgreSQL as application_name
        pool_size: Persistent connections kept in the pool
        max_overflow: Extra connections allowed under load
        timeout: Seconds to wait for a free connection
        recycle: Seconds after which a pooled connection is replaced
    """

    instance_name: str
    app_name: str
    pool_size: int = 10
    max_overflow: int = 5
    timeout: int = 60
    recycle: int = 120
    _engine: AsyncEngine | None = field(init=False, default=None)

    SCHEMA: ClassVar[str] = "postgresql+psycopg"

    @tenacity.retry(
        wait=tenacity.wait_fixed(2),
        stop=(tenacity.stop_after_attempt(3) | tenacity.stop_after_delay(10)),
        retry=tenacity.retry_if_not_exception_type(RuntimeError),
        before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def connect(
        self,
        *,
        user: str,
        password: str,
        host: str,
        port: int,
        database: str,
        echo: bool = False,
    ) -> AsyncEngine:
        if self._engine is not None:
            return self._engine

        db_uri = f"{self.SCHEMA}://{user}:{password}@{host}:{port}/{database}"
        engine = create_async_engine(
            db_uri,
            pool_size=self.pool_size,
            max_overflow=self.max_overflow,
            pool_use_lifo=True,
            pool_pre_ping=True,
            pool_recycle=self.recycle,
            pool_timeout=self.timeout,
            echo=echo,
            connect_args={
                "prepare_threshold": None,
                "application_name": self.app_name,
            },
        )

        # Fail fast on bad credentials or an unreachable host
        try:
            async with engine.begin():
                pass
        except Exception:
            await engine.dispose()
            raise

        self._engine = engine
        logger.info(f"Database '{self.instance_name}' connected to {host}:{port}/{database}")
        return self._engine

    async def disconnect(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None

        logger.info(f"Database '{self.instance_name}' disconnected")

    def get_engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError(f"{self.instance_name} database is not connected")
        return self._engine

    def is_connected(self) -> bool:
        """Check if the database is currently connected."""
        return self._engine is not None

    def get_session_maker(self) -> AsyncSessionMaker:
        return async_sessionmaker(self.get_engine(), expire_on_commit=False)

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[DbSession]:
        session_maker = self.get_session_maker()
        async with session_maker() as db_session:
            try:
                yield cast(DbSession, db_session)
                await db_session.commit()
            except Exception:
                await db_session.rollback()
                raise
