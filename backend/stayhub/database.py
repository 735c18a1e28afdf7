"""Async SQLAlchemy engine lifecycle, session scope, and declarative base."""

import contextlib
import uuid
from collections.abc import AsyncIterator
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from stayhub.config import settings


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class TimestampMixin:
    """Mixin that adds created_at and updated_at columns."""

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )


class UUIDPrimaryKeyMixin:
    """Mixin that adds a UUID primary key column."""

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)


class DatabaseSessionManager:
    """Process-wide connection pool with an explicit lifecycle.

    ``init`` is called once at startup, ``session`` scopes one unit of work,
    and ``close`` disposes the pool on shutdown::

        sessionmanager.init(settings.async_database_url)
        async with sessionmanager.session() as db:
            ...
        await sessionmanager.close()
    """

    def __init__(self) -> None:
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    def init(self, url: str) -> None:
        kwargs: dict = {"echo": settings.debug, "pool_pre_ping": True}
        if url.startswith("sqlite"):
            # Busy timeout: how long a write waits on another writer's lock.
            kwargs["connect_args"] = {"timeout": settings.database_command_timeout}
        else:
            kwargs.update(
                pool_size=settings.database_pool_size,
                max_overflow=settings.database_max_overflow,
                pool_timeout=settings.database_pool_timeout,
            )
        if url.startswith("postgresql+asyncpg"):
            # Client-side limit; asyncpg raises TimeoutError when a statement overruns.
            kwargs["connect_args"] = {"command_timeout": settings.database_command_timeout}
        self._engine = create_async_engine(url, **kwargs)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("DatabaseSessionManager is not initialized")
        return self._engine

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None

    @contextlib.asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session; roll back if the block raises."""
        if self._session_factory is None:
            raise RuntimeError("DatabaseSessionManager is not initialized")
        async with self._session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)


sessionmanager = DatabaseSessionManager()


async def get_db() -> AsyncIterator[AsyncSession]:
    """Yield an async database session for FastAPI dependency injection.

    Usage::

        @app.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with sessionmanager.session() as session:
        yield session
        await session.commit()
