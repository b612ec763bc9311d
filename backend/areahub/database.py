"""Async SQLAlchemy engine, session helpers, and the declarative base."""

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from areahub.config import settings


def engine_options(url: str) -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine`` suited to the URL's dialect.

    Connection-pool sizing only applies to server databases; SQLite (used for
    local runs and tests) gets a thread-agnostic connection instead.
    """
    if url.startswith("sqlite"):
        return {"echo": settings.debug, "connect_args": {"check_same_thread": False}}
    return {"echo": settings.debug, "pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}


engine = create_async_engine(settings.async_database_url, **engine_options(settings.async_database_url))

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for areas and bookings."""


class TimestampMixin:
    """created_at / updated_at maintained by the database."""

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )


class UUIDPrimaryKeyMixin:
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """One unit of work: commit when the block succeeds, roll back otherwise."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency wrapping each request in :func:`session_scope`.

    Usage::

        @router.get("/areas/{area_id}")
        async def get_area(area_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
            ...
    """
    async with session_scope() as session:
        yield session
