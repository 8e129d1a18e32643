"""Database configuration and session management for click logging.

This module provides SQLAlchemy async engine setup, session management,
and database lifecycle operations using PostgreSQL as the backend. It is only
exercised when ``CLICK_SINK=database``.

Flow Diagram — Click Write
==========================
::
    ┌─────────────┐
    │ ClickRecorder│
    │ task         │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ async_session│
    │ ()           │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ add + commit │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Auto-close   │
    │ (async with) │
    └─────────────┘

How to Use
===========
**Step 1 — Initialize on startup**::
    await init_db()  # Creates the clicks table

**Step 2 — Open a session**::
    async with async_session() as session:
        session.add(ClickLog.from_record(record))
        await session.commit()

**Step 3 — Cleanup on shutdown**::
    await close_db()

Key Behaviours
===============
- The engine is created at import but connects lazily.
- Tables are created by ``init_db()`` when the database sink starts.
- Engine is disposed on application shutdown.

Classes:
    Base:  SQLAlchemy declarative base for all models.

Functions:
    init_db():  Creates all tables on startup.
    close_db():  Disposes the engine on shutdown.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from golink.config import get_settings

__all__ = ["Base", "async_session", "init_db", "close_db"]

settings = get_settings()

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_pre_ping=True,
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def init_db() -> None:
    # Register models on Base.metadata before create_all.
    import golink.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
