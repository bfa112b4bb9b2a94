from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession

from notes_backend.config import settings
from notes_backend.db_urls import ensure_sqlite_parent_dir, normalize_database_url_for_async

# Keyed by the raw DATABASE_URL so tests can point settings at a fresh file.
_ENGINES: dict[str, AsyncEngine] = {}


def _create_async_engine(database_url: str) -> AsyncEngine:
    ensure_sqlite_parent_dir(database_url)
    url = normalize_database_url_for_async(database_url)
    return create_async_engine(url, echo=False, pool_pre_ping=True)


def get_engine() -> AsyncEngine:
    database_url = settings.database_url
    engine = _ENGINES.get(database_url)
    if engine is None:
        engine = _create_async_engine(database_url)
        _ENGINES[database_url] = engine
    return engine


def dispose_engine_cache() -> None:
    # Sync pool dispose: stops aiosqlite worker threads from keeping the process alive.
    for engine in _ENGINES.values():
        engine.sync_engine.dispose()
    _ENGINES.clear()


def _session_maker() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    async with _session_maker()() as session:
        yield session


async def get_session() -> AsyncIterator[AsyncSession]:
    async with _session_maker()() as session:
        yield session
