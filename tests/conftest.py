from __future__ import annotations

from collections.abc import AsyncGenerator, Iterator
from pathlib import Path

import httpx
import pytest
from alembic import command
from alembic.config import Config

from notes_backend.config import settings
from notes_backend.db import dispose_engine_cache
from notes_backend.integrations.storage.local_storage import LocalObjectStorage


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _dispose_engine_cache_per_test() -> Iterator[None]:  # pyright: ignore[reportUnusedFunction]
    yield
    # Don't let a cached AsyncEngine (aiosqlite worker thread) outlive its test.
    dispose_engine_cache()


def _alembic_upgrade_head() -> None:
    cfg = Config("alembic.ini")
    command.upgrade(cfg, "head")


@pytest.fixture
def migrated_db(tmp_path: Path) -> Iterator[Path]:
    """Point settings at a fresh SQLite file + attachments dir and migrate to head."""
    old_db = settings.database_url
    old_dir = settings.attachments_local_dir
    old_max = settings.attachments_max_size_bytes
    try:
        settings.database_url = f"sqlite:///{tmp_path / 'test-notes.db'}"
        settings.attachments_local_dir = str(tmp_path / "attachments")
        settings.attachments_max_size_bytes = 5 * 1024 * 1024
        dispose_engine_cache()
        _alembic_upgrade_head()
        yield tmp_path
    finally:
        settings.database_url = old_db
        settings.attachments_local_dir = old_dir
        settings.attachments_max_size_bytes = old_max


@pytest.fixture
def storage(migrated_db: Path) -> LocalObjectStorage:
    return LocalObjectStorage(root_dir=settings.attachments_local_dir)


@pytest.fixture
async def client(migrated_db: Path) -> AsyncGenerator[httpx.AsyncClient, None]:
    from notes_backend.main import app  # pyright: ignore[reportMissingTypeStubs]

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
