"""
Pytest configuration: throwaway SQLite databases and the in-process cache.
"""
import asyncio
import os
import tempfile
from pathlib import Path

import pytest

# Settings are read at import time, so this must happen before any tictactoe import.
TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="tictactoe-test-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_DIR / 'app.sqlite3'}"
os.environ["CACHE_BACKEND"] = "local"

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

from tictactoe.create_db_engine import build_engine  # noqa: E402
from tictactoe.game_cache import LocalGameCache  # noqa: E402
from tictactoe.models.schemas import Base  # noqa: E402
from tictactoe.services.game_coordinator import GameCoordinator  # noqa: E402
from tictactoe.services.game_db import GameRepository  # noqa: E402


async def _create_tables(engine):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture
def repository(tmp_path):
    """A GameRepository over a fresh SQLite file per test."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'games.sqlite3'}")
    asyncio.run(_create_tables(engine))
    yield GameRepository(
        async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    )
    asyncio.run(engine.dispose())


@pytest.fixture
def cache():
    return LocalGameCache(ttl_sec=60)


@pytest.fixture
def coordinator(repository, cache):
    return GameCoordinator(
        repository, cache, storage_timeout=5.0, lock_timeout=5.0, max_attempts=3
    )


@pytest.fixture(scope="session")
def client():
    from fastapi.testclient import TestClient
    from tictactoe.main import app

    with TestClient(app) as test_client:
        yield test_client
