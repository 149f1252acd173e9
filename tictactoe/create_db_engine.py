from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from tictactoe.load_settings import database_url


def build_engine(url: str) -> AsyncEngine:
    """Create an async engine for PostgreSQL (asyncpg) or SQLite (aiosqlite)."""
    if url.startswith("sqlite"):
        # aiosqlite connections are bound to the loop that opened them.
        return create_async_engine(url=url, echo=False, poolclass=NullPool)
    return create_async_engine(url, pool_size=20, max_overflow=20)


engine = build_engine(database_url)
