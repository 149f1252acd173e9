from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tictactoe.create_db_engine import engine

# Centralized session factory to avoid creating it in router modules.
Session = async_sessionmaker(
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)
