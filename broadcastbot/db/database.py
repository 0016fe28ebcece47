from typing import Optional
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from broadcastbot.config.settings import settings

def build_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """
    Create the async engine.

    DATABASE_URL must use an async driver, e.g. sqlite+aiosqlite:///... or postgresql+asyncpg://...
    """
    return create_async_engine(
        database_url or settings.DATABASE_URL,
        echo=False, # Set to True for SQL logging
        future=True
    )

def build_session_maker(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

async def init_db(engine: AsyncEngine):
    """
    Creates the memory tables if they do not exist.
    """
    from sqlmodel import SQLModel
    # Import schemas so they are registered with SQLModel
    from broadcastbot.db import schemas

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
