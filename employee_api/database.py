# database.py
from typing import AsyncIterator

from fastapi import Request
from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from .config import Settings


def build_engine(settings: Settings) -> AsyncEngine:
    """Creates the async engine for the configured store."""
    return create_async_engine(settings.database_url, echo=settings.sql_echo, future=True)


def build_session_factory(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_db_and_tables(engine: AsyncEngine):
    """Initializes the database tables."""
    # Registers the table models on SQLModel.metadata
    from . import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_async_session(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency to get an async database session."""
    async with request.app.state.session_factory() as session:
        yield session
