"""Database engine, declarative base and session factory."""
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from advising.config import settings


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


engine = create_async_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)

async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session and always close it."""
    async with async_session_maker() as session:
        yield session


async def init_models() -> None:
    """Create all tables. Intended for development databases."""
    import advising.models  # noqa: F401  registers every mapper on Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
