"""Database engine, session factory and declarative base using SQLAlchemy async ORM"""
import uuid
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import Column, DateTime
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from skillbridge.core.config import Settings


def generate_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


# Base class for declarative models
Base = declarative_base()


class Database:
    """Store handle: one async engine plus its session factory.

    Created once by the application factory and kept on ``app.state`` so that
    tests can hand in an engine of their own.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        options = {"echo": settings.DATABASE_ECHO, "pool_pre_ping": True}
        if settings.DATABASE_ISOLATION_LEVEL:
            options["isolation_level"] = settings.DATABASE_ISOLATION_LEVEL
        return cls(create_async_engine(settings.async_database_url, **options))

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield one session per request; anything left uncommitted is rolled back"""
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
