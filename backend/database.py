"""
Database engine and session management for the GigConnect backend.

Uses SQLAlchemy async engine (asyncpg against Supabase Postgres, aiosqlite
locally). The engine is owned by the AppContext; this module only knows how
to build one and how to hand a session to a request.
"""
import logging

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
    pass


# ── Engine ──────────────────────────────────────────────────────────

def to_async_url(raw_url: str) -> str:
    """Map sync driver URLs onto their async drivers."""
    if raw_url.startswith("sqlite:///"):
        return raw_url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql+asyncpg://", 1)
    if raw_url.startswith("postgresql://"):
        return raw_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return raw_url


def build_engine(raw_url: str, echo: bool = False) -> AsyncEngine:
    url = to_async_url(raw_url)
    if url.startswith("sqlite") and ":memory:" in url:
        # One shared connection, otherwise every checkout sees an empty DB
        return create_async_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(url, echo=echo, future=True)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# ── Helpers ─────────────────────────────────────────────────────────

async def init_db(engine: AsyncEngine) -> None:
    """Create all tables. Called once on server startup."""
    # Import models so Base.metadata knows about them
    import db_models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables created (or already exist)")


async def get_db(request: Request) -> AsyncSession:
    """FastAPI dependency - yields an async session from the app context."""
    session_factory = request.app.state.context.session_factory
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
