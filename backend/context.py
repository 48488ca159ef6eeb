"""
Application context - every process-wide resource in one place.

Built once in the FastAPI lifespan (and once per arq worker process),
stored on `app.state.context`, and handed to handlers via dependencies.

    ctx = await AppContext.create(settings)
    await ctx.health_check()
    await ctx.shutdown()
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from config import Settings
from database import build_engine, build_session_factory, init_db
from middleware.rate_limit import RateLimiter, RedisRateLimiter
from services.supabase_auth import SupabaseAuthClient

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    auth_client: SupabaseAuthClient
    rate_limiter: Any
    queue: Any
    mongo_client: Any = None
    mongo_db: Any = None
    redis: Any = None
    _closed: bool = field(default=False, repr=False)

    @classmethod
    async def create(cls, settings: Settings, *, create_tables: bool = True) -> "AppContext":
        """Open every configured backend. Mongo and Redis are optional."""
        from jobs.queue import JobQueue

        engine = build_engine(settings.database_url, echo=settings.database_echo)
        if create_tables:
            await init_db(engine)

        mongo_client = mongo_db = None
        if settings.mongo_uri:
            from mongo import build_mongo_client, ensure_indexes

            mongo_client = build_mongo_client(settings.mongo_uri, settings.http_timeout_seconds)
            mongo_db = mongo_client[settings.mongo_db_name]
            await ensure_indexes(
                mongo_db,
                message_ttl_days=settings.message_ttl_days,
                activity_log_ttl_days=settings.activity_log_ttl_days,
            )
            logger.info(f"MongoDB connected: {settings.mongo_db_name}")
        else:
            logger.warning("MONGO_URI not set - chat, projects and uploads are unavailable")

        redis = None
        if settings.redis_url:
            import redis.asyncio as aioredis

            redis = aioredis.from_url(settings.redis_url, decode_responses=True)
            rate_limiter = RedisRateLimiter(redis)
            queue = await JobQueue.connect(settings.redis_url)
            logger.info("Redis connected (rate limiting + job queues)")
        else:
            rate_limiter = RateLimiter(max_keys=settings.rate_limit_max_keys)
            queue = JobQueue(None)
            logger.warning("REDIS_URL not set - in-memory rate limiting, background jobs disabled")

        auth_client = SupabaseAuthClient(
            settings.supabase_url,
            settings.supabase_anon_key,
            settings.supabase_service_role_key,
            timeout=settings.http_timeout_seconds,
        )

        return cls(
            settings=settings,
            engine=engine,
            session_factory=build_session_factory(engine),
            auth_client=auth_client,
            rate_limiter=rate_limiter,
            queue=queue,
            mongo_client=mongo_client,
            mongo_db=mongo_db,
            redis=redis,
        )

    async def health_check(self) -> dict:
        """
        Probe every configured backend.

        Returns {"healthy": bool, "checks": {name: "ok" | "error: ..." | "not_configured"}}.
        """
        checks: dict[str, str] = {}

        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            checks["database"] = "ok"
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            checks["database"] = f"error: {e}"

        if self.mongo_client is None:
            checks["mongodb"] = "not_configured"
        else:
            try:
                await self.mongo_client.admin.command("ping")
                checks["mongodb"] = "ok"
            except Exception as e:
                logger.error(f"MongoDB health check failed: {e}")
                checks["mongodb"] = f"error: {e}"

        if self.redis is None:
            checks["redis"] = "not_configured"
        else:
            try:
                await self.redis.ping()
                checks["redis"] = "ok"
            except Exception as e:
                logger.error(f"Redis health check failed: {e}")
                checks["redis"] = f"error: {e}"

        healthy = all(v in ("ok", "not_configured") for v in checks.values())
        return {"healthy": healthy, "checks": checks}

    async def shutdown(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self.auth_client.aclose()
        await self.queue.close()
        if self.redis is not None:
            await self.redis.aclose()
        if self.mongo_client is not None:
            self.mongo_client.close()
        await self.engine.dispose()
        logger.info("Application context closed")


# ── Dependencies ────────────────────────────────────────────────────

def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_auth_client(request: Request) -> SupabaseAuthClient:
    return request.app.state.context.auth_client


def get_queue(request: Request):
    return request.app.state.context.queue


def get_mongo_db(request: Request):
    """The document store, or 503 when MongoDB is not configured."""
    from domain.errors import DomainError

    mongo_db = request.app.state.context.mongo_db
    if mongo_db is None:
        raise DomainError("Document store is not configured", status_code=503)
    return mongo_db
