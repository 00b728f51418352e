import logging, time
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncEngine, AsyncSession
from sqlalchemy import text, event
from sqlalchemy.pool import NullPool
from contextlib import asynccontextmanager
from fastapi import Request

from .config import Settings

log = logging.getLogger("findme_otp.sql")


def build_engine(settings: Settings) -> AsyncEngine:
    kwargs = {"future": True, "pool_pre_ping": True}
    if settings.DATABASE_URL.startswith("sqlite"):
        # file-backed sqlite (local dev/tests): one connection per session, never shared across loops
        kwargs["poolclass"] = NullPool

    engine = create_async_engine(settings.DATABASE_URL, **kwargs)
    _install_slow_query_log(engine, settings.SLOW_QUERY_MS)
    return engine


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@asynccontextmanager
async def lifespan_db(engine: AsyncEngine):
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        yield
    finally:
        await engine.dispose()


async def db_health(engine: AsyncEngine) -> bool:
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False


async def get_db(request: Request) -> AsyncSession:
    async with request.app.state.sessionmaker() as session:
        yield session


def _install_slow_query_log(engine: AsyncEngine, threshold_ms: int) -> None:
    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        context._query_start_time = time.perf_counter()

    @event.listens_for(engine.sync_engine, "after_cursor_execute")
    def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        elapsed_ms = int((time.perf_counter() - getattr(context, "_query_start_time", time.perf_counter())) * 1000)
        if elapsed_ms >= threshold_ms:
            log.warning("slow_query", extra={"elapsed_ms": elapsed_ms, "sql": statement[:200]})
