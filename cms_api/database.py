"""
Engine, session factory and the request-scoped ``get_db`` dependency.

A request gets one session and one transaction.  Services only ``flush``;
``get_db`` commits after the endpoint returns and rolls back when anything
raises, so a failed create leaves neither a row nor a consumed sequence
number behind.
"""
from contextlib import asynccontextmanager

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from cms_api.config import settings
from cms_api.middleware import install_query_counter


def _engine_options(url: str) -> dict:
    options = {"echo": settings.DEBUG, "pool_pre_ping": True}
    if make_url(url).get_backend_name() != "sqlite":
        options["pool_size"] = settings.DB_POOL_SIZE
        options["max_overflow"] = settings.DB_MAX_OVERFLOW
    return options


def build_engine(url: str | None = None) -> AsyncEngine:
    """Create an engine for *url* (default: ``settings.DATABASE_URL``) with the query counter attached."""
    url = url or settings.DATABASE_URL
    new_engine = create_async_engine(url, **_engine_options(url))
    install_query_counter(new_engine)
    return new_engine


engine = build_engine()

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


@asynccontextmanager
async def session_scope(factory: async_sessionmaker = async_session):
    """One session, committed on success and rolled back on error."""
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db():
    async with session_scope() as session:
        yield session


async def create_all(bind: AsyncEngine = engine) -> None:
    """Create every table registered on ``Base.metadata`` (local/dev databases only)."""
    import cms_api.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
