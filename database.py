from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from config import Settings, settings


def _get_engine_kwargs(cfg: Settings):
    """Return dialect-specific engine options for SQLite vs PostgreSQL."""
    kwargs = {"echo": cfg.debug}
    if cfg.is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        # one shared connection keeps an in-memory database alive; a file
        # database gets a connection (and transaction) per session
        if cfg.is_sqlite_memory:
            kwargs["poolclass"] = StaticPool
    return kwargs


def build_engine(cfg: Settings = settings) -> AsyncEngine:
    return create_async_engine(cfg.database_url, **_get_engine_kwargs(cfg))


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


engine = build_engine()
AsyncSessionLocal = build_session_factory(engine)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(bind: AsyncEngine = engine):
    # models must be imported so their tables are registered on Base.metadata
    import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
