from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

# Base class for models
Base = declarative_base()


def create_engine_for(database_url: str) -> AsyncEngine:
    """
    Create an async SQLAlchemy engine.

    SQLite (used by the test suite) needs a single shared connection so an
    in-memory database survives across sessions; everything else gets a
    regular connection pool.
    """
    if database_url.startswith("sqlite"):
        return create_async_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_async_engine(
        database_url,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Create a session factory bound to the given engine."""
    return async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables registered on Base."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
