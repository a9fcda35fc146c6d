from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from hrportal.core.config import settings


def create_engine(database_url: Optional[str] = None, **overrides) -> AsyncEngine:
    """
    Build the async engine for the configured database.

    Pool options only apply to server databases; SQLite (used by tests and
    local tooling) keeps SQLAlchemy's defaults.
    """
    url = database_url or settings.DATABASE_URL
    options = {"echo": settings.SQLALCHEMY_ECHO}
    if not url.startswith("sqlite"):
        # - pool_pre_ping: verify connections are alive before use
        # - pool_recycle: recycle connections after 1 hour to avoid DB-side timeouts
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
            pool_recycle=3600,
            pool_timeout=30,
        )
    options.update(overrides)
    return create_async_engine(url, **options)


def build_session_factory(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def check_db_connection(engine: AsyncEngine) -> bool:
    """
    Verify database connectivity. Used by health checks.
    Returns True if connection is successful, False otherwise.
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
