from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from growthforge.config import get_settings
from growthforge.utils.logger import logger

settings = get_settings()


def _engine_options(url: str) -> dict:
    options = {"echo": settings.debug}
    if url.startswith("sqlite"):
        # Local SQLite file lives under ./database
        if ":memory:" not in url and "///" in url:
            Path(url.split("///", 1)[1]).parent.mkdir(parents=True, exist_ok=True)
    else:
        options.update(
            pool_pre_ping=True,  # Detect and recycle stale/broken connections
            pool_recycle=300,  # Recycle connections every 5 minutes
        )
    return options


# Create async engine
engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# Create session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# Base class for models
Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, the convention for every DateTime column here"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# Dependency for FastAPI routes
async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


def get_session_factory() -> async_sessionmaker:
    """For handlers that need several independent sessions (concurrent reads)"""
    return AsyncSessionLocal


# Initialize database (create tables)
async def init_db(bind=None):
    """Create all database tables"""
    # Import models to register them with Base
    from growthforge.models import user, skill_assessment, growth_item, reflection, mental_model_session  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables created")
