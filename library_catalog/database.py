"""
Database Configuration Module

Sets up SQLAlchemy 2.0 for the catalog and credential stores.

Session Management Pattern
==========================
We use the "session per request" pattern:
1. Request arrives → create a new session
2. Every resolver in that request shares the session
3. Services commit on success, roll back on constraint failures
4. Session is closed when the request ends

The session is provided through FastAPI's dependency injection, which
also makes it easy to swap for a test database.
"""

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from library_catalog.config import get_settings

settings = get_settings()


# =============================================================================
# Database Engine
# =============================================================================
# pool_pre_ping tests connection health before use; echo logs SQL in debug.
# SQLite (local development) uses its own pool and needs cross-thread access
# because FastAPI may run the request on a worker thread.

engine_options: dict = {
    "pool_pre_ping": True,
    "echo": settings.debug,
}
if settings.is_sqlite:
    engine_options["connect_args"] = {"check_same_thread": False}
else:
    engine_options["pool_size"] = settings.db_pool_size
    engine_options["max_overflow"] = settings.db_max_overflow

engine = create_engine(settings.database_url, **engine_options)


# =============================================================================
# Session Factory
# =============================================================================
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# =============================================================================
# Base Model Class
# =============================================================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Alembic uses Base.metadata to discover tables for migrations.
    """
    pass


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Creates a session, yields it to the request, and closes it when the
    request ends, even if an exception occurred.

    Yields:
        SQLAlchemy Session instance
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =============================================================================
# Utility Functions
# =============================================================================
def create_tables() -> None:
    """
    Create all database tables.

    Useful for local development and tests. Production deployments
    should run Alembic migrations instead.
    """
    # Models must be imported so they're registered on Base.metadata
    import library_catalog.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    """
    Drop all database tables.

    DANGER: This deletes all data! Only use in development.
    """
    import library_catalog.models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
