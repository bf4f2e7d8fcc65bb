"""Database engine and session factory."""

from collections.abc import Generator
from functools import lru_cache

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from route_planner.config import Settings, get_settings
from route_planner.db.models import Base


def create_engine_from_settings(settings: Settings) -> Engine:
    """Create SQLAlchemy engine from settings.

    Falls back to a local SQLite file when DATABASE_URL is unset.
    """
    database_url = settings.database_url or settings.sqlite_fallback_url

    # Normalize async driver URLs; the engine is synchronous
    if database_url.startswith("sqlite+aiosqlite://"):
        database_url = database_url.replace("sqlite+aiosqlite://", "sqlite://", 1)
    elif database_url.startswith("postgresql+asyncpg://"):
        database_url = database_url.replace("postgresql+asyncpg://", "postgresql://", 1)

    engine = create_engine(database_url, pool_pre_ping=True, echo=False)

    if database_url.startswith("sqlite"):
        # SQLite only honours ON DELETE CASCADE with foreign keys switched on
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record):  # type: ignore[no-untyped-def]
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create sessionmaker for creating database sessions.

    Args:
        engine: SQLAlchemy engine

    Returns:
        Sessionmaker bound to the engine
    """
    return sessionmaker(bind=engine, expire_on_commit=False)


def create_schema(engine: Engine) -> None:
    """Create all tables (local development; production uses Alembic)."""
    Base.metadata.create_all(engine)


@lru_cache
def get_engine() -> Engine:
    """Get global engine instance."""
    return create_engine_from_settings(get_settings())


def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency for a database session.

    Yields:
        Session instance
    """
    with create_session_factory(get_engine())() as session:
        yield session
