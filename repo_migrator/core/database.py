"""Database configuration and session management."""

from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool
from sqlmodel import SQLModel

from repo_migrator.core.config import settings

_engine = None
_session_maker = None


def get_engine():
    """Get or create the engine."""
    global _engine, _session_maker

    if _engine is None:
        database_url = settings.database_url

        engine_kwargs = {}
        if database_url.startswith("sqlite"):
            # Share one connection so in-memory databases survive across sessions
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = True
            if settings.env == "test":
                engine_kwargs["poolclass"] = NullPool

        _engine = create_engine(database_url, echo=False, **engine_kwargs)

        _session_maker = sessionmaker(
            bind=_engine,
            class_=Session,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    return _engine


@contextmanager
def get_session():
    """Get database session."""
    get_engine()  # Ensure engine is initialized

    with _session_maker() as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def create_tables() -> None:
    """Create all database tables."""
    import repo_migrator.models  # noqa: F401  (register table metadata)

    engine = get_engine()
    SQLModel.metadata.create_all(engine)


def clean_database() -> None:
    """Clean all tables before each test."""
    with get_session() as session:
        for table in reversed(SQLModel.metadata.sorted_tables):
            session.execute(text(f'DELETE FROM "{table.name}"'))


def close_db() -> None:
    """Close database connections."""
    global _engine, _session_maker

    if _engine:
        _engine.dispose()
        _engine = None
        _session_maker = None
