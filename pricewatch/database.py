"""
Database Setup

SQLAlchemy engine, session factory and declarative base.
The engine is created from DATABASE_URL; hosts that need a different
database build their own factory with create_session_factory().
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from pricewatch.config import DATABASE_URL

Base = declarative_base()


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # Sessions are opened from worker threads during a cycle
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


def create_session_factory(url: str = DATABASE_URL) -> sessionmaker:
    """
    Build a session factory bound to a new engine.

    Args:
        url: SQLAlchemy database URL

    Returns:
        sessionmaker: Factory producing independent sessions
    """
    engine = create_engine(url, **_engine_kwargs(url))
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


engine = create_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(bind=None) -> None:
    """Create all tables (used for SQLite deployments and tests)."""
    import pricewatch.models  # noqa: F401  registers models with Base.metadata

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """
    Yield a database session and close it afterwards.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
