"""
Database configuration and session management.
Uses SQLAlchemy 2.x; SQLite for development, PostgreSQL in production.
"""

from sqlalchemy import JSON, create_engine
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import settings
from app.logging_config import get_logger

logger = get_logger(__name__)

# SQLAlchemy Base for ORM models
Base = declarative_base()

# Portable JSON column: JSONB on PostgreSQL, JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")

def _engine_kwargs() -> dict:
    if settings.is_sqlite:
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}

engine = create_engine(
    settings.database_url,
    echo=False,
    **_engine_kwargs(),
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def init_db() -> None:
    """
    Create database tables.
    Tables are created at startup; there is no migration tool.
    """
    # Import models so they register on Base.metadata
    import app.models  # noqa: F401

    logger.info("initializing_database_tables")
    Base.metadata.create_all(bind=engine)
    logger.info("database_tables_created")
