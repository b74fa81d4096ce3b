"""
Database configuration and session management.
"""
import os
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings


def build_engine(database_url: str, echo: bool = False):
    """Create an engine for the given URL with SQLite-specific tweaks."""
    if database_url.startswith("sqlite"):
        # Make sure the directory of a file database exists
        path = database_url[len("sqlite:///"):] if database_url.startswith("sqlite:///") else ""
        if path and path != ":memory:" and os.path.dirname(path):
            os.makedirs(os.path.dirname(path), exist_ok=True)
        
        # SQLite configuration with thread safety
        sqlite_engine = create_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={
                "check_same_thread": False,
            },
        )
        
        @event.listens_for(sqlite_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
        
        return sqlite_engine
    
    # PostgreSQL configuration
    return create_engine(database_url, echo=echo)


# Create engine
engine = build_engine(settings.database_url, settings.echo)

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False, 
    autoflush=False, 
    bind=engine
)

# Create declarative base
Base = declarative_base()


def get_db():
    """Get database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """Create all database tables."""
    from . import models  # noqa: F401 - register models on Base.metadata
    Base.metadata.create_all(bind=engine)
