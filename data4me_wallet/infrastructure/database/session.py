"""Database engine and session management

The engine and session factory are built by the process entry point
(`create_app`) and handed down explicitly; nothing here is a module global.
"""

from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from data4me_wallet.config import Settings


def build_engine(settings: Settings) -> Engine:
    """Create an engine with connection pooling suited to the backend"""
    if settings.database_url.startswith("sqlite"):
        # Sessions are used from FastAPI's worker threads
        return create_engine(
            settings.database_url,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

    # Recycle after 1 hour to avoid stale connections
    return create_engine(
        settings.database_url,
        pool_pre_ping=True,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_recycle=3600,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency injection for database sessions"""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
