"""
Database session factory and context managers for SQLAlchemy.
"""
import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from config import settings
from services.exceptions import StoreError

logger = logging.getLogger(__name__)

# Lower pool size for small hosted PostgreSQL connection limits
engine = create_engine(
    settings.sqlalchemy_url,
    echo=settings.SQL_ECHO,
    pool_size=5,
    max_overflow=5,
    pool_timeout=30,  # Wait up to 30s for a connection
    pool_pre_ping=True,  # Verify connections before using them
    pool_recycle=300,
)

SessionLocal = sessionmaker(bind=engine, class_=Session, expire_on_commit=False)


@contextmanager
def transaction(db: Session, operation: str) -> Generator[Session, None, None]:
    """
    Run one logical operation atomically on an existing session.

    Commits when the block exits normally. Any exception (including
    cancellation) rolls back every write made inside the block, so partial
    renumbering or merges never become visible. SQLAlchemy failures are
    logged and re-raised as StoreError; they are never retried here.

    Usage:
        with transaction(db, "move ingredient"):
            ...
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Store failure during {operation}: {e}", exc_info=True)
        raise StoreError(f"Failed {operation}") from e
    except BaseException:
        db.rollback()
        raise


def get_session() -> Generator[Session, None, None]:
    """
    Dependency for FastAPI endpoints to get a database session.
    Properly closes the session after the request completes.
    Usage in endpoints:
        def my_endpoint(db: Session = Depends(get_session)):
            ...
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
