"""
Database session management for the Lending Ledger.

This module provides connection management and session handling for SQLAlchemy.
Proper session management matters for:

1. Thread Safety: The MCP server may call into the ledger from worker threads
2. Transaction Management: Each ledger operation is one atomic unit
3. In-Memory Storage: The default ``sqlite://`` URL lives on a single shared
   connection, so every session sees the same data
4. Error Recovery: Failed transactions are rolled back before errors surface
"""

import logging
import threading
from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import TypeVar

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_config
from .schema import Base

# Configure logging for database operations
logger = logging.getLogger(__name__)

T = TypeVar("T")


class DatabaseManager:
    """
    Manages database connections and sessions.

    This class provides:
    - A lazily created engine
    - Session factory with explicit transactions
    - Schema creation for fresh (in-memory) databases
    """

    def __init__(self, database_url: str | None = None):
        """
        Initialize the database manager.

        Args:
            database_url: SQLAlchemy database URL. If None, uses the configured URL.
        """
        if database_url is None:
            database_url = get_config().database_url

        self.database_url = database_url
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None
        # Serializes work on the shared connection
        self.lock = threading.RLock()

    @property
    def engine(self) -> Engine:
        """
        Get or create the database engine.

        SQLite engines use a StaticPool so an in-memory database survives
        across sessions and threads.
        """
        if self._engine is None:
            self._engine = create_engine(
                self.database_url,
                # Use StaticPool to maintain a single connection
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
                echo=False,
            )

            logger.info("Database engine created: %s", self._engine.url)

        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autocommit=False,
                autoflush=False,
                # Keep objects usable after commit
                expire_on_commit=False,
            )
        return self._session_factory

    def create_session(self) -> Session:
        """
        Create a new database session.

        Note:
            Sessions should be used with context managers or properly closed.
        """
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope for database operations.

        ```python
        with db_manager.session_scope() as session:
            book = session.get(Book, 1)
        # Session is automatically committed or rolled back
        ```

        Yields:
            Database session

        Raises:
            Any database errors are logged and re-raised
        """
        session = self.create_session()
        try:
            yield session
            session.commit()
            logger.debug("Database transaction committed successfully")
        except Exception:
            logger.exception("Database error, rolling back")
            session.rollback()
            raise
        finally:
            session.close()

    def init_database(self, drop_existing: bool = False) -> None:
        """
        Initialize the database schema.

        Args:
            drop_existing: If True, drop all tables before creating
        """
        engine = self.engine

        if drop_existing:
            logger.warning("Dropping all existing tables...")
            Base.metadata.drop_all(bind=engine)

        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database initialization complete")

    def verify_connection(self) -> bool:
        """
        Verify the database connection is working.

        Returns:
            True if connection is successful, False otherwise
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database connection verified")
            return True
        except Exception:
            logger.exception("Database connection failed")
            return False

    def close(self) -> None:
        """Close the database connection and cleanup resources."""
        if self._engine:
            self._engine.dispose()
            logger.info("Database engine disposed")
        self._engine = None
        self._session_factory = None


# Global database manager instance
_db_manager: DatabaseManager | None = None


def get_db_manager(database_url: str | None = None) -> DatabaseManager:
    """
    Get the global database manager instance.

    The schema is created on first use, since the default database is
    in-memory and starts empty.

    Args:
        database_url: Database URL (only used on first call)
    """
    global _db_manager  # noqa: PLW0603 - Singleton pattern for database manager

    if _db_manager is None:
        _db_manager = DatabaseManager(database_url)
        _db_manager.init_database()

    return _db_manager


def reset_db_manager() -> None:
    """Dispose the global database manager (useful for testing)."""
    global _db_manager  # noqa: PLW0603

    if _db_manager is not None:
        _db_manager.close()
    _db_manager = None


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Convenience context manager for sessions on the global database.

    Example:
        ```python
        with session_scope() as session:
            books = session.query(Book).all()
        ```
    """
    with get_db_manager().session_scope() as session:
        yield session


def safe_commit(session: Session, operation: str) -> None:
    """
    Commit a session, rolling back on failure.

    Args:
        session: The database session
        operation: Description of the operation (for error messages)

    Raises:
        ValueError: If the commit fails
    """
    try:
        session.commit()
    except Exception as e:
        session.rollback()
        raise ValueError(f"Database operation '{operation}' failed: {e!s}") from e


def safe_query(session: Session, query_func: Callable[[Session], T], error_msg: str) -> T:
    """
    Execute a query with uniform error handling.

    Args:
        session: The database session
        query_func: Function that performs the query
        error_msg: Error message used if the query fails

    Returns:
        Query result

    Raises:
        ValueError: If the query fails
    """
    try:
        return query_func(session)
    except Exception as e:
        logger.exception("Query failed")
        raise ValueError(f"{error_msg}: Database query failed") from e
