"""
Database package for the Lending Ledger.

This package provides:
- SQLAlchemy schema definitions (schema.py)
- Session management and connection handling (session.py)
- Repositories for the catalog (books, patrons) and the ledger
  (loans, reservations)

State lives in an in-memory SQLite database by default; the package gives
the ledger transactional, constraint-checked storage without persisting
anything beyond the process.
"""

from .book_repository import BookCreateSchema, BookRepository
from .circulation_repository import LoanRepository, ReservationRepository
from .patron_repository import PatronCreateSchema, PatronRepository
from .repository import (
    BaseRepository,
    ConflictError,
    DuplicateError,
    NotFoundError,
    RepositoryException,
)
from .schema import Base, Book, Loan, Patron, Reservation
from .session import (
    DatabaseManager,
    get_db_manager,
    reset_db_manager,
    safe_commit,
    safe_query,
    session_scope,
)

__all__ = [
    "Base",
    "BaseRepository",
    "Book",
    "BookCreateSchema",
    "BookRepository",
    "ConflictError",
    "DatabaseManager",
    "DuplicateError",
    "Loan",
    "LoanRepository",
    "NotFoundError",
    "Patron",
    "PatronCreateSchema",
    "PatronRepository",
    "RepositoryException",
    "Reservation",
    "ReservationRepository",
    "get_db_manager",
    "reset_db_manager",
    "safe_commit",
    "safe_query",
    "session_scope",
]
