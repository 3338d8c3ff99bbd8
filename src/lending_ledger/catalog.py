"""
Catalog Store for the Lending Ledger.

``Catalog`` owns book and patron identity: adding, removing, finding and
searching them. It shares the database (and its lock) with the ledger but
never touches loans, and it never changes ``is_loaned`` or fine balances;
those belong to the ledger. The only ledger rows it writes are the pending
reservations of a book being removed, which are cancelled with it.
"""

import logging

from .clock import Clock, SystemClock
from .database.book_repository import BookCreateSchema, BookRepository
from .database.circulation_repository import ReservationRepository
from .database.patron_repository import PatronCreateSchema, PatronRepository
from .database.repository import ConflictError
from .database.session import DatabaseManager, get_db_manager
from .models.book import Book
from .models.circulation import Reservation
from .models.patron import MembershipLevel, Patron

logger = logging.getLogger(__name__)


class Catalog:
    """Books and patrons of one library."""

    def __init__(self, db: DatabaseManager, clock: Clock | None = None):
        self.db = db
        self.clock = clock if clock is not None else SystemClock()

    # === Books ===

    def add_book(self, data: BookCreateSchema) -> Book:
        """
        Add a book to the catalog.

        Raises:
            DuplicateError: If the id is already taken
        """
        with self.db.lock, self.db.session_scope() as session:
            book = BookRepository(session).create(data)
        logger.info("Book %s added: %s by %s", book.id, book.title, book.author)
        return book

    def remove_book(self, book_id: int) -> bool:
        """
        Remove a book; returns False if it did not exist.

        Pending reservations of the book are cancelled, so a book later added
        under the same id starts with an empty queue. Its loans stay in the
        ledger.

        Raises:
            ConflictError: If the book is on loan
        """
        with self.db.lock, self.db.session_scope() as session:
            books = BookRepository(session)
            book = books.get_row(book_id)
            if book is None:
                return False
            if book.is_loaned:
                raise ConflictError(f"Book {book_id} is on loan and cannot be removed")

            cancelled = ReservationRepository(session).cancel_pending(book_id, self.clock())
            books.delete(book_id)

        logger.info(
            "Book %s removed from catalog (%d pending reservations cancelled)",
            book_id,
            cancelled,
        )
        return True

    def find_book(self, book_id: int) -> Book | None:
        """The book with ``book_id`` and its pending queue, or None."""
        with self.db.lock, self.db.session_scope() as session:
            return BookRepository(session).get_by_id(book_id)

    def list_books(self) -> list[Book]:
        with self.db.lock, self.db.session_scope() as session:
            return BookRepository(session).get_all()

    def count_books(self) -> int:
        with self.db.lock, self.db.session_scope() as session:
            return BookRepository(session).count()

    def search_books_by_title(self, title: str) -> list[Book]:
        with self.db.lock, self.db.session_scope() as session:
            return BookRepository(session).search_by_title(title)

    def search_books_by_author(self, author: str) -> list[Book]:
        with self.db.lock, self.db.session_scope() as session:
            return BookRepository(session).search_by_author(author)

    # === Patrons ===

    def register_patron(
        self,
        name: str,
        email: str,
        membership_level: MembershipLevel | str = MembershipLevel.REGULAR,
    ) -> Patron:
        """
        Register a patron; ids are assigned sequentially.

        Raises:
            ValueError: If the name, email or level is invalid
        """
        data = PatronCreateSchema(
            name=name, email=email, membership_level=MembershipLevel(membership_level)
        )
        with self.db.lock, self.db.session_scope() as session:
            patron = PatronRepository(session).create(data)
        logger.info(
            "Patron %s registered: %s (%s)", patron.id, patron.name, patron.membership_level
        )
        return patron

    def remove_patron(self, patron_id: int) -> bool:
        """Remove a patron; their loans and reservations stay in the ledger."""
        with self.db.lock, self.db.session_scope() as session:
            removed = PatronRepository(session).delete(patron_id)
        if removed:
            logger.info("Patron %s removed from catalog", patron_id)
        return removed

    def find_patron(self, patron_id: int) -> Patron | None:
        with self.db.lock, self.db.session_scope() as session:
            return PatronRepository(session).get_by_id(patron_id)

    def list_patrons(self) -> list[Patron]:
        with self.db.lock, self.db.session_scope() as session:
            return PatronRepository(session).get_all()

    def count_patrons(self) -> int:
        with self.db.lock, self.db.session_scope() as session:
            return PatronRepository(session).count()

    def search_patrons_by_name(self, name: str) -> list[Patron]:
        with self.db.lock, self.db.session_scope() as session:
            return PatronRepository(session).search_by_name(name)

    def total_outstanding_fines(self) -> float:
        with self.db.lock, self.db.session_scope() as session:
            return PatronRepository(session).total_outstanding_fines()

    # === Reservation search ===

    def search_reservations_by_patron_name(self, name: str) -> list[Reservation]:
        """Pending reservations held by patrons whose name contains ``name``."""
        with self.db.lock, self.db.session_scope() as session:
            patron_ids = PatronRepository(session).matching_ids(name)
            rows = ReservationRepository(session).pending(patron_ids=patron_ids)
            return [ReservationRepository.to_model(r) for r in rows]

    def search_reservations_by_book_title(self, title: str) -> list[Reservation]:
        """Pending reservations for books whose title contains ``title``."""
        with self.db.lock, self.db.session_scope() as session:
            book_ids = BookRepository(session).matching_ids(title)
            rows = ReservationRepository(session).pending(book_ids=book_ids)
            return [ReservationRepository.to_model(r) for r in rows]


# Global catalog instance
_catalog: Catalog | None = None


def get_catalog() -> Catalog:
    """Get the process-wide catalog, built on the global database."""
    global _catalog  # noqa: PLW0603 - Singleton pattern for the catalog

    if _catalog is None:
        _catalog = Catalog(get_db_manager())

    return _catalog


def reset_catalog() -> None:
    """Forget the global catalog (useful for testing)."""
    global _catalog  # noqa: PLW0603

    _catalog = None
