"""
SQLAlchemy database schema for the Lending Ledger.

This module defines the tables that mirror our Pydantic models. Books and
patrons belong to the catalog; loans and reservations belong to the ledger
and refer to catalog rows by id only, so removing a book or patron from the
catalog never rewrites lending history.

Key integration points:
1. The catalog reads and writes ``books`` and ``patrons``
2. The ledger appends to ``loans`` and ``reservations`` and maintains
   ``books.is_loaned`` and ``patrons.fine_balance``
3. A partial unique index keeps at most one open loan per book
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    Index,
    Integer,
    String,
    text,
)
from sqlalchemy.orm import declarative_base, validates
from sqlalchemy.sql import func

from ..models.circulation import LoanStatus, ReservationStatus
from ..models.patron import MembershipLevel

# Base class for all SQLAlchemy models
Base = declarative_base()


class Book(Base):
    """
    Books table - stores the library's book catalog.

    MCP Usage:
    - Resource: library://books/list, library://books/{book_id}
    - Tools: loan_book and return_book flip ``is_loaned``
    """

    __tablename__ = "books"

    # Catalog ids are supplied by the caller, never generated
    id = Column(Integer, primary_key=True, autoincrement=False)
    title = Column(String(500), nullable=False, index=True)
    author = Column(String(200), nullable=False, index=True)
    genre = Column(String(100), nullable=False)
    publication_year = Column(Integer, nullable=False)
    is_loaned = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=True, default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("id > 0", name="check_book_id_positive"),
        CheckConstraint("publication_year >= 1450", name="check_publication_year_valid"),
    )


class Patron(Base):
    """
    Patrons table - stores library member information.

    MCP Usage:
    - Resource: library://patrons/{patron_id}
    - Tools: pay_fine and process_fines change ``fine_balance``
    """

    __tablename__ = "patrons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, index=True)
    email = Column(String(255), nullable=False)
    membership_level = Column(
        Enum(MembershipLevel), nullable=False, default=MembershipLevel.REGULAR
    )
    fine_balance = Column(Float, nullable=False, default=0.0)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_patron_email", "email"),
        CheckConstraint("fine_balance >= 0", name="check_fines_non_negative"),
        # Ids of removed patrons are never handed out again
        {"sqlite_autoincrement": True},
    )

    @validates("fine_balance")
    def validate_fine_balance(self, key, value):  # noqa: ARG002
        """A fine balance can never be negative."""
        if value is not None and value < 0:
            raise ValueError("Fine balance cannot be negative")
        return value

    @property
    def reservation_limit(self) -> int:
        """Maximum number of pending reservations for this patron."""
        return MembershipLevel(self.membership_level).reservation_limit

    def add_fine(self, amount: float) -> None:
        """Add a fine to the patron's balance."""
        if amount < 0:
            raise ValueError("Fine amount must be positive")
        self.fine_balance = (self.fine_balance or 0.0) + amount

    def pay_fine(self, amount: float) -> bool:
        """
        Deduct a payment from the balance.

        Payments larger than the balance (or negative ones) are ignored.

        Returns:
            True if the balance changed
        """
        balance = self.fine_balance or 0.0
        if amount < 0 or amount > balance:
            return False
        self.fine_balance = balance - amount
        return True


class Loan(Base):
    """
    Loans table - the append-only lending history.

    MCP Usage:
    - Resource: library://loans/history, library://loans/overdue
    - Tools: loan_book creates rows, return_book closes them
    """

    __tablename__ = "loans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    book_id = Column(Integer, nullable=False)
    patron_id = Column(Integer, nullable=False)
    loan_date = Column(DateTime, nullable=False)
    return_date = Column(DateTime, nullable=True)
    status = Column(Enum(LoanStatus), nullable=False, default=LoanStatus.ACTIVE)
    extension_count = Column(Integer, nullable=False, default=0)
    fine_charged = Column(Float, nullable=False, default=0.0)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_loan_book", "book_id"),
        Index("idx_loan_patron", "patron_id"),
        # One open loan per book
        Index(
            "uq_open_loan_per_book",
            "book_id",
            unique=True,
            sqlite_where=text("return_date IS NULL"),
        ),
        CheckConstraint("extension_count >= 0", name="check_extension_count_non_negative"),
        CheckConstraint("fine_charged >= 0", name="check_fine_charged_non_negative"),
    )

    @property
    def is_open(self) -> bool:
        return self.return_date is None


class Reservation(Base):
    """
    Reservations table - per-book FIFO queues.

    MCP Usage:
    - Tools: reserve_book appends, return_book pops the head, loan_book
      consumes the borrower's own head reservation
    """

    __tablename__ = "reservations"

    # Autoincrement ids give the FIFO order of each queue
    id = Column(Integer, primary_key=True, autoincrement=True)
    book_id = Column(Integer, nullable=False)
    patron_id = Column(Integer, nullable=False)
    reservation_date = Column(DateTime, nullable=False)
    status = Column(
        Enum(ReservationStatus), nullable=False, default=ReservationStatus.PENDING
    )
    closed_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_reservation_queue", "book_id", "status", "id"),
        Index("idx_reservation_patron", "patron_id", "status"),
    )
