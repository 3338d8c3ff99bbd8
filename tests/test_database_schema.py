"""
Tests for database schema and session management.

These tests verify:
1. Database tables are created correctly
2. Constraints are enforced (one open loan per book, non-negative fines)
3. Session scopes commit on success and roll back on error
"""

from datetime import datetime

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError

from lending_ledger.database import (
    Book,
    DatabaseManager,
    Loan,
    Patron,
    get_db_manager,
    reset_db_manager,
    safe_query,
)
from lending_ledger.models.circulation import LoanStatus
from lending_ledger.models.patron import MembershipLevel


@pytest.fixture
def session(db_manager):
    """Provide a database session for tests."""
    session = db_manager.create_session()
    yield session
    session.rollback()
    session.close()


def add_book(session, book_id: int = 1) -> Book:
    book = Book(
        id=book_id,
        title="1984",
        author="George Orwell",
        genre="Dystopian",
        publication_year=1949,
        is_loaned=False,
    )
    session.add(book)
    session.flush()
    return book


class TestDatabaseSchema:
    """Test database schema creation and basic operations."""

    def test_tables_created(self, db_manager):
        tables = set(inspect(db_manager.engine).get_table_names())

        assert tables == {"books", "patrons", "loans", "reservations"}

    def test_patron_ids_are_sequential(self, session):
        first = Patron(name="Alice", email="alice@example.com")
        second = Patron(name="Bob", email="bob@example.com")
        session.add_all([first, second])
        session.flush()

        assert (first.id, second.id) == (1, 2)
        assert first.membership_level == MembershipLevel.REGULAR
        assert first.fine_balance == 0.0

    def test_removed_patron_ids_are_not_reused(self, session):
        first = Patron(name="Alice", email="alice@example.com")
        second = Patron(name="Bob", email="bob@example.com")
        session.add_all([first, second])
        session.flush()
        session.delete(second)
        session.flush()

        third = Patron(name="Carol", email="carol@example.com")
        session.add(third)
        session.flush()

        assert third.id == 3

    def test_one_open_loan_per_book(self, session):
        add_book(session)
        now = datetime(2024, 1, 1)
        session.add(Loan(book_id=1, patron_id=1, loan_date=now, status=LoanStatus.ACTIVE))
        session.flush()

        session.add(Loan(book_id=1, patron_id=2, loan_date=now, status=LoanStatus.ACTIVE))
        with pytest.raises(IntegrityError):
            session.flush()

    def test_closed_loans_do_not_block(self, session):
        add_book(session)
        now = datetime(2024, 1, 1)
        session.add(
            Loan(
                book_id=1,
                patron_id=1,
                loan_date=now,
                return_date=now,
                status=LoanStatus.COMPLETED,
            )
        )
        session.add(Loan(book_id=1, patron_id=2, loan_date=now, status=LoanStatus.ACTIVE))
        session.flush()

        assert session.query(Loan).count() == 2

    def test_fine_balance_never_negative(self):
        patron = Patron(name="Alice", email="alice@example.com", fine_balance=1.0)

        with pytest.raises(ValueError, match="negative"):
            patron.fine_balance = -1.0

    def test_patron_fine_helpers(self):
        patron = Patron(name="Alice", email="alice@example.com", fine_balance=0.0)

        patron.add_fine(3.0)
        assert patron.fine_balance == 3.0

        assert patron.pay_fine(5.0) is False
        assert patron.fine_balance == 3.0

        assert patron.pay_fine(-1.0) is False
        assert patron.pay_fine(3.0) is True
        assert patron.fine_balance == 0.0

        with pytest.raises(ValueError):
            patron.add_fine(-1.0)

    def test_reservation_limit_on_row(self):
        patron = Patron(name="Vic", email="vic@example.com", membership_level=MembershipLevel.VIP)

        assert patron.reservation_limit == 20


class TestSessionManagement:
    """Test session scopes and helpers."""

    def test_session_scope_commits(self, db_manager):
        with db_manager.session_scope() as session:
            add_book(session)

        with db_manager.session_scope() as session:
            assert session.get(Book, 1) is not None

    def test_session_scope_rolls_back(self, db_manager):
        with pytest.raises(RuntimeError), db_manager.session_scope() as session:
            add_book(session)
            raise RuntimeError("boom")

        with db_manager.session_scope() as session:
            assert session.get(Book, 1) is None

    def test_safe_query_wraps_errors(self, session):
        def broken(_session):
            raise RuntimeError("disk on fire")

        with pytest.raises(ValueError, match="Lookup failed"):
            safe_query(session, broken, "Lookup failed")

    def test_verify_connection(self, db_manager):
        assert db_manager.verify_connection() is True

    def test_global_manager_creates_schema(self):
        manager = get_db_manager()

        assert "loans" in inspect(manager.engine).get_table_names()
        assert get_db_manager() is manager

        reset_db_manager()
        assert get_db_manager() is not manager

    def test_separate_managers_are_isolated(self):
        first = DatabaseManager("sqlite://")
        second = DatabaseManager("sqlite://")
        first.init_database()
        second.init_database()

        with first.session_scope() as session:
            add_book(session)
        with second.session_scope() as session:
            assert session.get(Book, 1) is None

        first.close()
        second.close()
