"""Test configuration and fixtures for the Lending Ledger.

Every test gets:
1. An isolated in-memory database - no state leaks between tests
2. A frozen clock - overdue and fine rules are tested at exact instants
3. An outbox notifier - delivered messages can be inspected
4. A clean configuration - no LENDING_LEDGER_* variables from the shell
"""

import os
from collections.abc import Generator
from datetime import datetime

import pytest

from lending_ledger.catalog import Catalog, reset_catalog
from lending_ledger.clock import FrozenClock
from lending_ledger.config import reset_config
from lending_ledger.database.book_repository import BookCreateSchema
from lending_ledger.database.session import DatabaseManager, reset_db_manager
from lending_ledger.ledger import LendingLedger, reset_ledger
from lending_ledger.models.patron import MembershipLevel, Patron
from lending_ledger.notifications import OutboxNotifier

START = datetime(2024, 1, 1, 9, 0, 0)


# === Environment Fixtures ===


@pytest.fixture(autouse=True)
def clean_env() -> Generator[None, None, None]:
    """Run every test without LENDING_LEDGER_* variables and with fresh singletons."""
    original_env = os.environ.copy()
    for key in list(os.environ.keys()):
        if key.startswith("LENDING_LEDGER_"):
            del os.environ[key]

    reset_config()
    reset_ledger()
    reset_catalog()
    reset_db_manager()

    yield

    reset_ledger()
    reset_catalog()
    reset_db_manager()
    reset_config()
    os.environ.clear()
    os.environ.update(original_env)


# === Database Fixtures ===


@pytest.fixture
def db_manager() -> Generator[DatabaseManager, None, None]:
    """Provide a fresh in-memory database with the schema created."""
    manager = DatabaseManager("sqlite://")
    manager.init_database()
    yield manager
    manager.close()


# === Ledger Fixtures ===


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(START)


@pytest.fixture
def outbox(clock: FrozenClock) -> OutboxNotifier:
    return OutboxNotifier(clock)


@pytest.fixture
def catalog(db_manager: DatabaseManager, clock: FrozenClock) -> Catalog:
    return Catalog(db_manager, clock)


@pytest.fixture
def ledger(db_manager: DatabaseManager, outbox: OutboxNotifier, clock: FrozenClock) -> LendingLedger:
    return LendingLedger(db_manager, outbox, clock)


# === Test Data Fixtures ===


@pytest.fixture
def books(catalog: Catalog):
    """Two books: 1984 (id 1) and To Kill a Mockingbird (id 2)."""
    return [
        catalog.add_book(
            BookCreateSchema(
                id=1,
                title="1984",
                author="George Orwell",
                genre="Dystopian",
                publication_year=1949,
            )
        ),
        catalog.add_book(
            BookCreateSchema(
                id=2,
                title="To Kill a Mockingbird",
                author="Harper Lee",
                genre="Fiction",
                publication_year=1960,
            )
        ),
    ]


@pytest.fixture
def alice(catalog: Catalog) -> Patron:
    return catalog.register_patron("Alice", "alice@example.com", MembershipLevel.REGULAR)


@pytest.fixture
def bob(catalog: Catalog) -> Patron:
    return catalog.register_patron("Bob", "bob@example.com", MembershipLevel.PREMIUM)


@pytest.fixture
def library(books, alice: Patron, bob: Patron):
    """Catalog with both books and both patrons registered."""
    return books, alice, bob


# === MCP Fixtures ===


@pytest.fixture
def mcp_services(
    monkeypatch: pytest.MonkeyPatch, catalog: Catalog, ledger: LendingLedger
) -> tuple[Catalog, LendingLedger]:
    """Point the global catalog and ledger used by tools and resources at the test ones."""
    monkeypatch.setattr("lending_ledger.catalog._catalog", catalog)
    monkeypatch.setattr("lending_ledger.ledger._ledger", ledger)
    return catalog, ledger
