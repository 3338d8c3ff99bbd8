#!/usr/bin/env python3
"""Walk through a day in the life of the lending ledger.

This script shows the ledger without the MCP server:
1. Catalog setup (books and patrons)
2. Loans, returns and reservations
3. Searches over the catalog
4. Statistics, the book report and fine processing

A frozen clock is used so the overdue part of the story is reproducible.
"""

import logging
from datetime import datetime

from lending_ledger.catalog import Catalog
from lending_ledger.clock import FrozenClock
from lending_ledger.database import BookCreateSchema, DatabaseManager
from lending_ledger.ledger import LendingLedger
from lending_ledger.notifications import LoggingNotifier
from lending_ledger.reporting import (
    book_report,
    library_statistics,
    render_book_report,
    render_statistics,
)


def demonstrate_lending() -> None:
    """Run the lending scenario against a fresh in-memory library."""
    db = DatabaseManager("sqlite://")
    db.init_database()
    clock = FrozenClock(datetime(2024, 1, 1, 9, 0))
    catalog = Catalog(db, clock)
    ledger = LendingLedger(db, LoggingNotifier(), clock)

    print("=== Lending Ledger Demo ===\n")

    # 1. Catalog setup
    catalog.add_book(
        BookCreateSchema(
            id=1, title="1984", author="George Orwell", genre="Dystopian", publication_year=1949
        )
    )
    catalog.add_book(
        BookCreateSchema(
            id=2,
            title="To Kill a Mockingbird",
            author="Harper Lee",
            genre="Fiction",
            publication_year=1960,
        )
    )
    alice = catalog.register_patron("Alice", "alice@example.com", "Regular")
    bob = catalog.register_patron("Bob", "bob@example.com", "Premium")
    print(f"1. Registered {alice.name} (#{alice.id}) and {bob.name} (#{bob.id})\n")

    # 2. Circulation
    print("2. Circulation:")
    print(f"   loan_book(1, alice):    {ledger.loan_book(1, alice.id).message}")
    print(f"   return_book(1):         {ledger.return_book(1).message}")
    print(f"   reserve_book(2, bob):   {ledger.reserve_book(2, bob.id).message}")
    print(f"   extend_loan(1, alice):  {ledger.extend_loan(1, alice.id).message}")
    print(f"   loan_book(2, alice):    {ledger.loan_book(2, alice.id).message}")
    print(f"   loan_book(2, bob):      {ledger.loan_book(2, bob.id).message}")
    print()

    # 3. Search
    print("3. Search:")
    for book in catalog.search_books_by_title("1984"):
        print(f"   Book: {book.title}, Author: {book.author}")
    for book in catalog.search_books_by_author("Harper Lee"):
        print(f"   Book: {book.title}, Author: {book.author}")
    for reservation in catalog.search_reservations_by_patron_name("Bob"):
        print(
            f"   Reservation: BookId={reservation.book_id}, "
            f"PatronId={reservation.patron_id}, Date={reservation.reservation_date}"
        )
    print()

    # 4. Three weeks later
    clock.advance(days=20)
    print("4. Twenty days later:")
    print(render_statistics(library_statistics(ledger)))
    print()
    print(render_book_report(book_report(catalog)))
    print()

    ledger.notify_overdue_books()
    for charge in ledger.process_fine_payments():
        print(
            f"   Patron #{charge.patron_id} fined ${charge.amount:.2f} "
            f"(balance ${charge.balance:.2f})"
        )

    db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(name)s - %(message)s")
    demonstrate_lending()
