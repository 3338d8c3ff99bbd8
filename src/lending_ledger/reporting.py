"""
Read-only reports over the catalog and the ledger.

Two reports are available:
- ``library_statistics``: headline counts and outstanding fines
- ``book_report``: every book with its loan state and reservation queue

Both return Pydantic models; ``render_statistics`` and ``render_book_report``
turn them into plain text for logs and the console.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .catalog import Catalog
from .ledger import LendingLedger

UNKNOWN_PATRON = "unknown patron"


class LibraryStatistics(BaseModel):
    """Headline numbers for the whole library."""

    total_books: int = Field(..., description="Books in the catalog")
    total_patrons: int = Field(..., description="Registered patrons")
    total_loans: int = Field(..., description="Loans ever made, open and closed")
    pending_reservations: int = Field(..., description="Reservations waiting in a queue")
    active_loans: int = Field(..., description="Loans not yet returned")
    overdue_loans: int = Field(..., description="Open loans past the loan period")
    total_outstanding_fines: float = Field(..., description="Sum of all fine balances")
    generated_at: datetime = Field(..., description="Moment the statistics describe")


class QueueEntry(BaseModel):
    """One reservation in a book's queue, as shown in the book report."""

    position: int
    patron_id: int
    patron_name: str
    reservation_date: datetime


class BookReportEntry(BaseModel):
    """A line of the book report."""

    book_id: int
    title: str
    author: str
    genre: str
    publication_year: int
    is_loaned: bool
    queue: list[QueueEntry] = Field(default_factory=list)


def library_statistics(ledger: LendingLedger) -> LibraryStatistics:
    """Collect the headline numbers of the library from one ledger snapshot."""
    summary = ledger.circulation_summary()
    return LibraryStatistics(
        total_books=summary.total_books,
        total_patrons=summary.total_patrons,
        total_loans=summary.total_loans,
        pending_reservations=summary.pending_reservations,
        active_loans=summary.active_loans,
        overdue_loans=summary.overdue_loans,
        total_outstanding_fines=summary.total_outstanding_fines,
        generated_at=summary.as_of,
    )


def book_report(catalog: Catalog) -> list[BookReportEntry]:
    """
    Describe every book in catalog order.

    Reservations whose patron has been removed are listed as
    ``unknown patron`` rather than dropped.
    """
    names = {patron.id: patron.name for patron in catalog.list_patrons()}
    entries = []
    for book in catalog.list_books():
        queue = [
            QueueEntry(
                position=position,
                patron_id=reservation.patron_id,
                patron_name=names.get(reservation.patron_id, UNKNOWN_PATRON),
                reservation_date=reservation.reservation_date,
            )
            for position, reservation in enumerate(book.reservations, start=1)
        ]
        entries.append(
            BookReportEntry(
                book_id=book.id,
                title=book.title,
                author=book.author,
                genre=book.genre,
                publication_year=book.publication_year,
                is_loaned=book.is_loaned,
                queue=queue,
            )
        )
    return entries


def render_book_report(entries: list[BookReportEntry]) -> str:
    lines = ["Book Report:"]
    for entry in entries:
        lines.append(
            f"Book: {entry.title}, Author: {entry.author}, Genre: {entry.genre}, "
            f"Year: {entry.publication_year}, Loaned: {entry.is_loaned}"
        )
        if entry.queue:
            lines.append("Reservations:")
            lines.extend(
                f"  {q.position}. Reserved by: {q.patron_name}, "
                f"Date: {q.reservation_date.isoformat(sep=' ', timespec='seconds')}"
                for q in entry.queue
            )
    return "\n".join(lines)


def render_statistics(stats: LibraryStatistics) -> str:
    return "\n".join(
        [
            f"Total Books: {stats.total_books}",
            f"Total Patrons: {stats.total_patrons}",
            f"Total Loans: {stats.total_loans}",
            f"Active Loans: {stats.active_loans}",
            f"Overdue Loans: {stats.overdue_loans}",
            f"Total Reservations: {stats.pending_reservations}",
            f"Outstanding Fines: ${stats.total_outstanding_fines:.2f}",
        ]
    )
