"""
The Lending Ledger: loans, reservations and fines.

``LendingLedger`` owns the circulation state machine:

1. **Loans**: A book is loaned to at most one patron at a time. Loans are
   appended to an insertion-ordered history and closed on return.
2. **Reservations**: Pending reservations of a book form a FIFO queue. The
   head of the queue decides who may borrow the book next and is notified
   when the book comes back.
3. **Fines**: Open loans older than the loan period accrue $0.50 per
   (fractional) day. Fines are charged to patrons incrementally, so running
   the accrual twice at the same instant charges nothing the second time.

EXECUTION MODEL:
Every public operation runs through ``_execute``:

- the shared lock is taken (operations are serialized),
- the clock is read exactly once,
- the work happens inside one database transaction,
- notifications produced by the work are delivered after the commit and
  after the lock has been released.

Expected failures (unknown ids, wrong state, reservation policy) come back as
``LedgerResult`` values and leave the database untouched.
"""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TypeAlias, TypeVar

from sqlalchemy.orm import Session

from .clock import Clock, SystemClock
from .database.book_repository import BookRepository
from .database.circulation_repository import LoanRepository, ReservationRepository
from .database.patron_repository import PatronRepository
from .database.session import DatabaseManager, get_db_manager
from .models.circulation import FineCharge, Loan, LoanStatus, Reservation, ReservationStatus
from .models.patron import Patron
from .notifications import (
    Notifier,
    create_notifier,
    overdue_notice,
    reservation_available_notice,
)
from .results import (
    CirculationSummary,
    LedgerResult,
    LedgerStatus,
    LoanReport,
    LoanStanding,
    RejectionReason,
)

logger = logging.getLogger(__name__)

# (recipient address, subject, body)
Outgoing: TypeAlias = tuple[str, str, str]

T = TypeVar("T")


class _Unit:
    """Repositories and outgoing messages for one ledger operation."""

    def __init__(self, session: Session, now: datetime):
        self.now = now
        self.books = BookRepository(session)
        self.patrons = PatronRepository(session)
        self.loans = LoanRepository(session)
        self.reservations = ReservationRepository(session)
        self.outbox: list[Outgoing] = []

    def send(self, patron: Patron, message: tuple[str, str]) -> None:
        subject, body = message
        self.outbox.append((str(patron.email), subject, body))


class LendingLedger:
    """
    Lending state machine over the catalog tables.

    Args:
        db: Database holding the catalog and the ledger tables
        notifier: Receiver of overdue and reservation events
        clock: Time source, read once per operation
    """

    def __init__(
        self,
        db: DatabaseManager,
        notifier: Notifier | None = None,
        clock: Clock | None = None,
    ):
        self.db = db
        self.clock = clock if clock is not None else SystemClock()
        self.notifier = notifier if notifier is not None else create_notifier(clock=self.clock)
        self._lock = db.lock

    def _execute(self, operation: Callable[[_Unit], T]) -> T:
        with self._lock:
            now = self.clock()
            with self.db.session_scope() as session:
                unit = _Unit(session, now)
                result = operation(unit)
        self._dispatch(unit.outbox)
        return result

    def _dispatch(self, outbox: list[Outgoing]) -> None:
        for address, subject, body in outbox:
            try:
                self.notifier.notify(address, subject, body)
            except Exception:
                logger.exception("Notifier failed for %s (%s)", address, subject)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def loan_book(self, book_id: int, patron_id: int) -> LedgerResult:
        """
        Loan a book to a patron.

        The book must exist and be on the shelf, the patron must exist, and
        the book's reservation queue must be empty or headed by this patron.
        A head reservation held by the borrower is marked fulfilled.
        """

        def operation(unit: _Unit) -> LedgerResult:
            book = unit.books.get_row(book_id)
            if book is None:
                return _rejected(LedgerStatus.BOOK_NOT_FOUND, f"Book {book_id} not found")

            patron = unit.patrons.get_row(patron_id)
            if patron is None:
                return _rejected(LedgerStatus.PATRON_NOT_FOUND, f"Patron {patron_id} not found")

            if book.is_loaned:
                return _rejected(
                    LedgerStatus.INVALID_STATE, f"Book {book_id} is already loaned"
                )

            head = unit.reservations.head(book_id)
            if head is not None and head.patron_id != patron_id:
                return _rejected(
                    LedgerStatus.INVALID_STATE,
                    f"Book {book_id} is reserved for patron {head.patron_id}",
                )

            if head is not None:
                head.status = ReservationStatus.FULFILLED
                head.closed_at = unit.now

            book.is_loaned = True
            loan = unit.loans.add(book_id, patron_id, unit.now)

            logger.info("Book %s loaned to patron %s (loan %s)", book_id, patron_id, loan.id)
            return LedgerResult.success(
                f"Book {book_id} loaned to patron {patron_id}",
                loan=LoanRepository.to_model(loan),
                reservation=ReservationRepository.to_model(head) if head else None,
            )

        return self._execute(operation)

    def return_book(self, book_id: int) -> LedgerResult:
        """
        Close the open loan of a book and hand the book to its queue.

        The head pending reservation, if any, is removed from the queue and
        its patron is told the book is available. The book itself stays on
        the shelf until that patron borrows it.
        """

        def operation(unit: _Unit) -> LedgerResult:
            book = unit.books.get_row(book_id)
            if book is None:
                return _rejected(LedgerStatus.BOOK_NOT_FOUND, f"Book {book_id} not found")

            loan = unit.loans.open_loan_for_book(book_id)
            if not book.is_loaned or loan is None:
                return _rejected(
                    LedgerStatus.INVALID_STATE, f"Book {book_id} is not currently loaned"
                )

            loan.return_date = unit.now
            loan.status = LoanStatus.COMPLETED
            book.is_loaned = False
            logger.info("Book %s returned by patron %s", book_id, loan.patron_id)

            head = unit.reservations.head(book_id)
            if head is None:
                return LedgerResult.success(
                    f"Book {book_id} returned", loan=LoanRepository.to_model(loan)
                )

            head.status = ReservationStatus.NOTIFIED
            head.closed_at = unit.now

            patron = unit.patrons.get_by_id(head.patron_id)
            if patron is None:
                logger.warning(
                    "Reservation %s for book %s belongs to unknown patron %s; dropped",
                    head.id,
                    book_id,
                    head.patron_id,
                )
                return LedgerResult(
                    status=LedgerStatus.PATRON_NOT_FOUND,
                    message=(
                        f"Book {book_id} returned; patron {head.patron_id} "
                        "holding the next reservation no longer exists"
                    ),
                    loan=LoanRepository.to_model(loan),
                    reservation=ReservationRepository.to_model(head),
                    committed=True,
                )

            unit.send(patron, reservation_available_notice(patron, book_id))
            return LedgerResult.success(
                f"Book {book_id} returned; patron {patron.id} notified",
                loan=LoanRepository.to_model(loan),
                reservation=ReservationRepository.to_model(head),
                notified_patron_id=patron.id,
            )

        return self._execute(operation)

    def reserve_book(self, book_id: int, patron_id: int) -> LedgerResult:
        """
        Add a patron to the tail of a book's reservation queue.

        A patron may wait once per book and may hold at most
        ``reservation_limit`` pending reservations overall.
        """

        def operation(unit: _Unit) -> LedgerResult:
            if not unit.books.exists(book_id):
                return _rejected(LedgerStatus.BOOK_NOT_FOUND, f"Book {book_id} not found")

            patron = unit.patrons.get_row(patron_id)
            if patron is None:
                return _rejected(LedgerStatus.PATRON_NOT_FOUND, f"Patron {patron_id} not found")

            if unit.reservations.has_pending(book_id, patron_id):
                return _rejected(
                    LedgerStatus.RESERVATION_REJECTED,
                    f"Patron {patron_id} already has a reservation for book {book_id}",
                    rejection=RejectionReason.DUPLICATE,
                )

            limit = patron.reservation_limit
            if unit.reservations.pending_count_for_patron(patron_id) >= limit:
                return _rejected(
                    LedgerStatus.RESERVATION_REJECTED,
                    f"Patron {patron_id} has reached the limit of {limit} reservations",
                    rejection=RejectionReason.LIMIT_EXCEEDED,
                )

            reservation = unit.reservations.add(book_id, patron_id, unit.now)
            logger.info("Book %s reserved by patron %s", book_id, patron_id)
            return LedgerResult.success(
                f"Book {book_id} reserved for patron {patron_id}",
                reservation=ReservationRepository.to_model(reservation),
            )

        return self._execute(operation)

    def extend_loan(self, book_id: int, patron_id: int) -> LedgerResult:
        """Restart the loan window of a patron's open, not yet overdue loan."""

        def operation(unit: _Unit) -> LedgerResult:
            loan = unit.loans.open_loan_for(book_id, patron_id)
            if loan is None:
                return _rejected(
                    LedgerStatus.LOAN_NOT_FOUND,
                    f"No open loan of book {book_id} for patron {patron_id}",
                )

            if LoanRepository.to_model(loan).is_overdue(unit.now):
                return _rejected(
                    LedgerStatus.INVALID_STATE,
                    f"Loan of book {book_id} is overdue and cannot be extended",
                )

            loan.loan_date = unit.now
            loan.extension_count = (loan.extension_count or 0) + 1
            logger.info(
                "Loan of book %s extended for patron %s (extension %s)",
                book_id,
                patron_id,
                loan.extension_count,
            )
            return LedgerResult.success(
                f"Loan of book {book_id} extended", loan=LoanRepository.to_model(loan)
            )

        return self._execute(operation)

    def pay_fine(self, patron_id: int, amount: float) -> LedgerResult:
        """Deduct a payment of at most the patron's current balance."""

        def operation(unit: _Unit) -> LedgerResult:
            patron = unit.patrons.get_row(patron_id)
            if patron is None:
                return _rejected(LedgerStatus.PATRON_NOT_FOUND, f"Patron {patron_id} not found")

            if not patron.pay_fine(amount):
                return _rejected(
                    LedgerStatus.INVALID_STATE,
                    f"Payment of ${amount:.2f} is not valid for a balance of "
                    f"${patron.fine_balance:.2f}",
                    fine_balance=patron.fine_balance,
                )

            logger.info(
                "Patron %s paid $%.2f. Remaining fine balance: $%.2f",
                patron.name,
                amount,
                patron.fine_balance,
            )
            return LedgerResult.success(
                f"Payment of ${amount:.2f} accepted", fine_balance=patron.fine_balance
            )

        return self._execute(operation)

    def process_fine_payments(self) -> list[FineCharge]:
        """
        Charge every overdue loan's accrued fine to its patron.

        Only the part of the fine not charged by an earlier run is added, and
        the loan remembers the total charged so far.
        """

        def operation(unit: _Unit) -> list[FineCharge]:
            charges: list[FineCharge] = []
            for row in unit.loans.open_loans():
                loan = LoanRepository.to_model(row)
                if not loan.is_overdue(unit.now):
                    continue

                increment = loan.uncharged_fine(unit.now)
                if increment <= 0:
                    continue

                patron = unit.patrons.get_row(loan.patron_id)
                if patron is None:
                    logger.warning(
                        "Cannot fine unknown patron %s for book %s", loan.patron_id, loan.book_id
                    )
                    continue

                patron.add_fine(increment)
                row.fine_charged = loan.calculate_fine(unit.now)

                logger.info(
                    "Patron %s has been fined $%.2f for overdue book (Book ID: %s). "
                    "Total fine balance: $%.2f",
                    patron.name,
                    increment,
                    loan.book_id,
                    patron.fine_balance,
                )
                charges.append(
                    FineCharge(
                        loan_id=loan.id,
                        book_id=loan.book_id,
                        patron_id=loan.patron_id,
                        amount=increment,
                        balance=patron.fine_balance,
                    )
                )
            return charges

        return self._execute(operation)

    def notify_overdue_books(self) -> LoanReport:
        """Send one overdue notice per overdue loan and report those loans."""

        def operation(unit: _Unit) -> LoanReport:
            notified: list[LoanStanding] = []
            for loan in _overdue(unit):
                patron = unit.patrons.get_by_id(loan.patron_id)
                if patron is None:
                    logger.warning(
                        "Overdue loan %s belongs to unknown patron %s; not notified",
                        loan.id,
                        loan.patron_id,
                    )
                    continue
                standing = LoanStanding.at(loan, unit.now)
                unit.send(patron, overdue_notice(patron, loan.book_id, standing.accrued_fine))
                notified.append(standing)

            logger.info("Queued %d overdue notices", len(notified))
            return LoanReport(as_of=unit.now, loans=notified)

        return self._execute(operation)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_loan_history(self) -> list[Loan]:
        """All loans, open and closed, in the order they were made."""
        return self._execute(
            lambda unit: [LoanRepository.to_model(loan) for loan in unit.loans.history()]
        )

    def get_active_loans(self) -> list[Loan]:
        return self._execute(
            lambda unit: [LoanRepository.to_model(loan) for loan in unit.loans.open_loans()]
        )

    def get_overdue_loans(self) -> list[Loan]:
        """Open loans that are past the loan period right now."""
        return self._execute(_overdue)

    def get_reservation_queue(self, book_id: int) -> list[Reservation]:
        """Pending reservations of ``book_id`` in priority order."""
        return self._execute(
            lambda unit: [
                ReservationRepository.to_model(r) for r in unit.reservations.queue(book_id)
            ]
        )

    def get_pending_reservations(self) -> list[Reservation]:
        return self._execute(
            lambda unit: [ReservationRepository.to_model(r) for r in unit.reservations.pending()]
        )

    def open_loan_report(
        self, patron_id: int | None = None, overdue_only: bool = False
    ) -> LoanReport:
        """
        Open loans with their overdue standing at a single clock reading.

        Args:
            patron_id: Only loans held by this patron
            overdue_only: Only loans past the loan period
        """

        def operation(unit: _Unit) -> LoanReport:
            standings = [
                LoanStanding.at(LoanRepository.to_model(row), unit.now)
                for row in unit.loans.open_loans()
                if patron_id is None or row.patron_id == patron_id
            ]
            if overdue_only:
                standings = [s for s in standings if s.is_overdue]
            return LoanReport(as_of=unit.now, loans=standings)

        return self._execute(operation)

    def circulation_summary(self) -> CirculationSummary:
        """Headline counts of books, patrons, loans and reservations."""

        def operation(unit: _Unit) -> CirculationSummary:
            history = [LoanRepository.to_model(row) for row in unit.loans.history()]
            return CirculationSummary(
                as_of=unit.now,
                total_books=unit.books.count(),
                total_patrons=unit.patrons.count(),
                total_loans=len(history),
                active_loans=sum(1 for loan in history if loan.is_open),
                overdue_loans=sum(1 for loan in history if loan.is_overdue(unit.now)),
                pending_reservations=len(unit.reservations.pending()),
                total_outstanding_fines=unit.patrons.total_outstanding_fines(),
            )

        return self._execute(operation)


def _overdue(unit: _Unit) -> list[Loan]:
    loans = [LoanRepository.to_model(row) for row in unit.loans.open_loans()]
    return [loan for loan in loans if loan.is_overdue(unit.now)]


def _rejected(status: LedgerStatus, message: str, **kwargs) -> LedgerResult:
    logger.debug("Ledger operation rejected (%s): %s", status.value, message)
    return LedgerResult.failure(status, message, **kwargs)


# Global ledger instance
_ledger: LendingLedger | None = None


def get_ledger() -> LendingLedger:
    """Get the process-wide ledger, built on the global database."""
    global _ledger  # noqa: PLW0603 - Singleton pattern for the ledger

    if _ledger is None:
        _ledger = LendingLedger(get_db_manager())

    return _ledger


def reset_ledger() -> None:
    """Forget the global ledger (useful for testing)."""
    global _ledger  # noqa: PLW0603

    _ledger = None
