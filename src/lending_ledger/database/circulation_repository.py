"""
Circulation repository implementation for the Lending Ledger.

Data access for the two ledger-owned tables:

1. **Loans**: The append-only lending history and its open loans
2. **Reservations**: Per-book FIFO queues of pending reservations

These repositories only read and write rows; the lending rules live in
``lending_ledger.ledger``.
"""

from datetime import datetime

from sqlalchemy import func, select

from ..database.schema import Loan as LoanDB
from ..database.schema import Reservation as ReservationDB
from ..database.session import safe_query
from ..models.circulation import Loan as LoanModel
from ..models.circulation import LoanStatus, ReservationStatus
from ..models.circulation import Reservation as ReservationModel


class LoanRepository:
    """Repository for loan rows."""

    def __init__(self, session):
        self.session = session

    def open_loan_for_book(self, book_id: int) -> LoanDB | None:
        """The open loan of ``book_id``, if the book is out."""
        return safe_query(
            self.session,
            lambda s: s.execute(
                select(LoanDB).where(LoanDB.book_id == book_id, LoanDB.return_date.is_(None))
            ).scalar_one_or_none(),
            "Failed to get open loan for book",
        )

    def open_loan_for(self, book_id: int, patron_id: int) -> LoanDB | None:
        """The open loan of ``book_id`` held by ``patron_id``."""
        return safe_query(
            self.session,
            lambda s: s.execute(
                select(LoanDB).where(
                    LoanDB.book_id == book_id,
                    LoanDB.patron_id == patron_id,
                    LoanDB.return_date.is_(None),
                )
            ).scalar_one_or_none(),
            "Failed to get open loan for patron",
        )

    def open_loans(self) -> list[LoanDB]:
        """All open loans in insertion order."""
        return list(
            safe_query(
                self.session,
                lambda s: s.execute(
                    select(LoanDB).where(LoanDB.return_date.is_(None)).order_by(LoanDB.id)
                )
                .scalars()
                .all(),
                "Failed to get open loans",
            )
        )

    def history(self) -> list[LoanDB]:
        """Every loan ever made, in insertion order."""
        return list(
            safe_query(
                self.session,
                lambda s: s.execute(select(LoanDB).order_by(LoanDB.id)).scalars().all(),
                "Failed to get loan history",
            )
        )

    def add(self, book_id: int, patron_id: int, loan_date: datetime) -> LoanDB:
        """Append an open loan."""
        loan = LoanDB(
            book_id=book_id,
            patron_id=patron_id,
            loan_date=loan_date,
            status=LoanStatus.ACTIVE,
            extension_count=0,
            fine_charged=0.0,
        )
        self.session.add(loan)
        self.session.flush()
        return loan

    def count(self) -> int:
        return (
            safe_query(
                self.session,
                lambda s: s.execute(select(func.count()).select_from(LoanDB)).scalar(),
                "Failed to count loans",
            )
            or 0
        )

    @staticmethod
    def to_model(loan: LoanDB) -> LoanModel:
        """Convert loan DB object to Pydantic model."""
        return LoanModel.model_validate(loan)


class ReservationRepository:
    """Repository for reservation rows."""

    def __init__(self, session):
        self.session = session

    def queue(self, book_id: int) -> list[ReservationDB]:
        """Pending reservations for ``book_id``, head first."""
        return list(
            safe_query(
                self.session,
                lambda s: s.execute(
                    select(ReservationDB)
                    .where(
                        ReservationDB.book_id == book_id,
                        ReservationDB.status == ReservationStatus.PENDING,
                    )
                    .order_by(ReservationDB.id)
                )
                .scalars()
                .all(),
                "Failed to get reservation queue",
            )
        )

    def head(self, book_id: int) -> ReservationDB | None:
        """Reservation at the front of the queue for ``book_id``."""
        return safe_query(
            self.session,
            lambda s: s.execute(
                select(ReservationDB)
                .where(
                    ReservationDB.book_id == book_id,
                    ReservationDB.status == ReservationStatus.PENDING,
                )
                .order_by(ReservationDB.id)
                .limit(1)
            ).scalar_one_or_none(),
            "Failed to get first reservation in queue",
        )

    def pending_count_for_patron(self, patron_id: int) -> int:
        """Number of pending reservations held by ``patron_id`` across all books."""
        return (
            safe_query(
                self.session,
                lambda s: s.execute(
                    select(func.count())
                    .select_from(ReservationDB)
                    .where(
                        ReservationDB.patron_id == patron_id,
                        ReservationDB.status == ReservationStatus.PENDING,
                    )
                ).scalar(),
                "Failed to count pending reservations",
            )
            or 0
        )

    def has_pending(self, book_id: int, patron_id: int) -> bool:
        """Whether ``patron_id`` already waits in the queue of ``book_id``."""
        count = safe_query(
            self.session,
            lambda s: s.execute(
                select(func.count())
                .select_from(ReservationDB)
                .where(
                    ReservationDB.book_id == book_id,
                    ReservationDB.patron_id == patron_id,
                    ReservationDB.status == ReservationStatus.PENDING,
                )
            ).scalar(),
            "Failed to check existing reservation",
        )
        return bool(count)

    def pending(
        self, book_ids: list[int] | None = None, patron_ids: list[int] | None = None
    ) -> list[ReservationDB]:
        """Pending reservations, optionally restricted to some books or patrons."""
        query = select(ReservationDB).where(ReservationDB.status == ReservationStatus.PENDING)
        if book_ids is not None:
            query = query.where(ReservationDB.book_id.in_(book_ids))
        if patron_ids is not None:
            query = query.where(ReservationDB.patron_id.in_(patron_ids))
        query = query.order_by(ReservationDB.id)

        return list(
            safe_query(
                self.session,
                lambda s: s.execute(query).scalars().all(),
                "Failed to get pending reservations",
            )
        )

    def add(self, book_id: int, patron_id: int, reservation_date: datetime) -> ReservationDB:
        """Append a pending reservation at the tail of the queue."""
        reservation = ReservationDB(
            book_id=book_id,
            patron_id=patron_id,
            reservation_date=reservation_date,
            status=ReservationStatus.PENDING,
        )
        self.session.add(reservation)
        self.session.flush()
        return reservation

    def cancel_pending(self, book_id: int, closed_at: datetime) -> int:
        """Close every pending reservation of ``book_id``; returns how many."""
        rows = self.queue(book_id)
        for row in rows:
            row.status = ReservationStatus.CANCELLED
            row.closed_at = closed_at
        self.session.flush()
        return len(rows)

    @staticmethod
    def to_model(reservation: ReservationDB) -> ReservationModel:
        """Convert reservation DB object to Pydantic model."""
        return ReservationModel.model_validate(reservation)
