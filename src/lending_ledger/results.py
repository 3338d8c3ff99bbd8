"""
Outcome values returned by ledger operations.

Expected failures (unknown ids, books already out, queue conflicts,
reservation policy) are reported as a ``LedgerResult`` rather than raised, so
callers can branch on ``result.status`` and the MCP layer can turn the result
into a response without exception plumbing. A result is truthy iff the
operation succeeded.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .models.circulation import Loan, Reservation


class LedgerStatus(str, Enum):
    OK = "ok"
    BOOK_NOT_FOUND = "book_not_found"
    PATRON_NOT_FOUND = "patron_not_found"
    LOAN_NOT_FOUND = "loan_not_found"
    INVALID_STATE = "invalid_state"
    RESERVATION_REJECTED = "reservation_rejected"


class RejectionReason(str, Enum):
    """Why a reservation was refused."""

    LIMIT_EXCEEDED = "limit_exceeded"
    DUPLICATE = "duplicate"


class LedgerResult(BaseModel):
    """
    Result of a mutating ledger operation.

    ``committed`` tells whether the operation changed state. It is true for
    every successful result and also for a return whose queued patron had
    been removed from the catalog: the book came back, but nobody could be
    notified.
    """

    status: LedgerStatus
    message: str = ""
    loan: Loan | None = None
    reservation: Reservation | None = None
    notified_patron_id: int | None = None
    rejection: RejectionReason | None = None
    committed: bool = False
    fine_balance: float | None = Field(
        None, description="Patron balance after a fine payment"
    )

    model_config = ConfigDict(use_enum_values=True)

    @property
    def ok(self) -> bool:
        return self.status == LedgerStatus.OK

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, message: str, **kwargs) -> "LedgerResult":
        return cls(status=LedgerStatus.OK, message=message, committed=True, **kwargs)

    @classmethod
    def failure(cls, status: LedgerStatus, message: str, **kwargs) -> "LedgerResult":
        return cls(status=status, message=message, **kwargs)


class LoanStanding(BaseModel):
    """An open loan evaluated at one instant."""

    loan: Loan
    is_overdue: bool
    days_overdue: float = Field(..., description="Fractional days past the due date")
    accrued_fine: float = Field(..., description="Fine accrued so far on this loan")

    @classmethod
    def at(cls, loan: Loan, now: datetime) -> "LoanStanding":
        return cls(
            loan=loan,
            is_overdue=loan.is_overdue(now),
            days_overdue=loan.days_overdue(now),
            accrued_fine=loan.calculate_fine(now),
        )


class LoanReport(BaseModel):
    """Loans and the instant their standing was computed at."""

    as_of: datetime
    loans: list[LoanStanding] = Field(default_factory=list)


class CirculationSummary(BaseModel):
    """
    Counts taken in one ledger operation.

    Every figure describes the same database state and the same clock
    reading, ``as_of``.
    """

    as_of: datetime
    total_books: int
    total_patrons: int
    total_loans: int
    active_loans: int
    overdue_loans: int
    pending_reservations: int
    total_outstanding_fines: float
