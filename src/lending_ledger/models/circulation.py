"""
Circulation models for the Lending Ledger.

These models represent the circulation of books in the library system:
- Loan: A patron borrowing a book, open until the book comes back
- Reservation: A patron's place in a book's queue for the next loan
- FineCharge: A fine amount added to a patron's balance by the ledger

Overdue status and fines are never stored; they are derived from the loan
date and the moment supplied by the caller, so two checks made with the same
``now`` always agree.
"""

from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

LOAN_PERIOD_DAYS = 14
LOAN_PERIOD = timedelta(days=LOAN_PERIOD_DAYS)
DAILY_FINE_RATE = 0.50
SECONDS_PER_DAY = 86400.0


class LoanStatus(str, Enum):
    """Status of a loan."""

    ACTIVE = "active"
    COMPLETED = "completed"


class ReservationStatus(str, Enum):
    """Status of a reservation."""

    PENDING = "pending"
    NOTIFIED = "notified"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


class Loan(BaseModel):
    """
    Represents a book loan.

    A loan is open while ``return_date`` is None. Only the ledger creates
    loans; callers receive them as read-only snapshots.
    """

    id: int = Field(..., description="Ledger-assigned loan identifier", ge=1)

    book_id: int = Field(..., description="ID of the loaned book", ge=1)

    patron_id: int = Field(..., description="ID of the borrowing patron", ge=1)

    loan_date: datetime = Field(
        ...,
        description="Start of the current loan window (reset by extensions)",
    )

    return_date: datetime | None = Field(
        None,
        description="When the book came back; None while the loan is open",
    )

    status: LoanStatus = Field(
        default=LoanStatus.ACTIVE,
        description="Current status of the loan",
    )

    extension_count: int = Field(
        default=0,
        description="Number of times the loan window was restarted",
        ge=0,
    )

    fine_charged: float = Field(
        default=0.0,
        description="Part of the computed fine already added to the patron's balance",
        ge=0.0,
    )

    @model_validator(mode="after")
    def validate_dates(self) -> "Loan":
        """Ensure the return date is not before the loan date."""
        if self.return_date and self.return_date < self.loan_date:
            raise ValueError("Return date cannot be before loan date")
        return self

    @property
    def is_open(self) -> bool:
        """Check if the book is still out."""
        return self.return_date is None

    @property
    def due_date(self) -> datetime:
        """Moment the current loan window ends."""
        return self.loan_date + LOAN_PERIOD

    def is_overdue(self, now: datetime) -> bool:
        """Check if the loan is open and older than the loan period at ``now``."""
        if not self.is_open:
            return False
        return now - self.loan_date > LOAN_PERIOD

    def days_overdue(self, now: datetime) -> float:
        """Fractional days past the due date, 0 when not overdue."""
        if not self.is_overdue(now):
            return 0.0
        return (now - self.due_date).total_seconds() / SECONDS_PER_DAY

    def calculate_fine(self, now: datetime) -> float:
        """
        Calculate the fine accrued at ``now``.

        Returns:
            ``DAILY_FINE_RATE`` per (fractional) day beyond the loan period,
            never negative
        """
        return max(0.0, self.days_overdue(now) * DAILY_FINE_RATE)

    def uncharged_fine(self, now: datetime) -> float:
        """Fine accrued at ``now`` that has not been charged to the patron yet."""
        return max(0.0, self.calculate_fine(now) - self.fine_charged)

    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "book_id": 1,
                "patron_id": 1,
                "loan_date": "2024-01-01T10:30:00",
                "return_date": None,
                "status": "active",
                "extension_count": 0,
                "fine_charged": 0.0,
            }
        },
    )


class Reservation(BaseModel):
    """
    Represents a book reservation.

    Pending reservations of a book form its queue; creation order is
    priority order.
    """

    id: int = Field(..., description="Ledger-assigned reservation identifier", ge=1)

    book_id: int = Field(..., description="ID of the reserved book", ge=1)

    patron_id: int = Field(..., description="ID of the patron holding the reservation", ge=1)

    reservation_date: datetime = Field(
        ...,
        description="When the reservation joined the queue",
    )

    status: ReservationStatus = Field(
        default=ReservationStatus.PENDING,
        description="Current status of the reservation",
    )

    closed_at: datetime | None = Field(
        None,
        description="When the reservation left the queue (notified, fulfilled or cancelled)",
    )

    @property
    def is_pending(self) -> bool:
        """Check if the reservation is still waiting in the queue."""
        return self.status == ReservationStatus.PENDING

    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "book_id": 2,
                "patron_id": 2,
                "reservation_date": "2024-01-03T09:00:00",
                "status": "pending",
            }
        },
    )


class FineCharge(BaseModel):
    """A fine increment charged to a patron for one overdue loan."""

    loan_id: int
    book_id: int
    patron_id: int
    amount: float = Field(..., ge=0.0)
    balance: float = Field(..., ge=0.0, description="Patron balance after the charge")
