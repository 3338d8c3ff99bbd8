"""
Lending Ledger Models.

This package contains Pydantic models for all core entities:

1. Data validation using Pydantic v2
2. Serialization to/from JSON for MCP responses
3. Derived circulation state (overdue status, fines) computed from a given moment

The models represent:
- Book: Library catalog items with their reservation queue
- Patron: Library members with a fine balance and membership level
- Circulation: Loans, reservations and fine charges
"""

from .book import Book
from .circulation import (
    DAILY_FINE_RATE,
    LOAN_PERIOD_DAYS,
    FineCharge,
    Loan,
    LoanStatus,
    Reservation,
    ReservationStatus,
)
from .patron import MembershipLevel, Patron

__all__ = [
    "DAILY_FINE_RATE",
    "LOAN_PERIOD_DAYS",
    "Book",
    "FineCharge",
    "Loan",
    "LoanStatus",
    "MembershipLevel",
    "Patron",
    "Reservation",
    "ReservationStatus",
]
