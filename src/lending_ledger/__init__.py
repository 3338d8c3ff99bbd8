"""
Lending Ledger Package.

A library lending system: a catalog of books and patrons, and a ledger that
enforces lending policy over them.

Key Components:
- ledger: The loan, reservation and fine state machine
- catalog: Book and patron identity, CRUD and search
- notifications: Delivery of overdue and reservation messages
- reporting: Statistics and the book report
- models: Pydantic models for data validation and serialization
- database: SQLAlchemy schema, sessions and repositories
- config: Configuration management with pydantic-settings
- resources / tools: The MCP surface served by ``lending_ledger.server``
"""

__version__ = "0.1.0"

from . import database
from .catalog import Catalog
from .clock import FrozenClock, SystemClock
from .ledger import LendingLedger
from .notifications import LoggingNotifier, Notifier, OutboxNotifier
from .results import LedgerResult, LedgerStatus, RejectionReason

__all__ = [
    "Catalog",
    "FrozenClock",
    "LedgerResult",
    "LedgerStatus",
    "LendingLedger",
    "LoggingNotifier",
    "Notifier",
    "OutboxNotifier",
    "RejectionReason",
    "SystemClock",
    "__version__",
    "database",
]
