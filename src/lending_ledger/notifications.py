"""
Notification delivery for the Lending Ledger.

The ledger emits two kinds of events: overdue notices and "reserved book
available" messages. It hands them to a ``Notifier`` after the triggering
transaction has committed. Delivery is fire-and-forget: a failing notifier is
logged by the ledger and never undoes the mutation.

A notifier only sees the recipient address and the rendered message; the
ledger resolves the patron and renders the text before delivery.

Two notifiers ship with the package:

- ``LoggingNotifier`` writes each message to the log (stand-in for email)
- ``OutboxNotifier`` keeps messages in memory so they can be inspected
"""

import logging
import threading
from datetime import datetime
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from .clock import Clock, SystemClock
from .config import LedgerConfig, get_config
from .models.patron import Patron

logger = logging.getLogger(__name__)

OVERDUE_SUBJECT = "Overdue Book Notice"
RESERVATION_SUBJECT = "Reserved Book Available"


@runtime_checkable
class Notifier(Protocol):
    def notify(self, recipient_address: str, subject: str, body: str) -> None: ...


class Notification(BaseModel):
    """A delivered message."""

    recipient_address: str
    subject: str
    body: str
    sent_at: datetime


def overdue_notice(patron: Patron, book_id: int, fine: float) -> tuple[str, str]:
    """Subject and body of an overdue notice."""
    body = (
        f"Dear {patron.name},\n\n"
        f"You have an overdue book (Book ID: {book_id}). "
        f"Please return it as soon as possible. Your fine is ${fine:.2f}.\n\n"
        "Thank you."
    )
    return OVERDUE_SUBJECT, body


def reservation_available_notice(patron: Patron, book_id: int) -> tuple[str, str]:
    """Subject and body of a "reserved book available" message."""
    body = (
        f"Dear {patron.name},\n\n"
        f"The book you reserved (Book ID: {book_id}) is now available for pickup.\n\n"
        "Thank you."
    )
    return RESERVATION_SUBJECT, body


class LoggingNotifier:
    """Writes every message to the log instead of sending email."""

    def notify(self, recipient_address: str, subject: str, body: str) -> None:
        logger.info(
            "Sending notification to %s: %s\n%s",
            recipient_address,
            subject,
            body,
        )


class OutboxNotifier:
    """Collects messages in memory, oldest first, stamped with ``clock``."""

    def __init__(self, clock: Clock | None = None) -> None:
        self.clock = clock if clock is not None else SystemClock()
        self._lock = threading.Lock()
        self._messages: list[Notification] = []

    def notify(self, recipient_address: str, subject: str, body: str) -> None:
        notification = Notification(
            recipient_address=recipient_address,
            subject=subject,
            body=body,
            sent_at=self.clock(),
        )
        with self._lock:
            self._messages.append(notification)

    @property
    def messages(self) -> list[Notification]:
        with self._lock:
            return list(self._messages)

    def for_recipient(self, address: str) -> list[Notification]:
        return [m for m in self.messages if m.recipient_address == address]

    def clear(self) -> None:
        with self._lock:
            self._messages.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)


def create_notifier(config: LedgerConfig | None = None, clock: Clock | None = None) -> Notifier:
    """Build the notifier selected by ``config.notifier``."""
    config = config or get_config()
    if config.notifier == "outbox":
        return OutboxNotifier(clock)
    return LoggingNotifier()
