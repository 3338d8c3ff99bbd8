"""Tests for notifiers and message templates."""

import logging
from datetime import datetime

from lending_ledger.clock import FrozenClock
from lending_ledger.config import LedgerConfig
from lending_ledger.models.patron import Patron
from lending_ledger.notifications import (
    OVERDUE_SUBJECT,
    RESERVATION_SUBJECT,
    LoggingNotifier,
    Notifier,
    OutboxNotifier,
    create_notifier,
    overdue_notice,
    reservation_available_notice,
)

ALICE = Patron(id=1, name="Alice", email="alice@example.com")
BOB = Patron(id=2, name="Bob", email="bob@example.com")


class TestTemplates:
    def test_overdue_notice(self):
        subject, body = overdue_notice(ALICE, 7, 3.5)

        assert subject == OVERDUE_SUBJECT == "Overdue Book Notice"
        assert body.startswith("Dear Alice,")
        assert "Book ID: 7" in body
        assert "$3.50" in body

    def test_reservation_available_notice(self):
        subject, body = reservation_available_notice(BOB, 2)

        assert subject == RESERVATION_SUBJECT == "Reserved Book Available"
        assert "Dear Bob," in body
        assert "(Book ID: 2) is now available" in body


class TestOutboxNotifier:
    def test_collects_messages_in_order(self):
        outbox = OutboxNotifier()

        outbox.notify("alice@example.com", "first", "one")
        outbox.notify("bob@example.com", "second", "two")
        outbox.notify("alice@example.com", "third", "three")

        assert len(outbox) == 3
        assert [m.subject for m in outbox.messages] == ["first", "second", "third"]
        assert [m.subject for m in outbox.for_recipient("alice@example.com")] == ["first", "third"]
        assert outbox.messages[1].recipient_address == "bob@example.com"

    def test_messages_are_stamped_with_the_clock(self):
        clock = FrozenClock(datetime(2024, 3, 1, 12, 0))
        outbox = OutboxNotifier(clock)

        outbox.notify("alice@example.com", "first", "one")
        clock.advance(hours=2)
        outbox.notify("alice@example.com", "second", "two")

        assert [m.sent_at for m in outbox.messages] == [
            datetime(2024, 3, 1, 12, 0),
            datetime(2024, 3, 1, 14, 0),
        ]

    def test_messages_is_a_snapshot(self):
        outbox = OutboxNotifier()
        outbox.notify("alice@example.com", "subject", "body")

        snapshot = outbox.messages
        outbox.clear()

        assert len(snapshot) == 1
        assert len(outbox) == 0


class TestLoggingNotifier:
    def test_writes_to_log(self, caplog):
        notifier = LoggingNotifier()

        with caplog.at_level(logging.INFO, logger="lending_ledger.notifications"):
            notifier.notify("alice@example.com", "Overdue Book Notice", "Please return it")

        assert "alice@example.com" in caplog.text
        assert "Please return it" in caplog.text


def test_notifiers_satisfy_protocol():
    assert isinstance(LoggingNotifier(), Notifier)
    assert isinstance(OutboxNotifier(), Notifier)


def test_create_notifier_passes_clock_to_outbox():
    clock = FrozenClock(datetime(2024, 5, 2, 8, 30))

    notifier = create_notifier(LedgerConfig(notifier="outbox"), clock=clock)
    notifier.notify("bob@example.com", "subject", "body")

    assert isinstance(notifier, OutboxNotifier)
    assert notifier.messages[0].sent_at == datetime(2024, 5, 2, 8, 30)
