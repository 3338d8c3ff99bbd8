"""Tests for the MCP resources

Resources are read-only: these tests check the response structure of each
resource and that unknown or malformed ids raise ResourceError, the error
FastMCP turns into a JSON-RPC error for the client.
"""

import pytest
from fastmcp.exceptions import ResourceError

from lending_ledger.ledger import LendingLedger
from lending_ledger.notifications import LoggingNotifier
from lending_ledger.resources import all_resources
from lending_ledger.resources.books import (
    BookListResponse,
    get_book_handler,
    list_books_handler,
    parse_id,
)
from lending_ledger.resources.loans import (
    loan_history_handler,
    outbox_handler,
    overdue_loans_handler,
)
from lending_ledger.resources.patrons import get_patron_handler
from lending_ledger.resources.stats import book_report_handler, stats_summary_handler


class TestResourceDefinitions:
    def test_uris(self):
        uris = {r.get("uri_template", r.get("uri")) for r in all_resources}

        assert uris == {
            "library://books/list",
            "library://books/{book_id}",
            "library://patrons/{patron_id}",
            "library://loans/history",
            "library://loans/overdue",
            "library://notifications/outbox",
            "library://stats/summary",
            "library://reports/books",
        }

    def test_every_resource_is_json(self):
        for resource in all_resources:
            assert resource["mime_type"] == "application/json"
            assert callable(resource["handler"])


class TestParseId:
    def test_valid(self):
        assert parse_id("42", "book") == 42

    @pytest.mark.parametrize("value", ["abc", "0", "-3", "1.5", ""])
    def test_invalid(self, value):
        with pytest.raises(ResourceError, match="Invalid book id"):
            parse_id(value, "book")


class TestBookResources:
    async def test_list_books(self, mcp_services, library):
        _, ledger = mcp_services
        _, alice, _ = library
        ledger.loan_book(1, alice.id)

        result = await list_books_handler()

        response = BookListResponse.model_validate(result)
        assert response.total == 2
        assert response.available == 1
        assert [b.id for b in response.books] == [1, 2]

    async def test_get_book_with_queue(self, mcp_services, library):
        _, ledger = mcp_services
        _, alice, bob = library
        ledger.loan_book(1, alice.id)
        ledger.reserve_book(1, bob.id)

        result = await get_book_handler("1")

        assert result["title"] == "1984"
        assert result["is_loaned"] is True
        assert [r["patron_id"] for r in result["reservations"]] == [bob.id]

    async def test_book_not_found(self, mcp_services, books):
        with pytest.raises(ResourceError, match="Book not found"):
            await get_book_handler("99")

    async def test_malformed_book_id(self, mcp_services, books):
        with pytest.raises(ResourceError, match="Invalid book id"):
            await get_book_handler("first")


class TestPatronResource:
    async def test_patron_details(self, mcp_services, library, clock):
        _, ledger = mcp_services
        _, alice, _ = library
        ledger.loan_book(1, alice.id)
        ledger.loan_book(2, alice.id)
        ledger.return_book(2)
        clock.advance(days=16)

        result = await get_patron_handler(str(alice.id))

        assert result["patron"]["name"] == "Alice"
        [entry] = result["open_loans"]
        assert entry["loan"]["book_id"] == 1
        assert entry["is_overdue"] is True
        assert entry["days_overdue"] == pytest.approx(2.0)
        assert entry["accrued_fine"] == pytest.approx(1.0)
        assert result["reservations_remaining"] == 5

    async def test_reservations_remaining(self, mcp_services, library):
        _, ledger = mcp_services
        _, alice, bob = library
        ledger.loan_book(1, alice.id)
        ledger.reserve_book(1, bob.id)

        result = await get_patron_handler(str(bob.id))

        assert len(result["pending_reservations"]) == 1
        assert result["reservations_remaining"] == 9

    async def test_patron_not_found(self, mcp_services):
        with pytest.raises(ResourceError, match="Patron not found"):
            await get_patron_handler("7")


class TestLoanResources:
    async def test_history(self, mcp_services, library):
        _, ledger = mcp_services
        _, alice, bob = library
        ledger.loan_book(1, alice.id)
        ledger.return_book(1)
        ledger.loan_book(1, bob.id)

        result = await loan_history_handler()

        assert result["total"] == 2
        assert result["open"] == 1
        assert [loan["patron_id"] for loan in result["loans"]] == [alice.id, bob.id]

    async def test_overdue(self, mcp_services, library, clock):
        _, ledger = mcp_services
        _, alice, _ = library
        ledger.loan_book(1, alice.id)
        clock.advance(days=15)

        result = await overdue_loans_handler()

        assert result["total"] == 1
        assert result["loans"][0]["accrued_fine"] == pytest.approx(0.5)
        assert result["as_of"] == clock().isoformat()

    async def test_outbox(self, mcp_services, library):
        _, ledger = mcp_services
        _, alice, bob = library
        ledger.loan_book(1, alice.id)
        ledger.reserve_book(1, bob.id)
        ledger.return_book(1)

        result = await outbox_handler()

        assert result["total"] == 1
        assert result["notifications"][0]["recipient_address"] == "bob@example.com"

    async def test_outbox_unavailable_with_logging_notifier(
        self, monkeypatch, db_manager, clock
    ):
        monkeypatch.setattr(
            "lending_ledger.ledger._ledger", LendingLedger(db_manager, LoggingNotifier(), clock)
        )

        with pytest.raises(ResourceError, match="LENDING_LEDGER_NOTIFIER"):
            await outbox_handler()


class TestStatsResources:
    async def test_summary(self, mcp_services, library):
        _, ledger = mcp_services
        _, alice, _ = library
        ledger.loan_book(1, alice.id)

        result = await stats_summary_handler()

        assert result["total_books"] == 2
        assert result["total_patrons"] == 2
        assert result["active_loans"] == 1
        assert result["overdue_loans"] == 0

    async def test_book_report(self, mcp_services, library):
        result = await book_report_handler()

        assert [b["book_id"] for b in result["books"]] == [1, 2]
        assert result["text"].startswith("Book Report:")
