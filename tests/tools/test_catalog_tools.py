"""Tests for the catalog tools (add/remove books and patrons, search)."""

import pytest

from lending_ledger.tools.catalog import (
    SearchCatalogInput,
    add_book_handler,
    register_patron_handler,
    remove_book_handler,
    remove_patron_handler,
    search_catalog_handler,
)

DUNE = {
    "id": 3,
    "title": "Dune",
    "author": "Frank Herbert",
    "genre": "Science Fiction",
    "publication_year": 1965,
}


class TestAddBookTool:
    async def test_add_book(self, mcp_services):
        catalog, _ = mcp_services

        result = await add_book_handler(DUNE)

        assert not result.get("isError")
        assert result["data"]["book"]["title"] == "Dune"
        assert result["data"]["book"]["is_loaned"] is False
        assert catalog.find_book(3) is not None

    async def test_duplicate_id(self, mcp_services, books):
        result = await add_book_handler({**DUNE, "id": 1})

        assert result["isError"] is True
        assert "already exists" in result["content"][0]["text"]

    async def test_invalid_year(self, mcp_services):
        result = await add_book_handler({**DUNE, "publication_year": 1200})

        assert result["isError"] is True
        assert "Invalid add_book parameters" in result["content"][0]["text"]

    async def test_remove_book(self, mcp_services, books):
        catalog, _ = mcp_services

        result = await remove_book_handler({"book_id": 2})
        missing = await remove_book_handler({"book_id": 2})

        assert not result.get("isError")
        assert catalog.find_book(2) is None
        assert missing["isError"] is True

    async def test_remove_loaned_book_refused(self, mcp_services, library):
        catalog, ledger = mcp_services
        _, alice, _ = library
        ledger.loan_book(1, alice.id)

        result = await remove_book_handler({"book_id": 1})

        assert result["isError"] is True
        assert "on loan" in result["content"][0]["text"]
        assert catalog.find_book(1) is not None


class TestPatronTools:
    async def test_register_patron(self, mcp_services):
        result = await register_patron_handler(
            {"name": "Dana", "email": "dana@example.com", "membership_level": "VIP"}
        )

        assert not result.get("isError")
        assert result["data"]["patron"]["id"] == 1
        assert result["data"]["patron"]["membership_level"] == "VIP"
        assert "Registered patron 1: Dana (VIP)" == result["content"][0]["text"]

    @pytest.mark.parametrize(
        "arguments",
        [
            {"name": "Dana", "email": "not-an-email"},
            {"name": "", "email": "dana@example.com"},
            {"name": "Dana", "email": "dana@example.com", "membership_level": "Gold"},
        ],
    )
    async def test_register_invalid(self, mcp_services, arguments):
        result = await register_patron_handler(arguments)

        assert result["isError"] is True

    async def test_remove_patron(self, mcp_services, alice):
        result = await remove_patron_handler({"patron_id": alice.id})
        missing = await remove_patron_handler({"patron_id": alice.id})

        assert not result.get("isError")
        assert missing["isError"] is True
        assert f"Patron {alice.id} not found" in missing["content"][0]["text"]


class TestSearchCatalogTool:
    async def test_default_scope_is_title(self, mcp_services, books):
        result = await search_catalog_handler({"query": "  mockingbird "})

        assert result["data"]["total"] == 1
        assert result["data"]["books"][0]["id"] == 2

    async def test_search_by_author(self, mcp_services, books):
        result = await search_catalog_handler({"query": "ORWELL", "scope": "author"})

        assert [b["id"] for b in result["data"]["books"]] == [1]

    async def test_search_patrons(self, mcp_services, library):
        result = await search_catalog_handler({"query": "bo", "scope": "patron"})

        assert [p["name"] for p in result["data"]["patrons"]] == ["Bob"]

    async def test_search_reservations(self, mcp_services, library):
        _, ledger = mcp_services
        _, alice, bob = library
        ledger.loan_book(1, alice.id)
        ledger.reserve_book(1, bob.id)

        by_patron = await search_catalog_handler(
            {"query": "bob", "scope": "reservations_by_patron"}
        )
        by_title = await search_catalog_handler({"query": "1984", "scope": "reservations_by_title"})

        assert [r["patron_id"] for r in by_patron["data"]["reservations"]] == [bob.id]
        assert [r["book_id"] for r in by_title["data"]["reservations"]] == [1]

    async def test_no_matches(self, mcp_services, books):
        result = await search_catalog_handler({"query": "Dune"})

        assert result["data"] == {"books": [], "total": 0}
        assert "No books found" in result["content"][0]["text"]

    def test_blank_query_rejected(self):
        with pytest.raises(ValueError):
            SearchCatalogInput(query="   ")

    async def test_unknown_scope(self, mcp_services):
        result = await search_catalog_handler({"query": "x", "scope": "genre"})

        assert result["isError"] is True
