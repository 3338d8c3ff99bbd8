"""Book Resources - Library Catalog Access

Exposes the book catalog via read-only resources.

Resources:
- library://books/list - Every book with its loan state and queue length
- library://books/{book_id} - One book with its reservation queue
"""

import logging
from typing import Any

from fastmcp.exceptions import ResourceError
from pydantic import BaseModel, Field

from ..catalog import get_catalog
from ..models.book import Book

logger = logging.getLogger(__name__)


class BookListResponse(BaseModel):
    """Response schema for the book catalog."""

    books: list[Book] = Field(..., description="Books in catalog order")
    total: int = Field(..., description="Number of books in the catalog")
    available: int = Field(..., description="Books currently on the shelf")


def parse_id(value: str, kind: str) -> int:
    """Parse a positive integer id from a URI segment."""
    try:
        parsed = int(value)
    except (TypeError, ValueError) as e:
        raise ResourceError(f"Invalid {kind} id: {value!r}") from e
    if parsed < 1:
        raise ResourceError(f"Invalid {kind} id: {value!r}")
    return parsed


async def list_books_handler() -> dict[str, Any]:
    """Returns the whole book catalog.

    Client requests library://books/list to browse the library.
    """
    try:
        logger.debug("MCP Resource Request - books/list")
        books = get_catalog().list_books()
        response = BookListResponse(
            books=books,
            total=len(books),
            available=sum(1 for book in books if book.is_available),
        )
        return response.model_dump(mode="json")

    except Exception as e:
        logger.exception("Error in books/list resource")
        raise ResourceError(f"Failed to retrieve book list: {e!s}") from e


async def get_book_handler(book_id: str) -> dict[str, Any]:
    """Returns details for a specific book, including its reservation queue."""
    try:
        logger.debug("MCP Resource Request - books/%s", book_id)

        book = get_catalog().find_book(parse_id(book_id, "book"))
        if book is None:
            raise ResourceError(f"Book not found: {book_id}")

        return book.model_dump(mode="json")

    except ResourceError:
        raise
    except Exception as e:
        logger.exception("Error in books/{book_id} resource")
        raise ResourceError(f"Failed to retrieve book details: {e!s}") from e


book_resources: list[dict[str, Any]] = [
    {
        "uri": "library://books/list",
        "name": "Book Catalog",
        "description": "Every book in the catalog with its loan state and reservation queue.",
        "mime_type": "application/json",
        "handler": list_books_handler,
    },
    {
        "uri_template": "library://books/{book_id}",
        "name": "Book Details",
        "description": "Details of one book by id, including its pending reservation queue",
        "mime_type": "application/json",
        "handler": get_book_handler,
    },
]
