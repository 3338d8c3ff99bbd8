"""
Catalog tools for the Lending Ledger MCP Server.

These tools manage the identity side of the library:
1. add_book / remove_book: Maintain the book catalog
2. register_patron / remove_patron: Maintain the patron roll
3. search_catalog: Case-insensitive substring search over books, patrons
   and pending reservations

Removing a book or patron never rewrites lending history: loans and
reservations keep referring to the removed id.
"""

import logging
from typing import Any

from pydantic import BaseModel, EmailStr, Field, ValidationError, field_validator

from ..catalog import get_catalog
from ..database.book_repository import BookCreateSchema
from ..database.repository import ConflictError, DuplicateError, RepositoryException
from ..models.patron import MembershipLevel
from .circulation import error_response, invalid_arguments

logger = logging.getLogger(__name__)


# =============================================================================
# INPUT SCHEMAS
# =============================================================================


class AddBookInput(BookCreateSchema):
    """Input schema for the add_book tool."""


class RemoveBookInput(BaseModel):
    book_id: int = Field(..., description="Catalog identifier of the book", ge=1)


class RegisterPatronInput(BaseModel):
    """Input schema for the register_patron tool."""

    name: str = Field(
        ...,
        description="Full name of the patron",
        min_length=1,
        max_length=200,
        examples=["Alice", "Bob Jones"],
    )

    email: EmailStr = Field(
        ...,
        description="Email address for notifications",
        examples=["alice@example.com"],
    )

    membership_level: MembershipLevel = Field(
        default=MembershipLevel.REGULAR,
        description="Membership tier: Regular, Premium or VIP",
    )


class RemovePatronInput(BaseModel):
    patron_id: int = Field(..., description="Identifier of the patron", ge=1)


class SearchCatalogInput(BaseModel):
    """
    Input schema for the search_catalog tool.

    ``scope`` picks what is searched:
    - title / author: books
    - patron: patrons by name
    - reservations_by_patron / reservations_by_title: pending reservations
    """

    query: str = Field(
        ...,
        description="Text to look for (case-insensitive substring match)",
        min_length=1,
        max_length=200,
        examples=["1984", "harper", "alice"],
    )

    scope: str = Field(
        default="title",
        description="What to search",
        pattern="^(title|author|patron|reservations_by_patron|reservations_by_title)$",
    )

    @field_validator("query")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Search text cannot be blank")
        return v


# =============================================================================
# HANDLERS
# =============================================================================


async def add_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the add_book tool."""
    try:
        try:
            params = AddBookInput.model_validate(arguments)
        except ValidationError as e:
            return invalid_arguments("add_book", e)

        try:
            book = get_catalog().add_book(params)
        except DuplicateError as e:
            logger.info("add_book failed - duplicate: %s", e)
            return error_response(str(e))

        return {
            "content": [
                {"type": "text", "text": f"Added book {book.id}: '{book.title}' by {book.author}"}
            ],
            "data": {"book": book.model_dump(mode="json")},
        }

    except Exception as e:
        logger.exception("Unexpected error in add_book tool")
        return error_response(f"An unexpected error occurred: {e!s}")


async def remove_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the remove_book tool."""
    try:
        try:
            params = RemoveBookInput.model_validate(arguments)
        except ValidationError as e:
            return invalid_arguments("remove_book", e)

        try:
            removed = get_catalog().remove_book(params.book_id)
        except ConflictError as e:
            logger.info("remove_book refused: %s", e)
            return error_response(str(e))

        if not removed:
            return error_response(f"Book {params.book_id} not found")

        return {
            "content": [{"type": "text", "text": f"Removed book {params.book_id}"}],
            "data": {"book_id": params.book_id},
        }

    except RepositoryException as e:
        logger.exception("remove_book failed")
        return error_response(str(e))
    except Exception as e:
        logger.exception("Unexpected error in remove_book tool")
        return error_response(f"An unexpected error occurred: {e!s}")


async def register_patron_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the register_patron tool."""
    try:
        try:
            params = RegisterPatronInput.model_validate(arguments)
        except ValidationError as e:
            return invalid_arguments("register_patron", e)

        patron = get_catalog().register_patron(
            params.name, str(params.email), params.membership_level
        )
        return {
            "content": [
                {
                    "type": "text",
                    "text": (
                        f"Registered patron {patron.id}: {patron.name} "
                        f"({patron.membership_level})"
                    ),
                }
            ],
            "data": {"patron": patron.model_dump(mode="json")},
        }

    except Exception as e:
        logger.exception("Unexpected error in register_patron tool")
        return error_response(f"An unexpected error occurred: {e!s}")


async def remove_patron_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the remove_patron tool."""
    try:
        try:
            params = RemovePatronInput.model_validate(arguments)
        except ValidationError as e:
            return invalid_arguments("remove_patron", e)

        if not get_catalog().remove_patron(params.patron_id):
            return error_response(f"Patron {params.patron_id} not found")

        return {
            "content": [{"type": "text", "text": f"Removed patron {params.patron_id}"}],
            "data": {"patron_id": params.patron_id},
        }

    except RepositoryException as e:
        logger.exception("remove_patron failed")
        return error_response(str(e))
    except Exception as e:
        logger.exception("Unexpected error in remove_patron tool")
        return error_response(f"An unexpected error occurred: {e!s}")


async def search_catalog_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """
    Handler for the search_catalog tool.

    Results are listed in catalog order (books and patrons by id,
    reservations in queue order).
    """
    try:
        try:
            params = SearchCatalogInput.model_validate(arguments)
        except ValidationError as e:
            return invalid_arguments("search_catalog", e)

        catalog = get_catalog()
        match params.scope:
            case "title":
                key, items = "books", catalog.search_books_by_title(params.query)
            case "author":
                key, items = "books", catalog.search_books_by_author(params.query)
            case "patron":
                key, items = "patrons", catalog.search_patrons_by_name(params.query)
            case "reservations_by_patron":
                key, items = (
                    "reservations",
                    catalog.search_reservations_by_patron_name(params.query),
                )
            case _:
                key, items = (
                    "reservations",
                    catalog.search_reservations_by_book_title(params.query),
                )

        if items:
            message = f"Found {len(items)} {key} matching '{params.query}' ({params.scope})"
        else:
            message = f"No {key} found matching '{params.query}' ({params.scope})"

        return {
            "content": [{"type": "text", "text": message}],
            "data": {key: [item.model_dump(mode="json") for item in items], "total": len(items)},
        }

    except Exception as e:
        logger.exception("Unexpected error in search_catalog tool")
        return error_response(f"An unexpected error occurred: {e!s}")


# =============================================================================
# TOOL DEFINITIONS
# =============================================================================

add_book = {
    "name": "add_book",
    "description": (
        "Add a book to the catalog under a caller-chosen numeric id. "
        "Fails if the id is already in use."
    ),
    "inputSchema": AddBookInput.model_json_schema(),
    "handler": add_book_handler,
}

remove_book = {
    "name": "remove_book",
    "description": (
        "Remove a book from the catalog. Fails while the book is on loan. Its pending "
        "reservations are cancelled; its lending history is kept."
    ),
    "inputSchema": RemoveBookInput.model_json_schema(),
    "handler": remove_book_handler,
}

register_patron = {
    "name": "register_patron",
    "description": (
        "Register a new patron with a name, email and membership level "
        "(Regular, Premium or VIP). Returns the assigned patron id."
    ),
    "inputSchema": RegisterPatronInput.model_json_schema(),
    "handler": register_patron_handler,
}

remove_patron = {
    "name": "remove_patron",
    "description": (
        "Remove a patron from the catalog. Their loans and reservations stay in the "
        "ledger; a reservation left by a removed patron is dropped when its book returns."
    ),
    "inputSchema": RemovePatronInput.model_json_schema(),
    "handler": remove_patron_handler,
}

search_catalog = {
    "name": "search_catalog",
    "description": (
        "Case-insensitive substring search. Scope 'title' or 'author' searches books, "
        "'patron' searches patrons by name, and 'reservations_by_patron' or "
        "'reservations_by_title' lists pending reservations."
    ),
    "inputSchema": SearchCatalogInput.model_json_schema(),
    "handler": search_catalog_handler,
}
