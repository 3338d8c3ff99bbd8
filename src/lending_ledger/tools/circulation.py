"""
Circulation tools for the Lending Ledger MCP Server.

These tools change ledger state on behalf of an MCP client:
1. loan_book: Lend a book to a patron
2. return_book: Close the open loan and notify the next reservation holder
3. reserve_book: Join a book's reservation queue
4. extend_loan: Restart the loan window of an open loan

MCP TOOLS ARCHITECTURE:
Each tool is a dictionary with a name, a description, a JSON Schema generated
from a Pydantic input model, and an async handler. Handlers never raise:
invalid input, ledger rejections and unexpected errors all come back as
``isError`` responses so the server keeps running.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ..ledger import get_ledger
from ..results import LedgerResult

logger = logging.getLogger(__name__)


# =============================================================================
# RESPONSE HELPERS
# =============================================================================


def error_response(text: str) -> dict[str, Any]:
    """MCP error payload with a single text block."""
    return {"isError": True, "content": [{"type": "text", "text": text}]}


def invalid_arguments(tool: str, error: ValidationError) -> dict[str, Any]:
    logger.warning("Invalid %s parameters: %s", tool, error)
    return error_response(f"Invalid {tool} parameters: {error}")


def ledger_response(result: LedgerResult) -> dict[str, Any]:
    """
    Translate a ledger result into an MCP tool response.

    Rejected operations become ``isError`` responses that still carry the
    status, so clients can tell "book not found" from "book already out".
    A committed result is never an error, even when its status is not ok.
    """
    data = result.model_dump(mode="json", exclude_none=True)
    if not result.ok and not result.committed:
        return {
            "isError": True,
            "content": [{"type": "text", "text": result.message}],
            "data": data,
        }
    return {"content": [{"type": "text", "text": result.message}], "data": data}


# =============================================================================
# INPUT SCHEMAS
# =============================================================================


class BookPatronInput(BaseModel):
    """Input schema for tools that act on one book for one patron."""

    book_id: int = Field(
        ...,
        description="Catalog identifier of the book",
        ge=1,
        examples=[1, 2],
    )

    patron_id: int = Field(
        ...,
        description="Identifier of the patron",
        ge=1,
        examples=[1, 2],
    )


class ReturnBookInput(BaseModel):
    """Input schema for the return_book tool."""

    book_id: int = Field(
        ...,
        description="Catalog identifier of the book being returned",
        ge=1,
        examples=[1],
    )


# =============================================================================
# HANDLERS
# =============================================================================


async def loan_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """
    Handler for the loan_book tool.

    The ledger refuses the loan when the book is already out or when another
    patron heads the book's reservation queue.
    """
    try:
        try:
            params = BookPatronInput.model_validate(arguments)
        except ValidationError as e:
            return invalid_arguments("loan_book", e)

        result = get_ledger().loan_book(params.book_id, params.patron_id)
        logger.info("loan_book(%s, %s): %s", params.book_id, params.patron_id, result.status)
        return ledger_response(result)

    except Exception as e:
        logger.exception("Unexpected error in loan_book tool")
        return error_response(f"An unexpected error occurred: {e!s}")


async def return_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the return_book tool."""
    try:
        try:
            params = ReturnBookInput.model_validate(arguments)
        except ValidationError as e:
            return invalid_arguments("return_book", e)

        result = get_ledger().return_book(params.book_id)
        logger.info("return_book(%s): %s", params.book_id, result.status)
        return ledger_response(result)

    except Exception as e:
        logger.exception("Unexpected error in return_book tool")
        return error_response(f"An unexpected error occurred: {e!s}")


async def reserve_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """
    Handler for the reserve_book tool.

    Rejections report the reason (``duplicate`` or ``limit_exceeded``) in
    ``data.rejection``.
    """
    try:
        try:
            params = BookPatronInput.model_validate(arguments)
        except ValidationError as e:
            return invalid_arguments("reserve_book", e)

        ledger = get_ledger()
        result = ledger.reserve_book(params.book_id, params.patron_id)
        logger.info("reserve_book(%s, %s): %s", params.book_id, params.patron_id, result.status)

        response = ledger_response(result)
        if result.ok:
            queue = ledger.get_reservation_queue(params.book_id)
            position = next(
                (i for i, r in enumerate(queue, start=1) if r.patron_id == params.patron_id),
                None,
            )
            response["data"]["queue_position"] = position
            response["content"][0]["text"] += f" (position {position} in queue)"
        return response

    except Exception as e:
        logger.exception("Unexpected error in reserve_book tool")
        return error_response(f"An unexpected error occurred: {e!s}")


async def extend_loan_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the extend_loan tool."""
    try:
        try:
            params = BookPatronInput.model_validate(arguments)
        except ValidationError as e:
            return invalid_arguments("extend_loan", e)

        result = get_ledger().extend_loan(params.book_id, params.patron_id)
        logger.info("extend_loan(%s, %s): %s", params.book_id, params.patron_id, result.status)
        return ledger_response(result)

    except Exception as e:
        logger.exception("Unexpected error in extend_loan tool")
        return error_response(f"An unexpected error occurred: {e!s}")


# =============================================================================
# TOOL DEFINITIONS
# =============================================================================

loan_book = {
    "name": "loan_book",
    "description": (
        "Loan a book to a patron for 14 days. Fails if the book is already on loan "
        "or if another patron is first in the book's reservation queue. A patron who "
        "is first in the queue consumes their reservation by borrowing the book."
    ),
    "inputSchema": BookPatronInput.model_json_schema(),
    "handler": loan_book_handler,
}

return_book = {
    "name": "return_book",
    "description": (
        "Return a loaned book. Closes the open loan, puts the book back on the shelf "
        "and notifies the patron first in the reservation queue that it is available."
    ),
    "inputSchema": ReturnBookInput.model_json_schema(),
    "handler": return_book_handler,
}

reserve_book = {
    "name": "reserve_book",
    "description": (
        "Add a patron to the end of a book's reservation queue. A patron can hold one "
        "reservation per book and at most 5 (Regular), 10 (Premium) or 20 (VIP) "
        "pending reservations."
    ),
    "inputSchema": BookPatronInput.model_json_schema(),
    "handler": reserve_book_handler,
}

extend_loan = {
    "name": "extend_loan",
    "description": (
        "Extend a patron's open loan by restarting its 14-day window from now. "
        "Overdue loans cannot be extended."
    ),
    "inputSchema": BookPatronInput.model_json_schema(),
    "handler": extend_loan_handler,
}
