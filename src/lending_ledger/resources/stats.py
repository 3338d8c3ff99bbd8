"""Statistics Resources - Library Summary and Book Report

Resources:
- library://stats/summary - Headline counts and outstanding fines
- library://reports/books - Every book with its loan state and queue
"""

import logging
from typing import Any

from fastmcp.exceptions import ResourceError

from ..catalog import get_catalog
from ..ledger import get_ledger
from ..reporting import book_report, library_statistics, render_book_report

logger = logging.getLogger(__name__)


async def stats_summary_handler() -> dict[str, Any]:
    """Returns library-wide statistics."""
    try:
        logger.debug("MCP Resource Request - stats/summary")
        return library_statistics(get_ledger()).model_dump(mode="json")

    except Exception as e:
        logger.exception("Error in stats/summary resource")
        raise ResourceError(f"Failed to compute statistics: {e!s}") from e


async def book_report_handler() -> dict[str, Any]:
    """Returns the book report, structured and as text."""
    try:
        logger.debug("MCP Resource Request - reports/books")
        entries = book_report(get_catalog())
        return {
            "books": [entry.model_dump(mode="json") for entry in entries],
            "text": render_book_report(entries),
        }

    except Exception as e:
        logger.exception("Error in reports/books resource")
        raise ResourceError(f"Failed to build book report: {e!s}") from e


stats_resources: list[dict[str, Any]] = [
    {
        "uri": "library://stats/summary",
        "name": "Library Statistics",
        "description": (
            "Totals of books, patrons, loans and pending reservations, plus active "
            "and overdue loans and outstanding fines"
        ),
        "mime_type": "application/json",
        "handler": stats_summary_handler,
    },
    {
        "uri": "library://reports/books",
        "name": "Book Report",
        "description": "Every book with its loan state and reservation queue",
        "mime_type": "application/json",
        "handler": book_report_handler,
    },
]
