"""Lending Ledger MCP Resources Package

Resources are the read-only side of the server: the catalog, patron
records, lending history and reports. Anything that changes state is a tool
(see ``lending_ledger.tools``).

Each resource is a dictionary with a ``uri`` (or ``uri_template`` for
parameterized URIs), ``name``, ``description``, ``mime_type`` and an async
``handler``. Handlers raise ``ResourceError`` for unknown ids.
"""

from .books import book_resources
from .loans import loan_resources
from .patrons import patron_resources
from .stats import stats_resources

# Combine all resources
all_resources = book_resources + patron_resources + loan_resources + stats_resources

__all__ = [
    "all_resources",
    "book_resources",
    "loan_resources",
    "patron_resources",
    "stats_resources",
]
