"""
MCP Tools for the Lending Ledger Server.

Tools are the actions with side effects: lending, returning, reserving,
fine handling and catalog maintenance. Read-only views live in
``lending_ledger.resources``.

Each tool is a dictionary with ``name``, ``description``, ``inputSchema``
and an async ``handler`` taking the raw ``arguments`` dict.
"""

from .catalog import add_book, register_patron, remove_book, remove_patron, search_catalog
from .circulation import extend_loan, loan_book, reserve_book, return_book
from .fines import notify_overdue, pay_fine, process_fines

# Export all tools for server registration
all_tools = [
    add_book,
    remove_book,
    register_patron,
    remove_patron,
    loan_book,
    return_book,
    reserve_book,
    extend_loan,
    pay_fine,
    process_fines,
    notify_overdue,
    search_catalog,
]

__all__ = [
    "add_book",
    "all_tools",
    "extend_loan",
    "loan_book",
    "notify_overdue",
    "pay_fine",
    "process_fines",
    "register_patron",
    "remove_book",
    "remove_patron",
    "reserve_book",
    "return_book",
    "search_catalog",
]
