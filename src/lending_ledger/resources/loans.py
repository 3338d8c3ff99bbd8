"""Loan Resources - Lending History and Overdue Loans

Resources:
- library://loans/history - Every loan, open and closed, in the order made
- library://loans/overdue - Open loans past the 14-day loan period
- library://notifications/outbox - Messages held by the outbox notifier
"""

import logging
from typing import Any

from fastmcp.exceptions import ResourceError

from ..ledger import get_ledger
from ..notifications import OutboxNotifier

logger = logging.getLogger(__name__)


async def loan_history_handler() -> dict[str, Any]:
    """Returns the full lending history."""
    try:
        logger.debug("MCP Resource Request - loans/history")
        history = get_ledger().get_loan_history()
        return {
            "loans": [loan.model_dump(mode="json") for loan in history],
            "total": len(history),
            "open": sum(1 for loan in history if loan.is_open),
        }

    except Exception as e:
        logger.exception("Error in loans/history resource")
        raise ResourceError(f"Failed to retrieve loan history: {e!s}") from e


async def overdue_loans_handler() -> dict[str, Any]:
    """Returns open loans that are overdue right now, with their accrued fines."""
    try:
        logger.debug("MCP Resource Request - loans/overdue")
        report = get_ledger().open_loan_report(overdue_only=True)
        return {
            "as_of": report.as_of.isoformat(),
            "loans": [
                {
                    **entry.loan.model_dump(mode="json"),
                    "due_date": entry.loan.due_date.isoformat(),
                    "days_overdue": round(entry.days_overdue, 2),
                    "accrued_fine": round(entry.accrued_fine, 2),
                }
                for entry in report.loans
            ],
            "total": len(report.loans),
        }

    except Exception as e:
        logger.exception("Error in loans/overdue resource")
        raise ResourceError(f"Failed to retrieve overdue loans: {e!s}") from e


async def outbox_handler() -> dict[str, Any]:
    """Returns delivered notifications when the outbox notifier is active."""
    notifier = get_ledger().notifier
    if not isinstance(notifier, OutboxNotifier):
        raise ResourceError(
            "Notifications are written to the log; set LENDING_LEDGER_NOTIFIER=outbox "
            "to keep them in memory"
        )

    messages = notifier.messages
    return {
        "notifications": [m.model_dump(mode="json") for m in messages],
        "total": len(messages),
    }


loan_resources: list[dict[str, Any]] = [
    {
        "uri": "library://loans/history",
        "name": "Loan History",
        "description": "Every loan ever made, open and closed, in insertion order.",
        "mime_type": "application/json",
        "handler": loan_history_handler,
    },
    {
        "uri": "library://loans/overdue",
        "name": "Overdue Loans",
        "description": "Open loans older than 14 days with their accrued fines.",
        "mime_type": "application/json",
        "handler": overdue_loans_handler,
    },
    {
        "uri": "library://notifications/outbox",
        "name": "Notification Outbox",
        "description": "Overdue notices and reservation messages sent by the ledger.",
        "mime_type": "application/json",
        "handler": outbox_handler,
    },
]
