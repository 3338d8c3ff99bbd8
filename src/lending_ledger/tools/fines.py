"""
Fine and overdue tools for the Lending Ledger MCP Server.

1. pay_fine: Deduct a payment from a patron's fine balance
2. process_fines: Charge accrued overdue fines to patrons
3. notify_overdue: Send an overdue notice for every overdue loan

Fines accrue at $0.50 per day beyond the 14-day loan period. Running
process_fines repeatedly is safe: each run charges only what accrued since
the previous one.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ..ledger import get_ledger
from .circulation import error_response, invalid_arguments, ledger_response

logger = logging.getLogger(__name__)


class PayFineInput(BaseModel):
    """Input schema for the pay_fine tool."""

    patron_id: int = Field(
        ...,
        description="Identifier of the paying patron",
        ge=1,
        examples=[1],
    )

    amount: float = Field(
        ...,
        description="Payment in dollars; must not exceed the outstanding balance",
        ge=0.0,
        examples=[0.5, 3.0],
    )


class NoArgumentsInput(BaseModel):
    """Input schema for tools that take no parameters."""


async def pay_fine_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the pay_fine tool."""
    try:
        try:
            params = PayFineInput.model_validate(arguments)
        except ValidationError as e:
            return invalid_arguments("pay_fine", e)

        result = get_ledger().pay_fine(params.patron_id, params.amount)
        logger.info("pay_fine(%s, %.2f): %s", params.patron_id, params.amount, result.status)
        return ledger_response(result)

    except Exception as e:
        logger.exception("Unexpected error in pay_fine tool")
        return error_response(f"An unexpected error occurred: {e!s}")


async def process_fines_handler(arguments: dict[str, Any]) -> dict[str, Any]:  # noqa: ARG001
    """
    Handler for the process_fines tool.

    Returns one charge per overdue loan that accrued a fine since the last
    run, with the patron's balance after the charge.
    """
    try:
        charges = get_ledger().process_fine_payments()
        total = sum(c.amount for c in charges)

        if charges:
            text = f"Charged ${total:.2f} in overdue fines across {len(charges)} loan(s)."
        else:
            text = "No new overdue fines to charge."

        return {
            "content": [{"type": "text", "text": text}],
            "data": {
                "charges": [c.model_dump(mode="json") for c in charges],
                "total_charged": total,
            },
        }

    except Exception as e:
        logger.exception("Unexpected error in process_fines tool")
        return error_response(f"An unexpected error occurred: {e!s}")


async def notify_overdue_handler(arguments: dict[str, Any]) -> dict[str, Any]:  # noqa: ARG001
    """Handler for the notify_overdue tool."""
    try:
        report = get_ledger().notify_overdue_books()

        return {
            "content": [
                {"type": "text", "text": f"Sent {len(report.loans)} overdue notice(s)."}
            ],
            "data": {
                "as_of": report.as_of.isoformat(),
                "notified": [
                    {
                        **entry.loan.model_dump(mode="json"),
                        "days_overdue": round(entry.days_overdue, 2),
                        "fine": round(entry.accrued_fine, 2),
                    }
                    for entry in report.loans
                ],
            },
        }

    except Exception as e:
        logger.exception("Unexpected error in notify_overdue tool")
        return error_response(f"An unexpected error occurred: {e!s}")


pay_fine = {
    "name": "pay_fine",
    "description": (
        "Pay part or all of a patron's outstanding fine balance. Payments larger than "
        "the balance are refused and leave the balance unchanged."
    ),
    "inputSchema": PayFineInput.model_json_schema(),
    "handler": pay_fine_handler,
}

process_fines = {
    "name": "process_fines",
    "description": (
        "Charge accrued overdue fines ($0.50 per day beyond 14 days) to the patrons "
        "holding overdue books. Only fines accrued since the last run are charged."
    ),
    "inputSchema": NoArgumentsInput.model_json_schema(),
    "handler": process_fines_handler,
}

notify_overdue = {
    "name": "notify_overdue",
    "description": (
        "Send an overdue notice, including the current fine, to the patron of every "
        "overdue loan."
    ),
    "inputSchema": NoArgumentsInput.model_json_schema(),
    "handler": notify_overdue_handler,
}
