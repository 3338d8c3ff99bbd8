"""Patron Resources for the Lending Ledger MCP Server

Resources:
- library://patrons/{patron_id} - A patron with their open loans, pending
  reservations and fine balance

The patron record comes from the catalog; loans and reservations come from
the ledger, which keeps them by patron id.
"""

import logging
from typing import Any

from fastmcp.exceptions import ResourceError
from pydantic import BaseModel, Field

from ..catalog import get_catalog
from ..ledger import get_ledger
from ..models.circulation import Reservation
from ..models.patron import Patron
from ..results import LoanStanding
from .books import parse_id

logger = logging.getLogger(__name__)


class PatronDetailResponse(BaseModel):
    patron: Patron
    open_loans: list[LoanStanding]
    pending_reservations: list[Reservation]
    reservations_remaining: int = Field(
        ..., description="Further reservations allowed by the membership level"
    )


async def get_patron_handler(patron_id: str) -> dict[str, Any]:
    """Returns one patron with their circulation state.

    Client requests library://patrons/{patron_id}.
    """
    try:
        logger.debug("MCP Resource Request - patrons/%s", patron_id)

        patron = get_catalog().find_patron(parse_id(patron_id, "patron"))
        if patron is None:
            raise ResourceError(f"Patron not found: {patron_id}")

        ledger = get_ledger()
        report = ledger.open_loan_report(patron_id=patron.id)
        reservations = [
            r for r in ledger.get_pending_reservations() if r.patron_id == patron.id
        ]

        response = PatronDetailResponse(
            patron=patron,
            open_loans=[
                entry.model_copy(
                    update={
                        "days_overdue": round(entry.days_overdue, 2),
                        "accrued_fine": round(entry.accrued_fine, 2),
                    }
                )
                for entry in report.loans
            ],
            pending_reservations=reservations,
            reservations_remaining=max(0, patron.reservation_limit - len(reservations)),
        )
        return response.model_dump(mode="json")

    except ResourceError:
        raise
    except Exception as e:
        logger.exception("Error in patrons/{patron_id} resource")
        raise ResourceError(f"Failed to retrieve patron details: {e!s}") from e


patron_resources: list[dict[str, Any]] = [
    {
        "uri_template": "library://patrons/{patron_id}",
        "name": "Patron Details",
        "description": (
            "A patron's record with open loans (overdue state and accrued fines), "
            "pending reservations and fine balance"
        ),
        "mime_type": "application/json",
        "handler": get_patron_handler,
    },
]
