"""
Patron repository implementation for the Lending Ledger.

This repository manages library patron data:

1. **Member Management**: Registering and removing patrons
2. **Search**: Case-insensitive name lookup
3. **Fine Management**: Balances are read here and changed by the ledger
"""

from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import func, select

from ..database.schema import Patron as PatronDB
from ..database.session import safe_query
from ..models.patron import MembershipLevel
from ..models.patron import Patron as PatronModel
from .repository import BaseRepository


class PatronCreateSchema(BaseModel):
    """Schema for registering a new patron."""

    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    membership_level: MembershipLevel = MembershipLevel.REGULAR


class PatronRepository(BaseRepository[PatronDB, PatronCreateSchema, PatronModel]):
    """Repository for patron data access."""

    @property
    def model_class(self):
        return PatronDB

    @property
    def response_schema(self):
        return PatronModel

    def create(self, data: PatronCreateSchema) -> PatronModel:
        """Register a patron; the id is assigned by the database."""
        db_obj = PatronDB(
            name=data.name.strip(),
            email=str(data.email),
            membership_level=data.membership_level,
            fine_balance=0.0,
        )
        return self._to_response_model(self._insert(db_obj))

    def search_by_name(self, name: str) -> list[PatronModel]:
        """Patrons whose name contains ``name`` (case-insensitive)."""
        query = (
            select(PatronDB)
            .where(func.lower(PatronDB.name).contains(name.lower(), autoescape=True))
            .order_by(PatronDB.id)
        )
        results = safe_query(
            self.session,
            lambda s: s.execute(query).scalars().all(),
            "Failed to search patrons",
        )
        return [self._to_response_model(p) for p in results]

    def matching_ids(self, name: str) -> list[int]:
        """IDs of patrons whose name contains ``name``."""
        return [p.id for p in self.search_by_name(name)]

    def total_outstanding_fines(self) -> float:
        """Sum of all fine balances."""
        query = select(func.coalesce(func.sum(PatronDB.fine_balance), 0.0))
        return float(
            safe_query(
                self.session,
                lambda s: s.execute(query).scalar(),
                "Failed to sum fine balances",
            )
            or 0.0
        )
