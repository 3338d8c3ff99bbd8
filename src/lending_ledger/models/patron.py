"""
Patron model for the Lending Ledger.

This model represents a library patron (member) who can borrow and reserve
books. Patrons are exposed as resources via ``library://patrons/{patron_id}``;
their fine balance is maintained by the ledger.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class MembershipLevel(str, Enum):
    """Membership tiers; the tier decides how many reservations a patron may hold."""

    REGULAR = "Regular"
    PREMIUM = "Premium"
    VIP = "VIP"

    @property
    def reservation_limit(self) -> int:
        return RESERVATION_LIMITS[self]


RESERVATION_LIMITS = {
    MembershipLevel.REGULAR: 5,
    MembershipLevel.PREMIUM: 10,
    MembershipLevel.VIP: 20,
}


class Patron(BaseModel):
    """
    Represents a library patron.

    The fine balance is never negative; the ledger adds overdue fines to it
    and deducts payments that do not exceed it.
    """

    id: int = Field(
        ...,
        description="Catalog-assigned patron identifier",
        ge=1,
        examples=[1, 42],
    )

    name: str = Field(
        ...,
        description="Full name of the patron",
        min_length=1,
        max_length=200,
        examples=["Alice Smith", "Bob Jones"],
    )

    email: EmailStr = Field(
        ...,
        description="Email address used for notifications",
        examples=["alice@example.com"],
    )

    membership_level: MembershipLevel = Field(
        default=MembershipLevel.REGULAR,
        description="Membership tier",
    )

    fine_balance: float = Field(
        default=0.0,
        description="Outstanding fines in dollars",
        ge=0.0,
        examples=[0.0, 3.5],
    )

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Names are stored without surrounding whitespace."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Name cannot be blank")
        return stripped

    @property
    def reservation_limit(self) -> int:
        """Maximum number of pending reservations for this patron."""
        return MembershipLevel(self.membership_level).reservation_limit

    @property
    def has_fines(self) -> bool:
        return self.fine_balance > 0

    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        use_enum_values=True,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "name": "Alice Smith",
                "email": "alice@example.com",
                "membership_level": "Regular",
                "fine_balance": 0.0,
            }
        },
    )
