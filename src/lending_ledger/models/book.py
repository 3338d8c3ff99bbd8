"""
Book model for the Lending Ledger.

This model represents a book in the library catalog. Books are exposed as
resources that can be accessed via URIs like:
- library://books/list
- library://books/{book_id}

The ``is_loaned`` flag is a cached view of the ledger state: it is true
exactly when an open loan exists for the book.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .circulation import Reservation


class Book(BaseModel):
    """
    Represents a book in the library catalog.

    ``reservations`` holds the pending reservation queue in priority order.
    """

    id: int = Field(
        ...,
        description="Catalog identifier of the book",
        ge=1,
        examples=[1, 2],
    )

    title: str = Field(
        ...,
        description="The title of the book",
        min_length=1,
        max_length=500,
        examples=["1984", "To Kill a Mockingbird"],
    )

    author: str = Field(
        ...,
        description="Author of the book",
        min_length=1,
        max_length=200,
        examples=["George Orwell", "Harper Lee"],
    )

    genre: str = Field(
        ...,
        description="Literary genre or category of the book",
        examples=["Dystopian", "Fiction"],
    )

    publication_year: int = Field(
        ...,
        description="Year the book was published",
        ge=1450,  # After Gutenberg printing press
        le=datetime.now().year + 1,
        examples=[1949, 1960],
    )

    is_loaned: bool = Field(
        default=False,
        description="Whether the book is currently on loan",
    )

    reservations: list[Reservation] = Field(
        default_factory=list,
        description="Pending reservations, head of the queue first",
    )

    @field_validator("title", "author", "genre")
    @classmethod
    def strip_text(cls, v: str) -> str:
        """Strip surrounding whitespace from text fields."""
        return v.strip()

    @property
    def is_available(self) -> bool:
        """Check if the book is on the shelf."""
        return not self.is_loaned

    @property
    def next_in_queue(self) -> Reservation | None:
        """Reservation with the highest priority, if any."""
        return self.reservations[0] if self.reservations else None

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "1984",
                "author": "George Orwell",
                "genre": "Dystopian",
                "publication_year": 1949,
                "is_loaned": False,
                "reservations": [],
            }
        },
    )
