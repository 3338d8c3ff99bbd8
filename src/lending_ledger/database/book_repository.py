"""
Book repository implementation for the Lending Ledger.

This repository manages the book catalog:

1. **Catalog Management**: Adding and removing books by id
2. **Search**: Case-insensitive substring lookup over titles and authors
3. **Queue View**: Books are returned together with their pending
   reservation queue
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import func, select

from ..database.schema import Book as BookDB
from ..database.schema import Reservation as ReservationDB
from ..database.session import safe_query
from ..models.book import Book as BookModel
from ..models.circulation import Reservation as ReservationModel
from ..models.circulation import ReservationStatus
from .repository import BaseRepository, DuplicateError


class BookCreateSchema(BaseModel):
    """Schema for adding a book to the catalog."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: int = Field(..., ge=1)
    title: str = Field(..., min_length=1, max_length=500)
    author: str = Field(..., min_length=1, max_length=200)
    genre: str = Field(..., min_length=1, max_length=100)
    publication_year: int = Field(..., ge=1450, le=datetime.now().year + 1)


class BookRepository(BaseRepository[BookDB, BookCreateSchema, BookModel]):
    """Repository for book data access."""

    @property
    def model_class(self):
        return BookDB

    @property
    def response_schema(self):
        return BookModel

    def _to_response_model(self, db_obj: BookDB) -> BookModel:
        """Convert a book row to a model carrying its pending queue."""
        return BookModel(
            id=db_obj.id,
            title=db_obj.title,
            author=db_obj.author,
            genre=db_obj.genre,
            publication_year=db_obj.publication_year,
            is_loaned=bool(db_obj.is_loaned),
            reservations=self.pending_queue(db_obj.id),
        )

    def create(self, data: BookCreateSchema) -> BookModel:
        """
        Add a book to the catalog.

        Raises:
            DuplicateError: If a book with the same id exists
        """
        if self.exists(data.id):
            raise DuplicateError(f"Book {data.id} already exists")

        db_obj = BookDB(**data.model_dump(), is_loaned=False)
        return self._to_response_model(self._insert(db_obj))

    def pending_queue(self, book_id: int) -> list[ReservationModel]:
        """Pending reservations for ``book_id``, head of the queue first."""
        query = (
            select(ReservationDB)
            .where(
                ReservationDB.book_id == book_id,
                ReservationDB.status == ReservationStatus.PENDING,
            )
            .order_by(ReservationDB.id)
        )
        results = safe_query(
            self.session,
            lambda s: s.execute(query).scalars().all(),
            "Failed to get reservation queue",
        )
        return [ReservationModel.model_validate(r) for r in results]

    def search_by_title(self, title: str) -> list[BookModel]:
        """Books whose title contains ``title`` (case-insensitive)."""
        return self._search(BookDB.title, title)

    def search_by_author(self, author: str) -> list[BookModel]:
        """Books whose author contains ``author`` (case-insensitive)."""
        return self._search(BookDB.author, author)

    def matching_ids(self, title: str) -> list[int]:
        """IDs of books whose title contains ``title``."""
        query = select(BookDB.id).where(
            func.lower(BookDB.title).contains(title.lower(), autoescape=True)
        )
        return list(
            safe_query(
                self.session,
                lambda s: s.execute(query).scalars().all(),
                "Failed to match book titles",
            )
        )

    def _search(self, column, term: str) -> list[BookModel]:
        query = (
            select(BookDB)
            .where(func.lower(column).contains(term.lower(), autoescape=True))
            .order_by(BookDB.id)
        )
        results = safe_query(
            self.session,
            lambda s: s.execute(query).scalars().all(),
            "Failed to search books",
        )
        return [self._to_response_model(book) for book in results]
