"""
Tests for the Book model.

These tests verify that the Book model correctly:
1. Validates catalog data
2. Reports availability from the loan flag
3. Exposes the head of its reservation queue
"""

from datetime import datetime

import pytest
from pydantic import ValidationError

from lending_ledger.models.book import Book
from lending_ledger.models.circulation import Reservation


def make_book(**overrides) -> Book:
    data = {
        "id": 1,
        "title": "1984",
        "author": "George Orwell",
        "genre": "Dystopian",
        "publication_year": 1949,
    }
    data.update(overrides)
    return Book(**data)


class TestBookModel:
    """Test suite for the Book model."""

    def test_create_valid_book(self):
        book = make_book()

        assert book.is_loaned is False
        assert book.is_available is True
        assert book.reservations == []
        assert book.next_in_queue is None

    def test_text_fields_are_stripped(self):
        book = make_book(title="  1984 ", author=" George Orwell")

        assert book.title == "1984"
        assert book.author == "George Orwell"

    def test_publication_year_validation(self):
        with pytest.raises(ValidationError):
            make_book(publication_year=1200)
        with pytest.raises(ValidationError):
            make_book(publication_year=datetime.now().year + 5)

    def test_id_must_be_positive(self):
        with pytest.raises(ValidationError):
            make_book(id=0)

    def test_loaned_book_is_unavailable(self):
        assert make_book(is_loaned=True).is_available is False

    def test_next_in_queue(self):
        first = Reservation(id=1, book_id=1, patron_id=2, reservation_date=datetime(2024, 1, 1))
        second = Reservation(id=2, book_id=1, patron_id=3, reservation_date=datetime(2024, 1, 2))

        book = make_book(reservations=[first, second])

        assert book.next_in_queue.patron_id == 2

    def test_json_round_trip(self):
        book = make_book(is_loaned=True)

        assert Book.model_validate_json(book.model_dump_json()) == book
