"""
Repository pattern implementation for the Lending Ledger.

This module provides a clean data access layer that keeps SQL out of the
catalog, the ledger and the MCP handlers:

1. **Separation**: Callers work with Pydantic models, never ORM rows
2. **Testability**: Repositories only need a session, so tests can hand them
   an isolated in-memory database
3. **Consistency**: All data access follows the same patterns

Repositories never commit. The caller's ``session_scope`` owns the
transaction; repositories flush so that constraint violations surface
at the call that caused them.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..database.schema import Base
from ..database.session import safe_query

# Type variables for generic repository
ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
ResponseSchemaType = TypeVar("ResponseSchemaType", bound=BaseModel)


class RepositoryException(Exception):
    """Base exception for repository operations."""


class NotFoundError(RepositoryException):
    """Raised when an entity is not found."""


class DuplicateError(RepositoryException):
    """Raised when attempting to create a duplicate entity."""


class ConflictError(RepositoryException):
    """Raised when an entity cannot be changed in its current state."""


class BaseRepository(ABC, Generic[ModelType, CreateSchemaType, ResponseSchemaType]):
    """
    Abstract base repository providing common CRUD operations.

    All reads go through ``safe_query`` for uniform error handling.
    """

    def __init__(self, session: Session):
        """Initialize repository with database session."""
        self.session = session

    @property
    @abstractmethod
    def model_class(self) -> type[ModelType]:
        """Return the SQLAlchemy model class."""

    @property
    @abstractmethod
    def response_schema(self) -> type[ResponseSchemaType]:
        """Return the Pydantic response schema."""

    def _to_response_model(self, db_obj: ModelType) -> ResponseSchemaType:
        """Convert database model to Pydantic response model."""
        return self.response_schema.model_validate(db_obj, from_attributes=True)

    def get_row(self, id: int) -> ModelType | None:
        """Get the ORM row for ``id`` (for callers that mutate it)."""
        return safe_query(
            self.session,
            lambda s: s.get(self.model_class, id),
            f"Failed to get {self.model_class.__name__} by ID",
        )

    def get_by_id(self, id: int) -> ResponseSchemaType | None:
        """
        Get entity by ID.

        Returns:
            Pydantic model or None if not found
        """
        db_obj = self.get_row(id)
        if db_obj is None:
            return None
        return self._to_response_model(db_obj)

    def get_all(self) -> list[ResponseSchemaType]:
        """Get all entities ordered by ID."""
        query = select(self.model_class).order_by(self.model_class.id)
        results = safe_query(
            self.session, lambda s: s.execute(query).scalars().all(), "Failed to get all results"
        )
        return [self._to_response_model(item) for item in results]

    def create(self, data: CreateSchemaType) -> ResponseSchemaType:
        """
        Create new entity.

        Raises:
            DuplicateError: If entity already exists
            RepositoryException: On other database errors
        """
        db_obj = self.model_class(**data.model_dump())
        return self._to_response_model(self._insert(db_obj))

    def _insert(self, db_obj: ModelType) -> ModelType:
        try:
            self.session.add(db_obj)
            self.session.flush()
            self.session.refresh(db_obj)
            return db_obj
        except IntegrityError as e:
            self.session.rollback()
            raise DuplicateError(f"Entity already exists: {e.orig!s}") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise RepositoryException(f"Database error: {e!s}") from e

    def delete(self, id: int) -> bool:
        """
        Delete entity by ID.

        Returns:
            True if deleted, False if not found
        """
        db_obj = self.get_row(id)
        if db_obj is None:
            return False

        try:
            self.session.delete(db_obj)
            self.session.flush()
            return True
        except SQLAlchemyError as e:
            self.session.rollback()
            raise RepositoryException(f"Delete failed: {e!s}") from e

    def exists(self, id: int) -> bool:
        """Check if entity exists by ID."""
        return self.get_row(id) is not None

    def count(self) -> int:
        """Count all entities."""
        query = select(func.count()).select_from(self.model_class)
        return (
            safe_query(self.session, lambda s: s.execute(query).scalar(), "Failed to count")
            or 0
        )
