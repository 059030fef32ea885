# cfa_planning/repositories/base_repository.py
"""
Generic data access for the planning models.

Repositories never commit: the service owning the unit of work decides
when a transaction ends. Low-level SQLAlchemy failures are logged and
re-raised as RepositoryException so services only deal with one error type.
"""

from abc import ABC, abstractmethod
import logging
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException
from ..database import get_dialect_name

T = TypeVar("T")

logger = logging.getLogger(__name__)


class IRepository(ABC, Generic[T]):
    """Minimal contract shared by every planning repository."""

    @abstractmethod
    def get_by_id(self, id: str, load_relationships: bool = True) -> Optional[T]:
        """Return the row with this ULID, or None."""

    @abstractmethod
    def get_many(self, ids: List[str]) -> List[T]:
        """Return the rows whose ULID is in ``ids``; unknown ids are ignored."""

    @abstractmethod
    def create(self, **kwargs: Any) -> T:
        """Add and flush a new row so its id is available to the caller."""


class BaseRepository(IRepository[T]):
    """
    SQLAlchemy implementation of IRepository bound to one model class.

    Subclasses add aggregate-specific queries and may override
    _apply_eager_loading to pull in the relationships they always need.
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @property
    def dialect_name(self) -> str:
        return get_dialect_name(self.db)

    def get_by_id(self, id: str, load_relationships: bool = True) -> Optional[T]:
        try:
            query = self.db.query(self.model).filter(self.model.id == id)
            if load_relationships:
                query = self._apply_eager_loading(query)
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Lookup of {self.model.__name__} {id} failed: {str(e)}")
            raise RepositoryException(f"Could not load {self.model.__name__} {id}: {str(e)}")

    def get_many(self, ids: List[str]) -> List[T]:
        if not ids:
            return []
        try:
            return self.db.query(self.model).filter(self.model.id.in_(list(ids))).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Bulk lookup of {self.model.__name__} failed: {str(e)}")
            raise RepositoryException(f"Could not load {self.model.__name__} rows: {str(e)}")

    def create(self, **kwargs: Any) -> T:
        """
        Add a row and flush it.

        Raises:
            RepositoryException: On a constraint violation or database error.
                The session is rolled back before raising.
        """
        entity = self.model(**kwargs)
        try:
            self.db.add(entity)
            self.db.flush()
            return entity
        except IntegrityError as exc:
            self.logger.error(
                "Constraint violation while inserting %s: %s", self.model.__name__, exc
            )
            self.db.rollback()
            raise RepositoryException(
                f"{self.model.__name__} violates a database constraint: {exc.orig}"
            ) from exc
        except SQLAlchemyError as exc:
            self.logger.error("Insert of %s failed: %s", self.model.__name__, exc)
            self.db.rollback()
            raise RepositoryException(f"Could not create {self.model.__name__}: {exc}") from exc

    # Subclass hooks

    def _apply_eager_loading(self, query: Query) -> Query:
        return query

    def _execute_query(self, query: Query) -> List[T]:
        try:
            return query.all()
        except SQLAlchemyError as e:
            self.logger.error(f"{self.model.__name__} query failed: {str(e)}")
            raise RepositoryException(f"{self.model.__name__} query failed: {str(e)}")
