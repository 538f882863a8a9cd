"""
Generic SQLAlchemy repository.

Every repository receives its Session explicitly; there is no module-level
client. Writes flush (not commit) so the router decides the transaction
boundary. Unique-constraint failures surface as ConflictError, any other
constraint failure as ValidationFailed.
"""
import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, ValidationFailed
from app.database import Base

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    model: Type[ModelT]
    conflict_message: str = "Record conflicts with an existing one"

    def __init__(self, db: Session):
        self.db = db
        self._logger = logging.getLogger(self.__class__.__module__)

    def find_by_id(self, entity_id: Any) -> Optional[ModelT]:
        return self.db.get(self.model, entity_id)

    def find_many(self, **filters: Any) -> List[ModelT]:
        """Equality filters; None values are skipped so optional query params pass straight through."""
        query = self.db.query(self.model)
        for name, value in filters.items():
            if value is not None:
                query = query.filter(getattr(self.model, name) == value)
        return query.order_by(self.model.id).all()

    def create(self, **values: Any) -> ModelT:
        entity = self.model(**values)
        self.db.add(entity)
        self._flush()
        return entity

    def update(self, entity: ModelT, **values: Any) -> ModelT:
        for name, value in values.items():
            setattr(entity, name, value)
        self._flush()
        return entity

    def delete(self, entity: ModelT) -> None:
        self.db.delete(entity)
        self._flush()

    def count_dependents(self, entity: ModelT) -> Dict[str, int]:
        """Named counts of records that must be gone before ``entity`` can be deleted."""
        return {}

    def _flush(self) -> None:
        try:
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            self._logger.warning(f"Integrity error on {self.model.__name__}: {exc.orig}")
            if _is_unique_violation(exc):
                raise ConflictError(self.conflict_message) from exc
            raise ValidationFailed(f"{self.model.__name__} violates a database constraint") from exc


def _is_unique_violation(exc: IntegrityError) -> bool:
    # PostgreSQL drivers expose the SQLSTATE; SQLite only reports it in the message
    sqlstate = getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)
    if sqlstate:
        return sqlstate == "23505"
    return "unique constraint" in str(exc.orig).lower()
