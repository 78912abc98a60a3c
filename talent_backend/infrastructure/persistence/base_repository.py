"""
Base repository implementation.

This module provides generic SQLAlchemy plumbing shared by concrete
repositories: session handling, row-to-dict conversion, and translation of
SQLAlchemy failures into service-level persistence errors.
"""

import logging
from typing import Any, Dict, Generic, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from talent_backend.services.exceptions import DuplicateProfileError, PersistenceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Generic repository over a single mapped class.
    """

    def __init__(self, session: Session, model_class: Type[T]):
        """
        Initialize the repository.

        Args:
            session: SQLAlchemy session
            model_class: Mapped class handled by this repository
        """
        self.session = session
        self.model_class = model_class

    def to_dict(self, instance: T) -> Dict[str, Any]:
        """Convert a mapped instance to a plain dictionary of its columns."""
        return {
            column.name: getattr(instance, column.name)
            for column in instance.__table__.columns
        }

    def _fail(
        self, action: str, error: SQLAlchemyError, duplicate_on_integrity: bool = False
    ) -> PersistenceError:
        """
        Roll back the session and build the error to raise for a failed write.

        Only an insert can collide with an existing row, so an IntegrityError
        is reported as a duplicate when ``duplicate_on_integrity`` is set and
        as a plain persistence failure otherwise.
        """
        logger.error(f"Error {action}: {str(error)}")
        try:
            self.session.rollback()
        except SQLAlchemyError as rollback_error:
            logger.error(f"Rollback failed after error {action}: {rollback_error}")

        if duplicate_on_integrity and isinstance(error, IntegrityError):
            return DuplicateProfileError(f"Constraint violation while {action}: {error.orig}")
        if isinstance(error, IntegrityError):
            return PersistenceError(f"Constraint violation while {action}: {error.orig}")
        return PersistenceError(f"Datastore failure while {action}: {error}")
