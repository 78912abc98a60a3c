"""
Profile repository implementation.

SELECT / INSERT / UPDATE of ``user_profiles`` rows by subject id. Every
SQLAlchemy failure is rolled back and re-raised as a PersistenceError; the
repository never substitutes a default result for a failed query.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from talent_backend.infrastructure.persistence.base_repository import BaseRepository
from talent_backend.models import UserProfile
from talent_backend.utils.timezone_utils import utc_now

logger = logging.getLogger(__name__)


class ProfileRepository(BaseRepository[UserProfile]):
    """SQLAlchemy access to user profiles."""

    def __init__(self, session: Session):
        super().__init__(session, UserProfile)

    def get_by_subject(self, subject_id: str) -> Optional[UserProfile]:
        """
        Get the profile row for a subject.

        Returns:
            The row if one exists, None otherwise
        """
        try:
            return (
                self.session.query(UserProfile)
                .filter(UserProfile.subject_id == subject_id)
                .first()
            )
        except SQLAlchemyError as e:
            raise self._fail("loading profile", e) from e

    def insert(self, subject_id: str, values: Dict[str, Any]) -> UserProfile:
        """
        Insert a new profile row.

        Raises:
            DuplicateProfileError: the subject already has a row
            PersistenceError: any other datastore failure
        """
        try:
            profile = UserProfile(subject_id=subject_id, **values)
            self.session.add(profile)
            self.session.commit()
            self.session.refresh(profile)
            return profile
        except SQLAlchemyError as e:
            raise self._fail("inserting profile", e, duplicate_on_integrity=True) from e

    def update(self, profile: UserProfile, values: Dict[str, Any]) -> UserProfile:
        """
        Apply column values to an existing row and commit them in one write.
        """
        try:
            for column, value in values.items():
                setattr(profile, column, value)
            profile.updated_at = utc_now()
            self.session.commit()
            self.session.refresh(profile)
            return profile
        except SQLAlchemyError as e:
            raise self._fail("updating profile", e) from e
