"""
Dietary preferences persistence service.
"""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from healthymeal.db.models import DietaryPreferences
from healthymeal.errors import DatabaseError, DietaryPreferencesNotFoundError
from healthymeal.models.schemas import DietaryPreferencesUpdate

logger = logging.getLogger(__name__)


class DietaryPreferencesService:
    """Reads and partially updates a user's dietary preferences row."""

    def __init__(self, db: Session):
        self.db = db

    def find(self, user_id: UUID) -> Optional[DietaryPreferences]:
        """Return the preferences row, or None if the user has none."""
        return (
            self.db.query(DietaryPreferences)
            .filter(DietaryPreferences.user_id == user_id)
            .first()
        )

    def get(self, user_id: UUID) -> DietaryPreferences:
        """
        Return the preferences row.

        Raises:
            DietaryPreferencesNotFoundError: No row exists for the user
        """
        preferences = self.find(user_id)
        if preferences is None:
            raise DietaryPreferencesNotFoundError(str(user_id))
        return preferences

    def update(self, user_id: UUID, command: DietaryPreferencesUpdate) -> DietaryPreferences:
        """
        Apply only the fields present in the request.

        An explicit null clears a field; an omitted field is left unchanged.

        Raises:
            DietaryPreferencesNotFoundError: No row exists for the user
            DatabaseError: The update failed
        """
        preferences = self.get(user_id)

        for field in command.model_fields_set:
            setattr(preferences, field, getattr(command, field))

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Failed to update dietary preferences for user {user_id}")
            raise DatabaseError("update_dietary_preferences", {"error_type": type(e).__name__}) from e

        self.db.refresh(preferences)
        logger.info(f"Updated dietary preferences for user {user_id}: {sorted(command.model_fields_set)}")
        return preferences
