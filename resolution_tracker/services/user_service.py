"""
User service.
Registers users with zeroed gamification stats; only the ledger changes them afterwards.
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from resolution_tracker.exceptions import StoreFailureException, UserNotFoundException
from resolution_tracker.models import User
from resolution_tracker.repositories.user_repository import UserRepository

logger = logging.getLogger("resolution_tracker.users")


class UserService:
    """Service for user records"""

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository()

    def get_user(self, user_id: str) -> User:
        user = self.user_repo.get_by_id(self.db, user_id)
        if not user:
            raise UserNotFoundException(user_id)
        return user

    def get_or_create_user(self, user_id: str, display_name: Optional[str] = None) -> User:
        """
        Get a user, creating it with zeroed stats if it does not exist.

        A given display_name replaces the stored one. Stats are never touched.
        """
        user = self.user_repo.get_by_id(self.db, user_id)
        if user:
            if display_name is not None and display_name != user.display_name:
                user.display_name = display_name
                self._commit("update_user")
                self.db.refresh(user)
            return user

        try:
            user = self.user_repo.create(self.db, User(
                id=user_id,
                display_name=display_name,
                points=0,
                total_completions=0,
                current_streak=0,
                longest_streak=0
            ))
            self.db.commit()
        except IntegrityError:
            # Registered concurrently
            self.db.rollback()
            return self.get_user(user_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create user {user_id}: {e}")
            raise StoreFailureException("create_user", str(e)) from e

        self.db.refresh(user)
        logger.info(f"User {user_id} created")
        return user

    def _commit(self, operation: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreFailureException(operation, str(e)) from e
