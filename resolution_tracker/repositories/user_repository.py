"""
User repository - Data access layer for user records and their aggregate stats.
"""
from typing import Optional
from sqlalchemy.orm import Session

from resolution_tracker.models import User


class UserRepository:
    """Repository for User data access"""

    @staticmethod
    def get_by_id(db: Session, user_id: str, for_update: bool = False) -> Optional[User]:
        """Get user by ID"""
        query = db.query(User).filter(User.id == user_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def create(db: Session, user: User) -> User:
        """Add a new user"""
        db.add(user)
        db.flush()
        return user

    @staticmethod
    def apply_stats_update(db: Session, user: User, **patch) -> User:
        """Apply a stats patch (points, total_completions, streaks) to a user"""
        for key, value in patch.items():
            setattr(user, key, value)
        db.flush()
        return user
