"""
Badge repository - Data access layer for earned badges.
"""
from datetime import datetime
from typing import List, Optional, Set
from sqlalchemy.orm import Session

from resolution_tracker.models import UserBadge


class BadgeRepository:
    """Repository for UserBadge data access"""

    @staticmethod
    def list_earned(db: Session, user_id: str) -> List[UserBadge]:
        """Get all earned badges for a user, most recent first"""
        return db.query(UserBadge).filter(
            UserBadge.user_id == user_id
        ).order_by(UserBadge.earned_at.desc(), UserBadge.id.desc()).all()

    @staticmethod
    def list_earned_ids(db: Session, user_id: str) -> Set[str]:
        """Get the set of earned badge ids for a user"""
        rows = db.query(UserBadge.badge_id).filter(UserBadge.user_id == user_id).all()
        return {row.badge_id for row in rows}

    @staticmethod
    def get(db: Session, user_id: str, badge_id: str) -> Optional[UserBadge]:
        """Get an earned badge"""
        return db.query(UserBadge).filter(
            UserBadge.user_id == user_id,
            UserBadge.badge_id == badge_id
        ).first()

    @staticmethod
    def get_unnotified(db: Session, user_id: str) -> List[UserBadge]:
        """Get earned badges the user has not been notified about"""
        return db.query(UserBadge).filter(
            UserBadge.user_id == user_id,
            UserBadge.notified == False
        ).order_by(UserBadge.earned_at).all()

    @staticmethod
    def award(db: Session, user_id: str, badge_id: str, earned_at: datetime) -> UserBadge:
        """
        Insert an earned badge.

        Raises:
            IntegrityError: If the user already has this badge
        """
        user_badge = UserBadge(
            user_id=user_id,
            badge_id=badge_id,
            earned_at=earned_at,
            notified=False
        )
        db.add(user_badge)
        db.flush()
        return user_badge
