"""
Goal repository - Data access layer for Goal model.
Repositories flush but never commit: the calling service owns the transaction.
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from resolution_tracker.models import Goal


class GoalRepository:
    """Repository for Goal data access"""

    @staticmethod
    def get_by_id(
        db: Session,
        user_id: str,
        goal_id: int,
        for_update: bool = False
    ) -> Optional[Goal]:
        """Get a goal owned by the user"""
        query = db.query(Goal).filter(Goal.id == goal_id, Goal.user_id == user_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def get_active(db: Session, user_id: str) -> List[Goal]:
        """Get active goals for a user, newest first"""
        return db.query(Goal).filter(
            Goal.user_id == user_id,
            Goal.is_active == True
        ).order_by(Goal.created_at.desc(), Goal.id.desc()).all()

    @staticmethod
    def create(db: Session, goal: Goal) -> Goal:
        """Add a new goal"""
        db.add(goal)
        db.flush()
        return goal

    @staticmethod
    def apply_stats_update(db: Session, goal: Goal, **patch) -> Goal:
        """Apply a field patch to a goal"""
        for key, value in patch.items():
            setattr(goal, key, value)
        db.flush()
        return goal

    @staticmethod
    def delete(db: Session, goal: Goal) -> None:
        """Permanently delete a goal"""
        db.delete(goal)
        db.flush()
