"""
Completion repository - Data access layer for the completion ledger.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from resolution_tracker.models import Completion


class CompletionRepository:
    """Repository for Completion data access"""

    @staticmethod
    def find_in_period(
        db: Session,
        goal_id: int,
        start: datetime,
        end: datetime
    ) -> Optional[Completion]:
        """Get the completion whose period starts inside [start, end)"""
        return db.query(Completion).filter(
            Completion.goal_id == goal_id,
            Completion.period_start >= start,
            Completion.period_start < end
        ).order_by(Completion.completed_at.desc()).first()

    @staticmethod
    def get_latest(db: Session, goal_id: int) -> Optional[Completion]:
        """Get the most recent completion of a goal"""
        return db.query(Completion).filter(
            Completion.goal_id == goal_id
        ).order_by(Completion.completed_at.desc(), Completion.id.desc()).first()

    @staticmethod
    def get_for_goal(db: Session, goal_id: int, limit: int) -> List[Completion]:
        """Get completion history for a goal, newest first"""
        return db.query(Completion).filter(
            Completion.goal_id == goal_id
        ).order_by(Completion.completed_at.desc(), Completion.id.desc()).limit(limit).all()

    @staticmethod
    def insert(db: Session, completion: Completion) -> Completion:
        """
        Insert a completion.

        Raises:
            IntegrityError: If the goal already has a completion for this period
        """
        db.add(completion)
        db.flush()
        return completion

    @staticmethod
    def delete_by_id(db: Session, completion_id: int) -> bool:
        """Delete a completion by ID"""
        deleted = db.query(Completion).filter(
            Completion.id == completion_id
        ).delete(synchronize_session="fetch")
        return deleted > 0
