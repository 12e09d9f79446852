"""
Goal management service.
Handles creating, updating and (soft) deleting a user's goals.
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from resolution_tracker.catalog import get_theme
from resolution_tracker.exceptions import (
    GoalNotFoundException, StoreFailureException, UserNotFoundException,
    ValidationException
)
from resolution_tracker.models import Goal
from resolution_tracker.repositories.goal_repository import GoalRepository
from resolution_tracker.repositories.user_repository import UserRepository
from resolution_tracker.schemas import GoalCreate, GoalUpdate
from resolution_tracker.services.period_service import PeriodService
from resolution_tracker.services.points_service import PointsService

logger = logging.getLogger("resolution_tracker.goals")

# Fields an update may explicitly clear
NULLABLE_GOAL_FIELDS = {"description", "custom_deadline"}


class GoalService:
    """Service for managing goals"""

    def __init__(self, db: Session, clock: Callable[[], datetime] = datetime.now):
        self.db = db
        self.clock = clock
        self.goal_repo = GoalRepository()
        self.user_repo = UserRepository()
        self.period_service = PeriodService()
        self.points_service = PointsService()

    def _validate_theme(self, theme_id: str) -> None:
        if get_theme(theme_id) is None:
            raise ValidationException("theme_id", f"unknown theme '{theme_id}'")

    def _commit(self, operation: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {operation}: {e}")
            raise StoreFailureException(operation, str(e)) from e

    def get_goal(self, user_id: str, goal_id: int) -> Goal:
        """
        Get a goal owned by the user.

        Raises:
            GoalNotFoundException: If the user has no such goal
        """
        goal = self.goal_repo.get_by_id(self.db, user_id, goal_id)
        if not goal:
            raise GoalNotFoundException(goal_id)
        return goal

    def get_goals(self, user_id: str) -> List[Goal]:
        """Get all active goals, newest first"""
        return self.goal_repo.get_active(self.db, user_id)

    def get_todays_goals(self, user_id: str) -> List[Goal]:
        """Get active goals whose current period contains now"""
        now = self.clock()
        return [
            goal for goal in self.goal_repo.get_active(self.db, user_id)
            if self.period_service.is_within_period(
                self.period_service.get_current_period(
                    goal.recurrence_type, goal.custom_deadline, now
                ),
                now
            )
        ]

    def create_goal(self, user_id: str, goal_data: GoalCreate) -> Goal:
        """
        Create a new goal with fresh counters.

        points_per_completion is derived from the recurrence type.
        """
        if not self.user_repo.get_by_id(self.db, user_id):
            raise UserNotFoundException(user_id)
        self._validate_theme(goal_data.theme_id)

        goal = Goal(
            user_id=user_id,
            **goal_data.model_dump(),
            is_active=True,
            current_streak=0,
            longest_streak=0,
            total_completions=0,
            last_completed_at=None,
            points_per_completion=self.points_service.get_base_points(goal_data.recurrence_type)
        )
        try:
            self.goal_repo.create(self.db, goal)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreFailureException("create_goal", str(e)) from e
        self._commit("create_goal")
        self.db.refresh(goal)

        logger.info(f"Goal {goal.id} created for user {user_id} ({goal.recurrence_type})")
        return goal

    def update_goal(self, user_id: str, goal_id: int, goal_update: GoalUpdate) -> Goal:
        """
        Update an existing goal.

        Changing the recurrence type re-derives points_per_completion.
        """
        goal = self.get_goal(user_id, goal_id)

        update_data = {
            key: value
            for key, value in goal_update.model_dump(exclude_unset=True).items()
            if value is not None or key in NULLABLE_GOAL_FIELDS
        }
        if update_data.get("theme_id") is not None:
            self._validate_theme(update_data["theme_id"])
        if update_data.get("recurrence_type") is not None:
            update_data["points_per_completion"] = self.points_service.get_base_points(
                update_data["recurrence_type"]
            )

        try:
            self.goal_repo.apply_stats_update(self.db, goal, **update_data)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreFailureException("update_goal", str(e)) from e
        self._commit("update_goal")
        self.db.refresh(goal)
        return goal

    def delete_goal(self, user_id: str, goal_id: int) -> Goal:
        """Soft delete: flag the goal inactive, keeping its history"""
        return self.update_goal(user_id, goal_id, GoalUpdate(is_active=False))

    def hard_delete_goal(self, user_id: str, goal_id: int) -> None:
        """Permanently delete a goal and its completions"""
        goal = self.get_goal(user_id, goal_id)
        try:
            self.goal_repo.delete(self.db, goal)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreFailureException("hard_delete_goal", str(e)) from e
        self._commit("hard_delete_goal")
        logger.info(f"Goal {goal_id} permanently deleted for user {user_id}")
