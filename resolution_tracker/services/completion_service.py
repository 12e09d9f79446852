"""
Completion ledger service.
Records goal completions for the current period and keeps the goal, the user
aggregate stats and the completion history consistent in one transaction.

Per (goal, period) the state machine is Uncompleted -> Completed -> Uncompleted.
"""
import logging
from datetime import datetime
from typing import Callable, List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from resolution_tracker.constants import DEFAULT_PAGE_SIZE
from resolution_tracker.exceptions import (
    AlreadyCompletedException, GoalNotFoundException, NothingToUndoException,
    StoreFailureException, UserNotFoundException
)
from resolution_tracker.models import Completion, Goal, User
from resolution_tracker.repositories.completion_repository import CompletionRepository
from resolution_tracker.repositories.goal_repository import GoalRepository
from resolution_tracker.repositories.user_repository import UserRepository
from resolution_tracker.schemas import CompletionResult, PeriodRange
from resolution_tracker.services.period_service import PeriodService
from resolution_tracker.services.points_service import PointsService
from resolution_tracker.services.streak_service import StreakService

logger = logging.getLogger("resolution_tracker.ledger")


class CompletionService:
    """Service for completing and uncompleting goals"""

    def __init__(self, db: Session, clock: Callable[[], datetime] = datetime.now):
        self.db = db
        self.clock = clock
        self.goal_repo = GoalRepository()
        self.completion_repo = CompletionRepository()
        self.user_repo = UserRepository()
        self.period_service = PeriodService()
        self.points_service = PointsService()
        self.streak_service = StreakService()

    def _load(self, user_id: str, goal_id: int, for_update: bool = False) -> tuple[User, Goal]:
        """Load the user and one of their active goals"""
        user = self.user_repo.get_by_id(self.db, user_id, for_update=for_update)
        if not user:
            raise UserNotFoundException(user_id)

        goal = self.goal_repo.get_by_id(self.db, user_id, goal_id, for_update=for_update)
        if not goal or not goal.is_active:
            raise GoalNotFoundException(goal_id)

        return user, goal

    def _current_period(self, goal: Goal, now: datetime) -> PeriodRange:
        return self.period_service.get_current_period(
            goal.recurrence_type, goal.custom_deadline, now
        )

    def complete_goal(self, user_id: str, goal_id: int) -> CompletionResult:
        """
        Complete a goal for the current period.

        Inserts the completion, advances the goal and global streaks and adds
        the earned points to the user, all in one transaction. Badge checks
        are left to the caller.

        Returns:
            CompletionResult with points earned and the new goal streak

        Raises:
            UserNotFoundException, GoalNotFoundException: Unknown user or goal
            AlreadyCompletedException: The goal is already completed this period
            StoreFailureException: The database failed; nothing was written
        """
        now = self.clock()
        try:
            user, goal = self._load(user_id, goal_id, for_update=True)
            period = self._current_period(goal, now)

            if self.completion_repo.find_in_period(self.db, goal.id, period.start, period.end):
                raise AlreadyCompletedException(goal.id, period.start)

            goal_streak = self.streak_service.on_complete(goal.current_streak, goal.longest_streak)
            user_streak = self.streak_service.on_complete(user.current_streak, user.longest_streak)
            points = self.points_service.points_for(goal.recurrence_type, goal_streak.current_streak)

            self.completion_repo.insert(self.db, Completion(
                goal_id=goal.id,
                user_id=user.id,
                completed_at=now,
                period_start=period.start,
                period_end=period.end,
                points_earned=points,
                streak_at_completion=goal_streak.current_streak
            ))
            self.goal_repo.apply_stats_update(
                self.db, goal,
                current_streak=goal_streak.current_streak,
                longest_streak=goal_streak.longest_streak,
                total_completions=goal.total_completions + 1,
                last_completed_at=now
            )
            self.user_repo.apply_stats_update(
                self.db, user,
                points=user.points + points,
                total_completions=user.total_completions + 1,
                current_streak=user_streak.current_streak,
                longest_streak=user_streak.longest_streak
            )
            self.db.commit()
        except AlreadyCompletedException:
            self.db.rollback()
            logger.info(f"Goal {goal_id} already completed for the current period")
            raise
        except IntegrityError:
            # Lost a race against a concurrent completion of the same period
            self.db.rollback()
            logger.info(f"Goal {goal_id} completed concurrently for the current period")
            raise AlreadyCompletedException(goal_id, period.start)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to complete goal {goal_id} for user {user_id}: {e}")
            raise StoreFailureException("complete_goal", str(e)) from e
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Goal {goal_id} completed by user {user_id}: "
            f"+{points} points, streak {goal_streak.current_streak}"
        )
        return CompletionResult(
            points_earned=points,
            new_streak=goal_streak.current_streak,
            period_start=period.start,
            period_end=period.end
        )

    def uncomplete_goal(self, user_id: str, goal_id: int) -> bool:
        """
        Undo the completion of a goal for the current period.

        Deletes the completion and rolls the goal and user counters back,
        clamped at zero. Longest streaks are left untouched.

        Returns:
            True once the completion has been removed

        Raises:
            UserNotFoundException, GoalNotFoundException: Unknown user or goal
            NothingToUndoException: No completion exists for the current period
            StoreFailureException: The database failed; nothing was written
        """
        now = self.clock()
        try:
            user, goal = self._load(user_id, goal_id, for_update=True)
            period = self._current_period(goal, now)

            completion = self.completion_repo.find_in_period(
                self.db, goal.id, period.start, period.end
            )
            if not completion:
                raise NothingToUndoException(goal.id, period.start)

            points = completion.points_earned
            goal_streak = self.streak_service.on_uncomplete(
                goal.current_streak, goal.total_completions, goal.longest_streak
            )
            user_streak = self.streak_service.on_uncomplete(
                user.current_streak, user.total_completions, user.longest_streak
            )

            # Already removed by a concurrent undo
            if not self.completion_repo.delete_by_id(self.db, completion.id):
                raise NothingToUndoException(goal.id, period.start)
            latest = self.completion_repo.get_latest(self.db, goal.id)

            self.goal_repo.apply_stats_update(
                self.db, goal,
                current_streak=goal_streak.current_streak,
                total_completions=goal_streak.total_completions,
                last_completed_at=latest.completed_at if latest else None
            )
            self.user_repo.apply_stats_update(
                self.db, user,
                points=max(0, user.points - points),
                total_completions=user_streak.total_completions,
                current_streak=user_streak.current_streak
            )
            self.db.commit()
        except NothingToUndoException:
            self.db.rollback()
            logger.info(f"Goal {goal_id} has nothing to undo for the current period")
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to uncomplete goal {goal_id} for user {user_id}: {e}")
            raise StoreFailureException("uncomplete_goal", str(e)) from e
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Goal {goal_id} uncompleted by user {user_id}: -{points} points")
        return True

    def is_completed_for_period(self, user_id: str, goal_id: int) -> bool:
        """Check if the goal already has a completion for the current period"""
        _, goal = self._load(user_id, goal_id)
        period = self._current_period(goal, self.clock())
        completion = self.completion_repo.find_in_period(
            self.db, goal.id, period.start, period.end
        )
        return completion is not None

    def get_completions(
        self,
        user_id: str,
        goal_id: int,
        limit: int = DEFAULT_PAGE_SIZE
    ) -> List[Completion]:
        """Get completion history for a goal, newest first"""
        goal = self.goal_repo.get_by_id(self.db, user_id, goal_id)
        if not goal:
            raise GoalNotFoundException(goal_id)
        return self.completion_repo.get_for_goal(self.db, goal.id, limit)
