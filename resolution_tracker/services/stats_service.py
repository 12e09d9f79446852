"""
Gamification stats service.
Assembles the user's summary: points, derived level, streaks and badges.
"""
from sqlalchemy.orm import Session

from resolution_tracker.exceptions import UserNotFoundException
from resolution_tracker.repositories.badge_repository import BadgeRepository
from resolution_tracker.repositories.user_repository import UserRepository
from resolution_tracker.schemas import GamificationStats, UserBadgeResponse
from resolution_tracker.services.points_service import PointsService


class StatsService:
    """Service for user gamification summaries"""

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository()
        self.badge_repo = BadgeRepository()
        self.points_service = PointsService()

    def get_gamification_stats(self, user_id: str) -> GamificationStats:
        """
        Get the gamification summary for a user.

        Raises:
            UserNotFoundException: If the user does not exist
        """
        user = self.user_repo.get_by_id(self.db, user_id)
        if not user:
            raise UserNotFoundException(user_id)

        level_info = self.points_service.get_level_info(user.points)
        earned = self.badge_repo.list_earned(self.db, user_id)

        return GamificationStats(
            points=user.points,
            total_completions=user.total_completions,
            current_streak=user.current_streak,
            longest_streak=user.longest_streak,
            level=level_info.level,
            level_info=level_info,
            progress_to_next_level=self.points_service.get_progress_to_next_level(user.points),
            earned_badges=[UserBadgeResponse.model_validate(ub) for ub in earned]
        )
