"""
Badge evaluation and awarding service.
Evaluation is pure over the injected catalog; awarding is idempotent per
(user, badge), enforced by the user_badges unique constraint.
"""
import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from resolution_tracker.catalog import BADGES
from resolution_tracker.constants import (
    CRITERIA_STREAK, CRITERIA_TOTAL_COMPLETIONS, CRITERIA_POINTS, CRITERIA_LEVEL
)
from resolution_tracker.exceptions import (
    BadgeNotFoundException, StoreFailureException, UserNotFoundException
)
from resolution_tracker.models import UserBadge
from resolution_tracker.repositories.badge_repository import BadgeRepository
from resolution_tracker.repositories.user_repository import UserRepository
from resolution_tracker.schemas import Badge, BadgeWithStatus, UserStats
from resolution_tracker.services.points_service import PointsService

logger = logging.getLogger("resolution_tracker.badges")


class BadgeService:
    """Service for badge evaluation and earned-badge management"""

    def __init__(
        self,
        db: Session,
        catalog: Sequence[Badge] = BADGES,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.db = db
        self.catalog = catalog
        self.clock = clock
        self.badge_repo = BadgeRepository()
        self.user_repo = UserRepository()
        self.points_service = PointsService()

    def is_qualified(self, badge: Badge, stats: UserStats) -> bool:
        """
        Check a badge's criteria against user stats.

        partner_challenge, theme_mastery and special criteria need tracking
        dimensions this core does not keep, so they never qualify here.
        """
        criteria = badge.criteria

        if criteria.type == CRITERIA_STREAK:
            # Either counter may trigger it, so a dropped streak keeps qualifying
            return (
                stats.current_streak >= criteria.threshold
                or stats.longest_streak >= criteria.threshold
            )
        if criteria.type == CRITERIA_TOTAL_COMPLETIONS:
            return stats.total_completions >= criteria.threshold
        if criteria.type == CRITERIA_POINTS:
            return stats.points >= criteria.threshold
        if criteria.type == CRITERIA_LEVEL:
            return self.points_service.get_level(stats.points) >= criteria.threshold

        return False

    def evaluate(self, stats: UserStats, earned_badge_ids: Iterable[str]) -> List[Badge]:
        """
        Find badges that newly qualify.

        Args:
            stats: Aggregate user statistics
            earned_badge_ids: Ids of badges the user already has

        Returns:
            Qualifying badges not yet earned, in catalog order
        """
        earned = set(earned_badge_ids)
        return [
            badge for badge in self.catalog
            if badge.id not in earned and self.is_qualified(badge, stats)
        ]

    def get_badge_by_id(self, badge_id: str) -> Optional[Badge]:
        """Get catalog badge by ID"""
        for badge in self.catalog:
            if badge.id == badge_id:
                return badge
        return None

    def get_badges_by_category(self, category: str) -> List[Badge]:
        """Get catalog badges in a category ordered by sort_order"""
        return sorted(
            (badge for badge in self.catalog if badge.category == category),
            key=lambda badge: badge.sort_order
        )

    def get_earned_badges(self, user_id: str) -> List[UserBadge]:
        """Get all earned badges for a user"""
        return self.badge_repo.list_earned(self.db, user_id)

    def has_badge(self, user_id: str, badge_id: str) -> bool:
        """Check whether the user has earned a badge"""
        return self.badge_repo.get(self.db, user_id, badge_id) is not None

    def award_badge(self, user_id: str, badge_id: str) -> Optional[UserBadge]:
        """
        Award a badge to a user.

        Safe to call twice for the same pair: the second call (or the loser
        of a concurrent race) returns None without changing anything.

        Raises:
            BadgeNotFoundException: If badge_id is not in the catalog
            StoreFailureException: If the database write fails
        """
        if self.get_badge_by_id(badge_id) is None:
            raise BadgeNotFoundException(badge_id)

        if self.has_badge(user_id, badge_id):
            return None

        try:
            user_badge = self.badge_repo.award(self.db, user_id, badge_id, self.clock())
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(f"Badge {badge_id} already awarded to user {user_id}")
            return None
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to award badge {badge_id} to user {user_id}: {e}")
            raise StoreFailureException("award_badge", str(e)) from e

        logger.info(f"Awarded badge {badge_id} to user {user_id}")
        return user_badge

    def check_and_award_badges(self, user_id: str) -> List[Badge]:
        """
        Evaluate refreshed user stats and award every newly qualifying badge.

        Returns:
            Badges actually awarded by this call

        Raises:
            UserNotFoundException: If the user does not exist
        """
        user = self.user_repo.get_by_id(self.db, user_id)
        if not user:
            raise UserNotFoundException(user_id)

        stats = UserStats.model_validate(user)
        earned_ids = self.badge_repo.list_earned_ids(self.db, user_id)

        awarded = []
        for badge in self.evaluate(stats, earned_ids):
            if self.award_badge(user_id, badge.id) is not None:
                awarded.append(badge)
        return awarded

    def get_all_badges_with_status(self, user_id: str) -> List[BadgeWithStatus]:
        """Get the whole catalog with earned status: earned first, then by sort order"""
        earned = {ub.badge_id: ub for ub in self.badge_repo.list_earned(self.db, user_id)}

        badges = []
        for badge in self.catalog:
            user_badge = earned.get(badge.id)
            badges.append(BadgeWithStatus(
                **badge.model_dump(),
                earned=user_badge is not None,
                earned_at=user_badge.earned_at if user_badge else None
            ))

        badges.sort(key=lambda b: (not b.earned, b.sort_order))
        return badges

    def get_unnotified_badges(self, user_id: str) -> List[UserBadge]:
        """Get earned badges the user has not seen yet"""
        return self.badge_repo.get_unnotified(self.db, user_id)

    def mark_badge_notified(self, user_id: str, badge_id: str) -> bool:
        """
        Mark an earned badge as notified.

        Returns:
            False if the user has not earned the badge
        """
        user_badge = self.badge_repo.get(self.db, user_id, badge_id)
        if not user_badge:
            return False

        user_badge.notified = True
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreFailureException("mark_badge_notified", str(e)) from e
        return True
