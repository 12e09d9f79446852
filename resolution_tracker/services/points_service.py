"""
Points calculation service.
Handles completion points with streak multipliers, and the derived user level.
Pure functions over the static tables in constants; no database access.
"""
import math
from typing import Optional

from resolution_tracker.constants import (
    BASE_POINTS, STREAK_MULTIPLIERS, STREAK_MILESTONES, LEVELS
)
from resolution_tracker.exceptions import ValidationException
from resolution_tracker.schemas import LevelInfo


class PointsService:
    """Service for points and level calculations"""

    @staticmethod
    def get_base_points(recurrence_type: str) -> int:
        """
        Get base points per completion for a recurrence type.

        Raises:
            ValidationException: If recurrence_type is unknown
        """
        try:
            return BASE_POINTS[recurrence_type]
        except KeyError:
            raise ValidationException(
                "recurrence_type", f"unknown recurrence type '{recurrence_type}'"
            )

    @staticmethod
    def get_streak_multiplier(streak: int) -> float:
        """
        Return the multiplier for a streak length.

        Uses the largest threshold not above the streak. Streaks below the
        smallest threshold get 1.0.
        E.g., streak=10 -> 1.5 (7-day tier), streak=29 -> 1.75 (14-day tier).
        """
        multiplier = 1.0
        for threshold in sorted(STREAK_MULTIPLIERS):
            if streak >= threshold:
                multiplier = STREAK_MULTIPLIERS[threshold]
        return multiplier

    @staticmethod
    def points_for(recurrence_type: str, streak: int) -> int:
        """
        Calculate points for one completion.

        Formula: floor(BasePoints[recurrence_type] × StreakMultiplier(streak))

        Args:
            recurrence_type: Goal recurrence type
            streak: Streak length reached by this completion

        Returns:
            Points earned (>= 0)
        """
        base = PointsService.get_base_points(recurrence_type)
        multiplier = PointsService.get_streak_multiplier(streak)
        return max(0, math.floor(base * multiplier))

    @staticmethod
    def get_next_streak_milestone(streak: int) -> Optional[int]:
        """Next streak milestone above the current streak, or None past the last one"""
        for milestone in STREAK_MILESTONES:
            if milestone > streak:
                return milestone
        return None

    @staticmethod
    def get_level_info(points: int) -> LevelInfo:
        """
        Get the level reached with the given points.

        Levels are derived on demand from the LEVELS table and never stored.
        """
        current_index = 0
        for index, entry in enumerate(LEVELS):
            if points >= entry["min_points"]:
                current_index = index

        entry = LEVELS[current_index]
        if current_index + 1 < len(LEVELS):
            max_points = LEVELS[current_index + 1]["min_points"] - 1
        else:
            max_points = None

        return LevelInfo(
            level=entry["level"],
            min_points=entry["min_points"],
            max_points=max_points,
            title=entry["title"],
            color=entry["color"]
        )

    @staticmethod
    def get_level(points: int) -> int:
        """Get the level number for the given points"""
        return PointsService.get_level_info(points).level

    @staticmethod
    def get_progress_to_next_level(points: int) -> int:
        """
        Percent progress (0-100) from the current level's threshold to the next.

        Returns 100 at the top level.
        """
        info = PointsService.get_level_info(points)
        if info.max_points is None:
            return 100

        span = info.max_points + 1 - info.min_points
        progress = (max(points, 0) - info.min_points) * 100 // span
        return max(0, min(100, progress))
