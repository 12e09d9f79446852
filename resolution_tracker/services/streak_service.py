"""
Streak tracking service.
Pure update rules shared by the per-goal streak and the global user streak.
There is no gap detection: a skipped period never resets a streak.
"""
from resolution_tracker.schemas import StreakUpdate


class StreakService:
    """Service for streak transitions"""

    @staticmethod
    def on_complete(prior_streak: int, prior_longest: int) -> StreakUpdate:
        """
        Advance a streak by one completed period.

        Returns:
            StreakUpdate with current = prior + 1 and longest = max(current, prior_longest)
        """
        current = max(0, prior_streak) + 1
        return StreakUpdate(
            current_streak=current,
            longest_streak=max(current, prior_longest)
        )

    @staticmethod
    def on_uncomplete(prior_streak: int, prior_total: int, prior_longest: int) -> StreakUpdate:
        """
        Undo one completion.

        Streak and total drop by one, clamped at zero. The longest streak is a
        historical maximum and is never reduced.
        """
        return StreakUpdate(
            current_streak=max(0, prior_streak - 1),
            longest_streak=prior_longest,
            total_completions=max(0, prior_total - 1)
        )
