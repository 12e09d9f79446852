"""
Tests for CompletionService.

Tests cover:
1. Completing a goal (points, streaks, user stats)
2. At most one completion per period
3. Uncompleting and round trips
4. Clamping against inconsistent state
5. Atomicity on store failures and concurrent completions
"""
import pytest
from datetime import datetime
from sqlalchemy.exc import OperationalError

from resolution_tracker.exceptions import (
    AlreadyCompletedException, GoalNotFoundException, NothingToUndoException,
    StoreFailureException, UserNotFoundException
)
from resolution_tracker.models import Completion
from resolution_tracker.services.completion_service import CompletionService
from resolution_tracker.tests.conftest import create_goal, create_user


def completion_count(db_session, goal_id: int) -> int:
    return db_session.query(Completion).filter(Completion.goal_id == goal_id).count()


class TestCompleteGoal:
    """Tests for complete_goal function"""

    def test_first_completion(self, db_session, user, daily_goal, clock):
        """First completion earns base points and starts a streak"""
        service = CompletionService(db_session, clock=clock)
        result = service.complete_goal(user.id, daily_goal.id)

        assert result.points_earned == 10
        assert result.new_streak == 1
        assert result.period_start == datetime(2026, 1, 14)
        assert result.period_end == datetime(2026, 1, 15)

    def test_records_completion(self, db_session, user, daily_goal, clock, now):
        """Should insert a ledger entry for the current period"""
        service = CompletionService(db_session, clock=clock)
        service.complete_goal(user.id, daily_goal.id)

        completion = db_session.query(Completion).filter(
            Completion.goal_id == daily_goal.id
        ).one()
        assert completion.completed_at == now
        assert completion.period_start == datetime(2026, 1, 14)
        assert completion.period_end == datetime(2026, 1, 15)
        assert completion.points_earned == 10
        assert completion.streak_at_completion == 1

    def test_updates_goal_and_user_stats(self, db_session, user, daily_goal, clock, now):
        """Goal counters and user aggregates move together"""
        service = CompletionService(db_session, clock=clock)
        service.complete_goal(user.id, daily_goal.id)

        db_session.refresh(daily_goal)
        db_session.refresh(user)
        assert daily_goal.current_streak == 1
        assert daily_goal.longest_streak == 1
        assert daily_goal.total_completions == 1
        assert daily_goal.last_completed_at == now
        assert user.points == 10
        assert user.total_completions == 1
        assert user.current_streak == 1
        assert user.longest_streak == 1

    def test_streak_multiplier_applies_to_new_streak(self, db_session, user, clock):
        """Reaching a 7 streak should earn 10 × 1.5"""
        goal = create_goal(db_session, user.id, "daily", current_streak=6, longest_streak=6)

        service = CompletionService(db_session, clock=clock)
        result = service.complete_goal(user.id, goal.id)

        assert result.new_streak == 7
        assert result.points_earned == 15

    def test_uses_recurrence_base_points(self, db_session, user, weekly_goal, clock):
        service = CompletionService(db_session, clock=clock)
        result = service.complete_goal(user.id, weekly_goal.id)

        assert result.points_earned == 50

    def test_goal_and_user_streaks_are_separate(self, db_session, user, clock):
        """Per-goal streaks and the global streak are independent counters"""
        first = create_goal(db_session, user.id, "daily", title="Run")
        second = create_goal(db_session, user.id, "daily", title="Read")

        service = CompletionService(db_session, clock=clock)
        service.complete_goal(user.id, first.id)
        result = service.complete_goal(user.id, second.id)

        db_session.refresh(user)
        assert result.new_streak == 1
        assert user.current_streak == 2
        assert user.points == 20


class TestCompletionIdempotence:
    """Tests for at most one completion per (goal, period)"""

    def test_second_completion_same_day_fails(self, db_session, user, daily_goal, clock):
        """Completing twice in one day awards points once"""
        service = CompletionService(db_session, clock=clock)
        service.complete_goal(user.id, daily_goal.id)

        clock.advance(hours=5)
        with pytest.raises(AlreadyCompletedException):
            service.complete_goal(user.id, daily_goal.id)

        db_session.refresh(user)
        db_session.refresh(daily_goal)
        assert completion_count(db_session, daily_goal.id) == 1
        assert user.points == 10
        assert daily_goal.current_streak == 1

    def test_consecutive_days_both_succeed(self, db_session, user, daily_goal, clock):
        service = CompletionService(db_session, clock=clock)
        service.complete_goal(user.id, daily_goal.id)

        clock.advance(days=1)
        result = service.complete_goal(user.id, daily_goal.id)

        assert result.new_streak == 2
        assert completion_count(db_session, daily_goal.id) == 2

    def test_weekly_goal_once_per_week(self, db_session, user, weekly_goal, clock):
        """Wednesday and Saturday share a week; Sunday starts a new one"""
        service = CompletionService(db_session, clock=clock)
        service.complete_goal(user.id, weekly_goal.id)

        clock.current = datetime(2026, 1, 17, 20, 0)
        with pytest.raises(AlreadyCompletedException):
            service.complete_goal(user.id, weekly_goal.id)

        clock.current = datetime(2026, 1, 18, 9, 0)
        result = service.complete_goal(user.id, weekly_goal.id)
        assert result.new_streak == 2

    def test_skipped_period_keeps_streak(self, db_session, user, daily_goal, clock):
        """Missing a day does not reset the streak"""
        service = CompletionService(db_session, clock=clock)
        service.complete_goal(user.id, daily_goal.id)

        clock.advance(days=3)
        result = service.complete_goal(user.id, daily_goal.id)

        assert result.new_streak == 2

    def test_concurrent_completion_loses_cleanly(self, db_session, user, daily_goal, clock, monkeypatch):
        """If the guard misses a concurrent write, the unique constraint still wins"""
        service = CompletionService(db_session, clock=clock)
        service.complete_goal(user.id, daily_goal.id)

        # Simulate a second device that read before the first write was visible
        monkeypatch.setattr(service.completion_repo, "find_in_period", lambda *args: None)
        with pytest.raises(AlreadyCompletedException):
            service.complete_goal(user.id, daily_goal.id)

        db_session.refresh(user)
        db_session.refresh(daily_goal)
        assert completion_count(db_session, daily_goal.id) == 1
        assert user.points == 10
        assert user.total_completions == 1
        assert daily_goal.current_streak == 1


class TestUncompleteGoal:
    """Tests for uncomplete_goal function"""

    def test_round_trip_restores_state(self, db_session, user, clock):
        """complete then uncomplete should restore streak, totals and points"""
        goal = create_goal(
            db_session, user.id, "daily",
            current_streak=6, longest_streak=9, total_completions=12
        )
        user.points = 240
        user.total_completions = 30
        db_session.commit()

        service = CompletionService(db_session, clock=clock)
        service.complete_goal(user.id, goal.id)
        assert service.uncomplete_goal(user.id, goal.id) is True

        db_session.refresh(goal)
        db_session.refresh(user)
        assert goal.current_streak == 6
        assert goal.total_completions == 12
        assert goal.longest_streak == 9
        assert user.points == 240
        assert user.total_completions == 30
        assert completion_count(db_session, goal.id) == 0

    def test_nothing_to_undo(self, db_session, user, daily_goal, clock):
        service = CompletionService(db_session, clock=clock)

        with pytest.raises(NothingToUndoException):
            service.uncomplete_goal(user.id, daily_goal.id)

    def test_only_current_period_can_be_undone(self, db_session, user, daily_goal, clock):
        """Yesterday's completion is not undoable today"""
        service = CompletionService(db_session, clock=clock)
        service.complete_goal(user.id, daily_goal.id)

        clock.advance(days=1)
        with pytest.raises(NothingToUndoException):
            service.uncomplete_goal(user.id, daily_goal.id)

        assert completion_count(db_session, daily_goal.id) == 1

    def test_restores_last_completed_at(self, db_session, user, daily_goal, clock, now):
        service = CompletionService(db_session, clock=clock)
        service.complete_goal(user.id, daily_goal.id)
        clock.advance(days=1)
        service.complete_goal(user.id, daily_goal.id)

        service.uncomplete_goal(user.id, daily_goal.id)

        db_session.refresh(daily_goal)
        assert daily_goal.last_completed_at == now

    def test_concurrent_undo_subtracts_once(self, db_session, user, clock, monkeypatch):
        """A second device undoing a completion it read earlier changes nothing"""
        goal = create_goal(db_session, user.id, "daily", current_streak=4, longest_streak=4, total_completions=4)
        user.points = 100
        user.total_completions = 5
        db_session.commit()

        service = CompletionService(db_session, clock=clock)
        assert service.complete_goal(user.id, goal.id).points_earned == 12
        completion = db_session.query(Completion).filter(Completion.goal_id == goal.id).one()
        stale = Completion(
            id=completion.id,
            goal_id=goal.id,
            user_id=user.id,
            completed_at=completion.completed_at,
            period_start=completion.period_start,
            period_end=completion.period_end,
            points_earned=completion.points_earned,
            streak_at_completion=completion.streak_at_completion
        )
        service.uncomplete_goal(user.id, goal.id)

        # The other device still sees the completion it loaded before the first undo
        monkeypatch.setattr(service.completion_repo, "find_in_period", lambda *args: stale)
        with pytest.raises(NothingToUndoException):
            service.uncomplete_goal(user.id, goal.id)

        db_session.refresh(user)
        db_session.refresh(goal)
        assert (user.points, user.total_completions, goal.current_streak) == (100, 5, 4)
        assert goal.total_completions == 4
        assert completion_count(db_session, goal.id) == 0

    def test_clamps_inconsistent_state(self, db_session, user, daily_goal, clock, now):
        """Counters never drop below zero"""
        # Completion exists but the aggregates were never updated
        db_session.add(Completion(
            goal_id=daily_goal.id,
            user_id=user.id,
            completed_at=now,
            period_start=datetime(2026, 1, 14),
            period_end=datetime(2026, 1, 15),
            points_earned=50,
            streak_at_completion=1
        ))
        db_session.commit()

        service = CompletionService(db_session, clock=clock)
        service.uncomplete_goal(user.id, daily_goal.id)

        db_session.refresh(user)
        db_session.refresh(daily_goal)
        assert user.points == 0
        assert user.total_completions == 0
        assert user.current_streak == 0
        assert daily_goal.current_streak == 0
        assert daily_goal.total_completions == 0
        assert daily_goal.last_completed_at is None

    def test_longest_streak_is_monotonic(self, db_session, user, daily_goal, clock):
        """No sequence of complete/uncomplete lowers longest_streak"""
        service = CompletionService(db_session, clock=clock)
        longest_seen = []

        for step in ["complete", "uncomplete", "complete", "next", "complete",
                     "uncomplete", "uncomplete_missing", "complete", "next", "complete"]:
            if step == "complete":
                service.complete_goal(user.id, daily_goal.id)
            elif step == "uncomplete":
                service.uncomplete_goal(user.id, daily_goal.id)
            elif step == "uncomplete_missing":
                with pytest.raises(NothingToUndoException):
                    service.uncomplete_goal(user.id, daily_goal.id)
            else:
                clock.advance(days=1)

            db_session.refresh(daily_goal)
            db_session.refresh(user)
            longest_seen.append((daily_goal.longest_streak, user.longest_streak))

        assert longest_seen == sorted(longest_seen)
        assert daily_goal.longest_streak == 3


class TestLookupFailures:
    """Tests for missing users and goals"""

    def test_unknown_goal(self, db_session, user, clock):
        service = CompletionService(db_session, clock=clock)

        with pytest.raises(GoalNotFoundException):
            service.complete_goal(user.id, 999)

    def test_unknown_user(self, db_session, daily_goal, clock):
        service = CompletionService(db_session, clock=clock)

        with pytest.raises(UserNotFoundException):
            service.complete_goal("nobody", daily_goal.id)

    def test_goal_of_another_user(self, db_session, user, daily_goal, clock):
        """Goals are scoped to their owner"""
        other = create_user(db_session, "user-2")
        service = CompletionService(db_session, clock=clock)

        with pytest.raises(GoalNotFoundException):
            service.complete_goal(other.id, daily_goal.id)

    def test_inactive_goal(self, db_session, user, clock):
        goal = create_goal(db_session, user.id, "daily", is_active=False)
        service = CompletionService(db_session, clock=clock)

        with pytest.raises(GoalNotFoundException):
            service.complete_goal(user.id, goal.id)


class TestStoreFailure:
    """Tests for atomicity when the database fails mid-operation"""

    def test_complete_rolls_back_everything(self, db_session, user, daily_goal, clock, monkeypatch):
        service = CompletionService(db_session, clock=clock)

        def failing_update(*args, **kwargs):
            raise OperationalError("UPDATE users", {}, Exception("disk I/O error"))

        monkeypatch.setattr(service.user_repo, "apply_stats_update", failing_update)
        with pytest.raises(StoreFailureException) as exc_info:
            service.complete_goal(user.id, daily_goal.id)

        assert isinstance(exc_info.value.__cause__, OperationalError)
        db_session.refresh(daily_goal)
        db_session.refresh(user)
        assert completion_count(db_session, daily_goal.id) == 0
        assert daily_goal.current_streak == 0
        assert daily_goal.total_completions == 0
        assert user.points == 0

    def test_uncomplete_rolls_back_everything(self, db_session, user, daily_goal, clock, monkeypatch):
        service = CompletionService(db_session, clock=clock)
        service.complete_goal(user.id, daily_goal.id)

        def failing_update(*args, **kwargs):
            raise OperationalError("UPDATE users", {}, Exception("database is locked"))

        monkeypatch.setattr(service.user_repo, "apply_stats_update", failing_update)
        with pytest.raises(StoreFailureException):
            service.uncomplete_goal(user.id, daily_goal.id)

        db_session.refresh(daily_goal)
        db_session.refresh(user)
        assert completion_count(db_session, daily_goal.id) == 1
        assert daily_goal.current_streak == 1
        assert user.points == 10


class TestCompletionQueries:
    """Tests for is_completed_for_period and get_completions"""

    def test_is_completed_for_period(self, db_session, user, daily_goal, clock):
        service = CompletionService(db_session, clock=clock)
        assert service.is_completed_for_period(user.id, daily_goal.id) is False

        service.complete_goal(user.id, daily_goal.id)
        assert service.is_completed_for_period(user.id, daily_goal.id) is True

        clock.advance(days=1)
        assert service.is_completed_for_period(user.id, daily_goal.id) is False

    def test_history_newest_first(self, db_session, user, daily_goal, clock):
        service = CompletionService(db_session, clock=clock)
        for _ in range(3):
            service.complete_goal(user.id, daily_goal.id)
            clock.advance(days=1)

        history = service.get_completions(user.id, daily_goal.id, limit=2)

        assert [c.streak_at_completion for c in history] == [3, 2]
