from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from datetime import datetime

from resolution_tracker.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)  # Auth provider uid
    display_name = Column(String, nullable=True)

    # Gamification summary (denormalized, mutated only by the completion ledger)
    points = Column(Integer, default=0, nullable=False)
    total_completions = Column(Integer, default=0, nullable=False)
    # Global streak, a separate accumulator from the per-goal streaks
    current_streak = Column(Integer, default=0, nullable=False)
    longest_streak = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class Goal(Base):
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Content
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    theme_id = Column(String, nullable=False)

    # Recurrence: daily, weekly, monthly, quarterly, custom
    recurrence_type = Column(String, nullable=False, default="daily")
    custom_deadline = Column(DateTime, nullable=True)

    # Soft delete flag
    is_active = Column(Boolean, default=True, nullable=False)

    # Tracking metadata
    current_streak = Column(Integer, default=0, nullable=False)
    longest_streak = Column(Integer, default=0, nullable=False)
    total_completions = Column(Integer, default=0, nullable=False)
    last_completed_at = Column(DateTime, nullable=True)

    # Base points, derived from recurrence_type on create/update
    points_per_completion = Column(Integer, default=10, nullable=False)

    shared_with_partner = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    completions = relationship("Completion", cascade="all, delete-orphan")


class Completion(Base):
    __tablename__ = "completions"
    __table_args__ = (
        # At most one completion per goal and period
        UniqueConstraint("goal_id", "period_start", name="uq_completion_goal_period"),
    )

    id = Column(Integer, primary_key=True, index=True)
    goal_id = Column(Integer, ForeignKey("goals.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    completed_at = Column(DateTime, nullable=False, default=datetime.now)
    period_start = Column(DateTime, nullable=False)
    period_end = Column(DateTime, nullable=False)

    points_earned = Column(Integer, nullable=False, default=0)
    streak_at_completion = Column(Integer, nullable=False, default=0)


class UserBadge(Base):
    __tablename__ = "user_badges"
    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", name="uq_user_badge"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    badge_id = Column(String, nullable=False)  # Catalog id, e.g. "streak_7"
    earned_at = Column(DateTime, nullable=False, default=datetime.now)
    notified = Column(Boolean, default=False, nullable=False)
