from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

RECURRENCE_PATTERN = "^(daily|weekly|monthly|quarterly|custom)$"


# Goal schemas
class GoalBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    theme_id: str = Field(..., min_length=1)
    recurrence_type: str = Field(default="daily", pattern=RECURRENCE_PATTERN)
    custom_deadline: Optional[datetime] = None
    shared_with_partner: bool = True


class GoalCreate(GoalBase):
    pass


class GoalUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    theme_id: Optional[str] = None
    recurrence_type: Optional[str] = Field(None, pattern=RECURRENCE_PATTERN)
    custom_deadline: Optional[datetime] = None
    shared_with_partner: Optional[bool] = None
    is_active: Optional[bool] = None


class GoalResponse(GoalBase):
    id: int
    user_id: str
    is_active: bool
    current_streak: int = 0
    longest_streak: int = 0
    total_completions: int = 0
    points_per_completion: int
    last_completed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


# Completion ledger schemas
class PeriodRange(BaseModel):
    """Accounting interval [start, end)"""
    start: datetime
    end: datetime


class StreakUpdate(BaseModel):
    current_streak: int
    longest_streak: int
    total_completions: Optional[int] = None  # Only set by uncomplete


class CompletionResult(BaseModel):
    points_earned: int
    new_streak: int
    period_start: datetime
    period_end: datetime


class CompletionResponse(BaseModel):
    id: int
    goal_id: int
    completed_at: datetime
    period_start: datetime
    period_end: datetime
    points_earned: int
    streak_at_completion: int

    class Config:
        from_attributes = True


# Catalog schemas (immutable)
class BadgeCriteria(BaseModel):
    type: str  # streak, total_completions, points, level, partner_challenge, theme_mastery, special
    threshold: int = Field(..., ge=0)
    theme_id: Optional[str] = None

    class Config:
        frozen = True


class Badge(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    category: str  # streak, completion, points, partner, special
    criteria: BadgeCriteria
    rarity: str  # common, rare, epic, legendary
    points_awarded: int = 0
    sort_order: int

    class Config:
        frozen = True


class Theme(BaseModel):
    id: str
    name: str
    icon: str
    color: str
    description: str
    sort_order: int

    class Config:
        frozen = True


class LevelInfo(BaseModel):
    level: int
    min_points: int
    max_points: Optional[int] = None  # None at the top level
    title: str
    color: str


# User schemas
class UserUpsert(BaseModel):
    display_name: Optional[str] = Field(None, max_length=100)


class UserResponse(BaseModel):
    id: str
    display_name: Optional[str] = None
    points: int = 0
    total_completions: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    created_at: datetime

    class Config:
        from_attributes = True


# User stats schemas
class UserStats(BaseModel):
    """Aggregate statistics the badge evaluator reads"""
    points: int = 0
    total_completions: int = 0
    current_streak: int = 0
    longest_streak: int = 0

    class Config:
        from_attributes = True


class UserBadgeResponse(BaseModel):
    badge_id: str
    earned_at: datetime
    notified: bool = False

    class Config:
        from_attributes = True


class BadgeWithStatus(Badge):
    earned: bool = False
    earned_at: Optional[datetime] = None


class GamificationStats(UserStats):
    level: int
    level_info: LevelInfo
    progress_to_next_level: int
    earned_badges: List[UserBadgeResponse] = []


class CompleteGoalResponse(CompletionResult):
    new_badges: List[Badge] = []
