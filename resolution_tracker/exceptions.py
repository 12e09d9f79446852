"""
Custom exceptions for the resolution tracker core.
Expected outcomes (already completed, nothing to undo) and infrastructure
faults share one base class so callers can branch on them.
"""
from datetime import datetime


class ResolutionTrackerException(Exception):
    """Base exception for the resolution tracker"""
    pass


class GoalNotFoundException(ResolutionTrackerException):
    """Raised when a goal is not found for the user"""
    def __init__(self, goal_id: int):
        self.goal_id = goal_id
        super().__init__(f"Goal with ID {goal_id} not found")


class UserNotFoundException(ResolutionTrackerException):
    """Raised when a user is not found"""
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User with ID {user_id} not found")


class BadgeNotFoundException(ResolutionTrackerException):
    """Raised when a badge id is not in the catalog"""
    def __init__(self, badge_id: str):
        self.badge_id = badge_id
        super().__init__(f"Badge with ID {badge_id} not found")


class AlreadyCompletedException(ResolutionTrackerException):
    """Raised when a goal already has a completion for the current period"""
    def __init__(self, goal_id: int, period_start: datetime):
        self.goal_id = goal_id
        self.period_start = period_start
        super().__init__(
            f"Goal {goal_id} already completed for period starting {period_start.isoformat()}"
        )


class NothingToUndoException(ResolutionTrackerException):
    """Raised when uncompleting a goal with no completion in the current period"""
    def __init__(self, goal_id: int, period_start: datetime):
        self.goal_id = goal_id
        self.period_start = period_start
        super().__init__(
            f"Goal {goal_id} has no completion for period starting {period_start.isoformat()}"
        )


class StoreFailureException(ResolutionTrackerException):
    """Raised when the backing store fails"""
    def __init__(self, operation: str, details: str):
        self.operation = operation
        self.details = details
        super().__init__(f"Database {operation} failed: {details}")


class ValidationException(ResolutionTrackerException):
    """Raised when data validation fails"""
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error for {field}: {message}")
