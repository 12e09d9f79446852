from fastapi import FastAPI, Depends, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List
import logging
import os
from pathlib import Path

from resolution_tracker import __version__
from resolution_tracker.catalog import BADGES, THEMES
from resolution_tracker.constants import (
    CORS_ALLOWED_ORIGINS, DEFAULT_LOG_DIRECTORY_PROD, DEFAULT_LOG_DIRECTORY_DEV,
    DEFAULT_PAGE_SIZE
)
from resolution_tracker.database import Base, engine, get_db
from resolution_tracker.exceptions import (
    AlreadyCompletedException, BadgeNotFoundException, GoalNotFoundException,
    NothingToUndoException, ResolutionTrackerException, StoreFailureException,
    UserNotFoundException, ValidationException
)
from resolution_tracker.schemas import (
    Badge, BadgeWithStatus, CompleteGoalResponse, CompletionResponse,
    GamificationStats, GoalCreate, GoalResponse, GoalUpdate, Theme, UserBadgeResponse,
    UserResponse, UserUpsert
)
from resolution_tracker.services.badge_service import BadgeService
from resolution_tracker.services.completion_service import CompletionService
from resolution_tracker.services.goal_service import GoalService
from resolution_tracker.services.stats_service import StatsService
from resolution_tracker.services.user_service import UserService

LOG_DIR = os.getenv("RESOLUTION_TRACKER_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("RESOLUTION_TRACKER_LOG_FILE", "app.log")

# Create log directory if it doesn't exist (for development)
try:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE
except PermissionError:
    # Fallback to local directory if no permissions for /var/log
    LOG_DIR = DEFAULT_LOG_DIRECTORY_DEV
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_path),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger("resolution_tracker")

app = FastAPI(
    title="Resolution Tracker API",
    description="Goal completions, streaks, points and badges",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error taxonomy -> HTTP status
ERROR_STATUS = {
    GoalNotFoundException: status.HTTP_404_NOT_FOUND,
    UserNotFoundException: status.HTTP_404_NOT_FOUND,
    BadgeNotFoundException: status.HTTP_404_NOT_FOUND,
    AlreadyCompletedException: status.HTTP_409_CONFLICT,
    NothingToUndoException: status.HTTP_409_CONFLICT,
    ValidationException: status.HTTP_422_UNPROCESSABLE_ENTITY,
    StoreFailureException: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@app.exception_handler(ResolutionTrackerException)
async def resolution_tracker_exception_handler(request: Request, exc: ResolutionTrackerException):
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__}
    )


@app.on_event("startup")
async def startup_event():
    Base.metadata.create_all(bind=engine)
    logger.info(f"Resolution Tracker API started. Logging to: {log_path}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Resolution Tracker API")


# Health check
@app.get("/")
async def root():
    return {"message": "Resolution Tracker API", "status": "active"}


# Catalogs
@app.get("/api/badges", response_model=List[Badge])
def get_badge_catalog():
    """Get the static badge catalog"""
    return sorted(BADGES, key=lambda badge: badge.sort_order)


@app.get("/api/themes", response_model=List[Theme])
def get_themes():
    """Get goal themes"""
    return sorted(THEMES, key=lambda theme: theme.sort_order)


# Users
@app.put("/api/users/{user_id}", response_model=UserResponse)
def register_user(user_id: str, user: UserUpsert, db: Session = Depends(get_db)):
    """Create the user with zeroed stats, or update its display name"""
    return UserService(db).get_or_create_user(user_id, user.display_name)


@app.get("/api/users/{user_id}", response_model=UserResponse)
def get_user(user_id: str, db: Session = Depends(get_db)):
    return UserService(db).get_user(user_id)


# Goals
@app.get("/api/users/{user_id}/goals", response_model=List[GoalResponse])
def get_goals(user_id: str, today_only: bool = False, db: Session = Depends(get_db)):
    """Get active goals (optionally only those due in their current period)"""
    service = GoalService(db)
    if today_only:
        return service.get_todays_goals(user_id)
    return service.get_goals(user_id)


@app.post("/api/users/{user_id}/goals", response_model=GoalResponse, status_code=status.HTTP_201_CREATED)
def create_goal(user_id: str, goal: GoalCreate, db: Session = Depends(get_db)):
    """Create a new goal"""
    return GoalService(db).create_goal(user_id, goal)


@app.get("/api/users/{user_id}/goals/{goal_id}", response_model=GoalResponse)
def get_goal(user_id: str, goal_id: int, db: Session = Depends(get_db)):
    """Get a specific goal"""
    return GoalService(db).get_goal(user_id, goal_id)


@app.put("/api/users/{user_id}/goals/{goal_id}", response_model=GoalResponse)
def update_goal(user_id: str, goal_id: int, goal_update: GoalUpdate, db: Session = Depends(get_db)):
    """Update a goal"""
    return GoalService(db).update_goal(user_id, goal_id, goal_update)


@app.delete("/api/users/{user_id}/goals/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_goal(user_id: str, goal_id: int, db: Session = Depends(get_db)):
    """Soft delete a goal"""
    GoalService(db).delete_goal(user_id, goal_id)


# Completion ledger
@app.post("/api/users/{user_id}/goals/{goal_id}/complete", response_model=CompleteGoalResponse)
def complete_goal(user_id: str, goal_id: int, db: Session = Depends(get_db)):
    """Complete a goal for the current period, then award any new badges"""
    result = CompletionService(db).complete_goal(user_id, goal_id)
    # The completion is already committed; badges are picked up on the next check
    try:
        new_badges = BadgeService(db).check_and_award_badges(user_id)
    except StoreFailureException as e:
        logger.warning(f"Badge check failed after completing goal {goal_id}: {e}")
        new_badges = []
    return CompleteGoalResponse(**result.model_dump(), new_badges=new_badges)


@app.post("/api/users/{user_id}/goals/{goal_id}/uncomplete")
def uncomplete_goal(user_id: str, goal_id: int, db: Session = Depends(get_db)):
    """Undo the current period's completion"""
    return {"success": CompletionService(db).uncomplete_goal(user_id, goal_id)}


@app.get("/api/users/{user_id}/goals/{goal_id}/completions", response_model=List[CompletionResponse])
def get_completions(
    user_id: str,
    goal_id: int,
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=365),
    db: Session = Depends(get_db)
):
    """Get completion history for a goal"""
    return CompletionService(db).get_completions(user_id, goal_id, limit)


# Stats and badges
@app.get("/api/users/{user_id}/stats", response_model=GamificationStats)
def get_stats(user_id: str, db: Session = Depends(get_db)):
    """Get points, level, streaks and earned badges"""
    return StatsService(db).get_gamification_stats(user_id)


@app.get("/api/users/{user_id}/badges", response_model=List[BadgeWithStatus])
def get_user_badges(user_id: str, db: Session = Depends(get_db)):
    """Get the badge catalog with earned status"""
    return BadgeService(db).get_all_badges_with_status(user_id)


@app.get("/api/users/{user_id}/badges/unnotified", response_model=List[UserBadgeResponse])
def get_unnotified_badges(user_id: str, db: Session = Depends(get_db)):
    """Get earned badges not yet shown to the user"""
    return BadgeService(db).get_unnotified_badges(user_id)


@app.post("/api/users/{user_id}/badges/{badge_id}/notified", status_code=status.HTTP_204_NO_CONTENT)
def mark_badge_notified(user_id: str, badge_id: str, db: Session = Depends(get_db)):
    """Mark an earned badge as seen"""
    if not BadgeService(db).mark_badge_notified(user_id, badge_id):
        raise BadgeNotFoundException(badge_id)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("resolution_tracker.main:app", host="0.0.0.0", port=8000, reload=False)
